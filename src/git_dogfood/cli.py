"""CLI entrypoints for git-dogfood commands."""

import argparse
import asyncio
import logging
import os
import sys
from collections.abc import Sequence
from pathlib import Path

from .config import resolve_install_config
from .exceptions import DogfoodError
from .exceptions import MissingRefError
from .exceptions import RegistryUnavailableError
from .fetcher import GitHubFetcher
from .installer import install
from .loop import should_release
from .resolver import CANONICAL_VENDOR_KEY
from .resolver import DEFAULT_REGISTRY_PATH
from .resolver import load_registry
from .resolver import render_output
from .resolver import resolve_from_file

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2


def _add_verbose_option(parser: argparse.ArgumentParser, *, suppress_default: bool = False) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS if suppress_default else False,
        help="Increase log verbosity for troubleshooting.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="git-dogfood",
        description="Keep a vendored copy of git-dogfood up to date in consumer repositories.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    install_parser = subparsers.add_parser(
        "install",
        help="Install or update git-dogfood in the current repository.",
    )
    _add_verbose_option(install_parser, suppress_default=True)
    install_parser.add_argument("ref", nargs="?", help="Version to install (VENDOR_REF takes precedence).")
    install_parser.add_argument("repo", nargs="?", help="Source repository owner/name (VENDOR_REPO takes precedence).")
    install_parser.add_argument(
        "--root",
        type=Path,
        default=None,
        help="Consumer repository root (defaults to current directory).",
    )
    install_parser.add_argument(
        "--registry",
        type=Path,
        default=DEFAULT_REGISTRY_PATH,
        help="Vendor registry used to detect private source repositories.",
    )
    install_parser.set_defaults(handler=_handle_install)

    resolve_parser = subparsers.add_parser(
        "resolve",
        help="Print the vendor key for git-dogfood if the registry has an entry for it.",
    )
    _add_verbose_option(resolve_parser, suppress_default=True)
    resolve_parser.add_argument(
        "--registry",
        type=Path,
        default=DEFAULT_REGISTRY_PATH,
        help=f"Path to the vendor registry (defaults to {DEFAULT_REGISTRY_PATH}).",
    )
    resolve_parser.set_defaults(handler=_handle_resolve)

    gate_parser = subparsers.add_parser(
        "release-gate",
        help="Decide whether a merged commit should trigger a release.",
    )
    _add_verbose_option(gate_parser, suppress_default=True)
    gate_parser.add_argument("message", help="Commit message of the merged commit.")
    gate_parser.set_defaults(handler=_handle_release_gate)

    return parser


def _emit(line: str) -> None:
    """Print a ``name=value`` line and mirror it into $GITHUB_OUTPUT when running in Actions."""
    print(line)
    output_file = os.environ.get("GITHUB_OUTPUT")
    if output_file:
        with open(output_file, "a") as f:
            f.write(f"{line}\n")


def _source_is_private(registry_path: Path, root: Path | None) -> bool:
    path = registry_path if root is None or registry_path.is_absolute() else root / registry_path
    try:
        entry = load_registry(path).entry(CANONICAL_VENDOR_KEY)
    except RegistryUnavailableError:
        return False
    return bool(entry and entry.private)


def _handle_install(args: argparse.Namespace) -> int:
    positional = [value for value in (args.ref, args.repo) if value]
    config = resolve_install_config(os.environ, positional, root=args.root)
    fetcher = GitHubFetcher(
        config.source_repo,
        token=config.auth_token,
        require_token=_source_is_private(args.registry, args.root),
    )
    result = asyncio.run(install(config, fetcher=fetcher))
    if result.manifest_file is not None:
        logger.info(f"Manifest written to {result.manifest_file}")
    return EXIT_OK


def _handle_resolve(args: argparse.Namespace) -> int:
    key = resolve_from_file(args.registry)
    if key is not None:
        _emit(render_output(key))
    return EXIT_OK


def _handle_release_gate(args: argparse.Namespace) -> int:
    release = should_release(args.message)
    if not release:
        logger.info("Self-update commit, skipping release")
    _emit(f"release={'true' if release else 'false'}")
    return EXIT_OK


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        stream=sys.stderr,
    )


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(getattr(args, "verbose", False))

    try:
        return args.handler(args)
    except MissingRefError as e:
        print(f"error: {e.message}", file=sys.stderr)
        return EXIT_USAGE
    except DogfoodError as e:
        print(f"error: {e.message}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
