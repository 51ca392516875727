"""Install configuration from the environment and positional arguments.

Environment (v2 contract):
    VENDOR_REF          - Version/ref to install
    VENDOR_REPO         - Source repository (owner/name)
    VENDOR_INSTALL_DIR  - Base directory for installed files
    VENDOR_MANIFEST     - Where to write the list of installed files
    GH_TOKEN            - Auth token (GITHUB_TOKEN is also accepted)

Fallback (v1 compat):
    git-dogfood install <version> [<repo>]

Each value is resolved by an explicit, ordered chain so every defaulting layer
can be exercised on its own.
"""

import logging
from collections.abc import Mapping
from collections.abc import Sequence
from pathlib import Path

from .exceptions import MissingRefError
from .schema import CANONICAL_REPO
from .schema import DEFAULT_INSTALL_DIR
from .schema import InstallConfig

logger = logging.getLogger(__name__)

ENV_REF = "VENDOR_REF"
ENV_REPO = "VENDOR_REPO"
ENV_INSTALL_DIR = "VENDOR_INSTALL_DIR"
ENV_MANIFEST = "VENDOR_MANIFEST"
ENV_TOKENS = ("GH_TOKEN", "GITHUB_TOKEN")


def first_present(*candidates: str | None) -> str | None:
    """Return the first candidate that is neither None nor blank, stripped."""
    for candidate in candidates:
        if candidate and candidate.strip():
            return candidate.strip()
    return None


def _positional(args: Sequence[str], index: int) -> str | None:
    return args[index] if len(args) > index else None


def resolve_install_config(
    environ: Mapping[str, str],
    args: Sequence[str] = (),
    root: Path | None = None,
) -> InstallConfig:
    """
    Build an InstallConfig from environment variables and positional arguments.

    Resolution order per value:
    - ref: VENDOR_REF -> args[0] -> MissingRefError
    - source_repo: VENDOR_REPO -> args[1] -> canonical repo
    - install_dir: VENDOR_INSTALL_DIR -> fallback directory
    - manifest_path: VENDOR_MANIFEST -> no manifest
    - auth_token: GH_TOKEN -> GITHUB_TOKEN -> none

    Args:
        environ: Environment mapping (usually os.environ)
        args: Positional command-line arguments
        root: Consumer repository root (defaults to cwd at install time)

    Returns:
        Validated InstallConfig

    Raises:
        MissingRefError: If neither VENDOR_REF nor a positional ref is given
    """
    ref = first_present(environ.get(ENV_REF), _positional(args, 0))
    if ref is None:
        raise MissingRefError(
            f"Usage: git-dogfood install <version> [<repo>] (or set {ENV_REF})",
            context={"env": ENV_REF},
        )

    source_repo = first_present(environ.get(ENV_REPO), _positional(args, 1), CANONICAL_REPO)
    install_dir = first_present(environ.get(ENV_INSTALL_DIR), str(DEFAULT_INSTALL_DIR))
    manifest_path = first_present(environ.get(ENV_MANIFEST))
    auth_token = first_present(*(environ.get(name) for name in ENV_TOKENS))

    logger.debug(
        f"Resolved install config: ref={ref} repo={source_repo} dir={install_dir} "
        f"manifest={manifest_path} token={'set' if auth_token else 'unset'}"
    )

    return InstallConfig(
        ref=ref,
        source_repo=source_repo,
        install_dir=Path(install_dir),
        manifest_path=Path(manifest_path) if manifest_path else None,
        auth_token=auth_token,
        root=root,
    )
