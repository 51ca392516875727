"""Install or update git-dogfood in a consumer repository.

One pass:
1. Create the install directory and artifact parent directories
2. Fetch every ALWAYS_OVERWRITE artifact at the canonical tag (any failure aborts)
3. Write them, then the version marker
4. Fetch and write ONCE_ONLY artifacts that are absent (failures are logged, not fatal)
5. Write the manifest, if one was requested

The manifest is written in one step at the very end, so it either lists the
complete pass or does not exist.
"""

import asyncio
import logging
import os
import re
import stat
import tempfile
from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from pathlib import Path

from .exceptions import DogfoodError
from .exceptions import FetchError
from .exceptions import InstallError
from .exceptions import ManifestWriteError
from .fetcher import GitHubFetcher
from .protocols import FetcherProtocol
from .schema import Artifact
from .schema import ArtifactPolicy
from .schema import InstallConfig

logger = logging.getLogger(__name__)

RESOLVE_SOURCE = "dogfood/resolve"
WORKFLOW_SOURCE = "templates/github/workflows/dogfood.yml"
WORKFLOW_DIR = Path(".github") / "workflows"
WORKFLOW_NAME = "dogfood.yml"
VERSION_FILE = ".version"

_TAGGED_REF = re.compile(r"^v\d")


class ArtifactOutcome(str, Enum):
    """What happened to one destination path during a pass."""

    INSTALLED = "installed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class InstallResult:
    """Result of a completed installation pass."""

    ref: str
    manifest: list[str] = field(default_factory=list)
    outcomes: dict[str, ArtifactOutcome] = field(default_factory=dict)
    manifest_file: Path | None = None

    def paths_with(self, outcome: ArtifactOutcome) -> list[str]:
        return [path for path, result in self.outcomes.items() if result is outcome]


def canonical_tag(ref: str) -> str:
    """Release tag for a version: ``2.3.0`` -> ``v2.3.0``; ``v2.3.0`` stays as is."""
    return ref if _TAGGED_REF.match(ref) else f"v{ref}"


def default_artifacts(install_dir: Path) -> list[Artifact]:
    """The files git-dogfood installs into a consumer repository."""
    return [
        Artifact(
            source_path=RESOLVE_SOURCE,
            dest_path=install_dir / "resolve",
            policy=ArtifactPolicy.ALWAYS_OVERWRITE,
            executable=True,
        ),
        Artifact(
            source_path=WORKFLOW_SOURCE,
            dest_path=WORKFLOW_DIR / WORKFLOW_NAME,
            policy=ArtifactPolicy.ONCE_ONLY,
        ),
    ]


def _make_executable(path: Path) -> None:
    mode = path.stat().st_mode
    path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


class Installer:
    """
    Runs one installation pass for an InstallConfig.

    Apps (or tests) may inject the fetcher and the artifact list; by default the
    GitHub fetcher and git-dogfood's own artifacts are used.
    """

    def __init__(
        self,
        config: InstallConfig,
        fetcher: FetcherProtocol | None = None,
        artifacts: list[Artifact] | None = None,
    ):
        self.config = config
        self.fetcher = fetcher or GitHubFetcher(config.source_repo, token=config.auth_token)
        self.artifacts = artifacts if artifacts is not None else default_artifacts(config.install_dir)

    def _display(self, path: Path) -> str:
        """Path as recorded in logs and the manifest: relative to the consumer root when possible."""
        try:
            return path.relative_to(self.config.root_path).as_posix()
        except ValueError:
            return path.as_posix()

    def _artifact_ref(self, artifact: Artifact, tag: str) -> str:
        return artifact.ref or tag

    def _write(self, artifact: Artifact, content: bytes) -> str:
        dest = self.config.under_root(artifact.dest_path)
        dest.write_bytes(content)
        if artifact.executable:
            _make_executable(dest)
        return self._display(dest)

    def _prepare_directories(self) -> None:
        self.config.install_path.mkdir(parents=True, exist_ok=True)
        for artifact in self.artifacts:
            self.config.under_root(artifact.dest_path).parent.mkdir(parents=True, exist_ok=True)

    async def _install_versioned(self, tag: str, result: InstallResult) -> None:
        versioned = [a for a in self.artifacts if a.policy is ArtifactPolicy.ALWAYS_OVERWRITE]

        # Fetch everything before writing anything: a failure here leaves the consumer untouched
        contents = await asyncio.gather(
            *(self.fetcher.fetch(a.source_path, self._artifact_ref(a, tag)) for a in versioned),
            return_exceptions=True,
        )
        for content in contents:
            if isinstance(content, BaseException):
                raise content

        for artifact, content in zip(versioned, contents, strict=True):
            written = self._write(artifact, content)
            result.manifest.append(written)
            result.outcomes[written] = ArtifactOutcome.INSTALLED
            logger.info(f"Installed {written}")

        version_path = self.config.install_path / VERSION_FILE
        version_path.write_text(f"{self.config.ref}\n")
        written = self._display(version_path)
        result.manifest.append(written)
        result.outcomes[written] = ArtifactOutcome.INSTALLED

    async def _install_once_only(self, tag: str, result: InstallResult) -> None:
        pending: list[Artifact] = []
        for artifact in self.artifacts:
            if artifact.policy is not ArtifactPolicy.ONCE_ONLY:
                continue
            dest = self.config.under_root(artifact.dest_path)
            if dest.exists():
                display = self._display(dest)
                result.outcomes[display] = ArtifactOutcome.SKIPPED
                logger.info(f"{display} already exists, skipping")
                continue
            pending.append(artifact)

        contents = await asyncio.gather(
            *(self.fetcher.fetch(a.source_path, self._artifact_ref(a, tag)) for a in pending),
            return_exceptions=True,
        )

        for artifact, content in zip(pending, contents, strict=True):
            # Any fetch failure of a ONCE_ONLY artifact is reported, never fatal
            if isinstance(content, Exception):
                display = self._display(self.config.under_root(artifact.dest_path))
                result.outcomes[display] = ArtifactOutcome.FAILED
                reason = content.message if isinstance(content, FetchError) else str(content)
                logger.warning(f"Could not install {display}: {reason}")
                continue
            if isinstance(content, BaseException):
                raise content
            written = self._write(artifact, content)
            result.manifest.append(written)
            result.outcomes[written] = ArtifactOutcome.INSTALLED
            logger.info(f"Installed {written}")

    def _write_manifest(self, result: InstallResult) -> None:
        manifest_file = self.config.manifest_file
        if manifest_file is None:
            return

        body = "".join(f"{path}\n" for path in result.manifest)
        try:
            manifest_file.parent.mkdir(parents=True, exist_ok=True)
            # Write-then-rename so a reader never sees a partial manifest
            fd, tmp_name = tempfile.mkstemp(dir=manifest_file.parent, prefix=f".{manifest_file.name}.")
            try:
                with os.fdopen(fd, "w") as f:
                    f.write(body)
                os.replace(tmp_name, manifest_file)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise ManifestWriteError(
                f"Failed to write manifest {manifest_file}: {e}",
                context={"manifest_path": str(manifest_file)},
            ) from e

        result.manifest_file = manifest_file
        logger.debug(f"Wrote manifest with {len(result.manifest)} entries to {manifest_file}")

    async def run(self) -> InstallResult:
        """
        Execute the pass.

        Returns:
            InstallResult with the manifest and per-path outcomes

        Raises:
            FetchError: If an ALWAYS_OVERWRITE artifact cannot be fetched
            ManifestWriteError: If the requested manifest cannot be written
            InstallError: On any other failure during the pass
        """
        config = self.config
        tag = canonical_tag(config.ref)
        result = InstallResult(ref=config.ref)

        try:
            logger.info(f"Installing git-dogfood v{config.ref.removeprefix('v')} from {config.source_repo}")
            self._prepare_directories()
            await self._install_versioned(tag, result)
            await self._install_once_only(tag, result)
            self._write_manifest(result)

            logger.info(f"Done! git-dogfood {tag} installed.")
            return result

        except Exception as e:
            if isinstance(e, DogfoodError):
                raise
            raise InstallError(f"Failed to install git-dogfood {tag}: {e}", context={"ref": config.ref}) from e


async def install(
    config: InstallConfig,
    fetcher: FetcherProtocol | None = None,
    artifacts: list[Artifact] | None = None,
) -> InstallResult:
    """
    Install or update git-dogfood according to ``config``.

    Example:
        >>> config = InstallConfig(ref="2.3.0", manifest_path=Path("manifest.txt"))
        >>> result = await install(config)
        >>> print(result.manifest)
        ['.dogfood/resolve', '.dogfood/.version', '.github/workflows/dogfood.yml']
    """
    return await Installer(config, fetcher=fetcher, artifacts=artifacts).run()
