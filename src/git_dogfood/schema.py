"""Data models for install passes and the shared vendor registry.

Inputs are frozen pydantic models; the registry models accept extra fields since
the registry document is owned by the vendoring framework, not by us.
"""

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import ValidationError
from pydantic import model_validator

from .exceptions import MissingRefError
from .exceptions import RegistryUnavailableError

CANONICAL_REPO = "mangimangi/git-dogfood"
DEFAULT_INSTALL_DIR = Path(".dogfood")


class ArtifactPolicy(str, Enum):
    """Update policy for an installed file."""

    # Versioned code, rewritten on every pass
    ALWAYS_OVERWRITE = "always_overwrite"
    # Generated config the consumer may customize; written only when absent
    ONCE_ONLY = "once_only"


class Artifact(BaseModel):
    """One file to install from the source repository."""

    model_config = ConfigDict(frozen=True)

    source_path: str
    dest_path: Path
    policy: ArtifactPolicy
    executable: bool = False
    # Pin to a specific ref instead of the canonical tag of the pass
    ref: str | None = None


class InstallConfig(BaseModel):
    """
    Inputs to one installation pass.

    Relative paths are interpreted against ``root`` (the consumer repository root,
    defaulting to the current working directory).
    """

    model_config = ConfigDict(frozen=True)

    ref: str
    source_repo: str = CANONICAL_REPO
    install_dir: Path = DEFAULT_INSTALL_DIR
    manifest_path: Path | None = None
    auth_token: str | None = Field(default=None, repr=False)
    root: Path | None = None

    @model_validator(mode="before")
    @classmethod
    def _require_ref(cls, data: Any) -> Any:
        # Raised directly (not as a ValidationError): a missing ref is a usage error
        if isinstance(data, dict):
            ref = data.get("ref")
            if ref is None or not str(ref).strip():
                raise MissingRefError(
                    "No ref given: set VENDOR_REF or pass the version as the first argument",
                    context={"ref": ref},
                )
        return data

    @property
    def root_path(self) -> Path:
        return self.root if self.root is not None else Path.cwd()

    def under_root(self, path: Path) -> Path:
        """Resolve ``path`` against the consumer root unless it is absolute."""
        return path if path.is_absolute() else self.root_path / path

    @property
    def install_path(self) -> Path:
        return self.under_root(self.install_dir)

    @property
    def manifest_file(self) -> Path | None:
        if self.manifest_path is None:
            return None
        return self.under_root(self.manifest_path)


class VendorEntry(BaseModel):
    """
    One vendor in the shared registry.

    Only the fields this tool reads are declared; anything else the framework
    stores is kept as extra data.
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    repo: str | None = None
    install_branch: str | None = Field(default=None, alias="installBranch")
    protected: list[str] = Field(default_factory=list)
    allowed: list[str] = Field(default_factory=list)
    private: bool = False
    automerge: bool = False


class VendorRegistry(BaseModel):
    """
    Snapshot of the vendoring framework's config document (``.vendored/config.json``).

    Entries are kept raw: other vendors' entries belong to other tools and are
    never validated here. Use ``entry()`` to get a validated VendorEntry.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    vendors: dict[str, Any] = Field(default_factory=dict)

    def entry(self, key: str) -> VendorEntry | None:
        """
        Validated entry for ``key``, or None if the vendor is not registered.

        Raises:
            RegistryUnavailableError: If the entry exists but has the wrong shape
        """
        raw = self.vendors.get(key)
        if raw is None:
            return None
        try:
            return VendorEntry.model_validate(raw)
        except ValidationError as e:
            raise RegistryUnavailableError(
                f"Invalid registry entry '{key}': {e.error_count()} validation error(s)",
                context={"vendor": key},
            ) from e
