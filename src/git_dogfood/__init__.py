"""git-dogfood - Self-updating vendored installer.

Public API: install passes, vendor resolution and the self-update loop rules.
"""

from .config import first_present
from .config import resolve_install_config
from .exceptions import DogfoodError
from .exceptions import FetchError
from .exceptions import InstallError
from .exceptions import LoopStateError
from .exceptions import ManifestWriteError
from .exceptions import MissingRefError
from .exceptions import RegistryUnavailableError
from .fetcher import GitHubFetcher
from .installer import ArtifactOutcome
from .installer import InstallResult
from .installer import Installer
from .installer import canonical_tag
from .installer import default_artifacts
from .installer import install
from .loop import RESERVED_COMMIT_PREFIX
from .loop import LoopStage
from .loop import SelfUpdateLoop
from .loop import is_self_update_commit
from .loop import self_update_commit_message
from .loop import should_release
from .protocols import FetcherProtocol
from .resolver import CANONICAL_VENDOR_KEY
from .resolver import load_registry
from .resolver import render_output
from .resolver import resolve_from_file
from .resolver import resolve_vendor
from .schema import Artifact
from .schema import ArtifactPolicy
from .schema import InstallConfig
from .schema import VendorEntry
from .schema import VendorRegistry

__all__ = [
    # Configuration
    "InstallConfig",
    "first_present",
    "resolve_install_config",
    # Installation
    "Artifact",
    "ArtifactPolicy",
    "ArtifactOutcome",
    "Installer",
    "InstallResult",
    "install",
    "canonical_tag",
    "default_artifacts",
    "FetcherProtocol",
    "GitHubFetcher",
    # Resolution
    "CANONICAL_VENDOR_KEY",
    "VendorEntry",
    "VendorRegistry",
    "load_registry",
    "resolve_vendor",
    "resolve_from_file",
    "render_output",
    # Self-update loop
    "RESERVED_COMMIT_PREFIX",
    "LoopStage",
    "SelfUpdateLoop",
    "is_self_update_commit",
    "self_update_commit_message",
    "should_release",
    # Exceptions
    "DogfoodError",
    "InstallError",
    "MissingRefError",
    "FetchError",
    "ManifestWriteError",
    "RegistryUnavailableError",
    "LoopStateError",
]

__version__ = "0.1.0"
