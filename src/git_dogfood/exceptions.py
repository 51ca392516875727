"""git-dogfood exceptions.

Clear, actionable error messages; every error carries a context dict for logs.
"""


class DogfoodError(Exception):
    """Base exception for git-dogfood operations."""

    def __init__(self, message: str, context: dict | None = None):
        """Initialize with message and optional context.

        Args:
            message: Human-readable error message
            context: Optional dict with additional context (paths, refs, etc.)
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}


class InstallError(DogfoodError):
    """Installation pass failed."""


class MissingRefError(InstallError):
    """No ref supplied by the environment or the command line."""


class FetchError(InstallError):
    """Fetching a file from the source repository failed."""

    def __init__(self, message: str, path: str, ref: str, context: dict | None = None):
        super().__init__(message, context={"path": path, "ref": ref, **(context or {})})
        self.path = path
        self.ref = ref


class ManifestWriteError(InstallError):
    """Manifest could not be written after a completed pass."""


class RegistryUnavailableError(DogfoodError):
    """Vendor registry document missing or unparsable."""


class LoopStateError(DogfoodError):
    """Self-update loop driven through an illegal transition."""
