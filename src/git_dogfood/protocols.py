"""Protocols for installation sources.

The installer only needs something that can hand back file bytes at a ref;
GitHubFetcher is the production implementation, tests inject fakes.
"""

from typing import Protocol


class FetcherProtocol(Protocol):
    """Protocol for fetching files out of the source repository.

    Example implementations:
    - GitHubFetcher: contents API with a token, raw download without one
    - In-memory fakes for tests
    """

    async def fetch(self, path: str, ref: str) -> bytes:
        """Return the content of ``path`` at ``ref``.

        Args:
            path: Path within the source repository
            ref: Tag, branch or commit to read from

        Raises:
            FetchError: If the file cannot be retrieved or decoded
        """
        ...
