"""Fetch files from the source repository on GitHub.

Uses the contents API when a token is present, otherwise the unauthenticated
raw download URL. No retries and no caching: retry policy belongs to the caller,
and each call is independent so distinct files can be fetched concurrently.
"""

import base64
import binascii
import logging

import httpx

from .exceptions import FetchError

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
GITHUB_RAW_URL = "https://raw.githubusercontent.com"
DEFAULT_TIMEOUT = 30.0


class GitHubFetcher:
    """
    Stateless fetcher for one source repository.

    Example:
        >>> fetcher = GitHubFetcher("mangimangi/git-dogfood", token=os.environ.get("GH_TOKEN"))
        >>> content = await fetcher.fetch("dogfood/resolve", "v1.2.0")
    """

    def __init__(
        self,
        repo: str,
        token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
        require_token: bool = False,
        api_url: str = GITHUB_API_URL,
        raw_url: str = GITHUB_RAW_URL,
    ):
        """Initialize fetcher.

        Args:
            repo: Source repository as owner/name
            token: Auth token; selects the contents API transport when set
            timeout: Per-request timeout in seconds
            client: Optional shared client (caller owns its lifecycle)
            require_token: Refuse to fetch without a token (private repositories)
            api_url: GitHub API base URL
            raw_url: Raw content base URL
        """
        self.repo = repo
        self.token = token
        self.timeout = timeout
        self.require_token = require_token
        self.api_url = api_url.rstrip("/")
        self.raw_url = raw_url.rstrip("/")
        self._client = client

    @property
    def uses_api(self) -> bool:
        return bool(self.token)

    async def fetch(self, path: str, ref: str) -> bytes:
        """Return the content of ``path`` at ``ref``.

        Raises:
            FetchError: On missing token for a private repo, non-success response,
                transport failure or decode failure
        """
        if self.require_token and not self.token:
            raise FetchError(
                f"{self.repo} is private: a token is required to fetch {path}",
                path=path,
                ref=ref,
                context={"repo": self.repo},
            )

        try:
            if self._client is not None:
                return await self._fetch_with(self._client, path, ref)
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                return await self._fetch_with(client, path, ref)
        except httpx.HTTPStatusError as e:
            raise FetchError(
                f"Failed to fetch {path}@{ref} from {self.repo}: HTTP {e.response.status_code}",
                path=path,
                ref=ref,
                context={"repo": self.repo, "status": e.response.status_code},
            ) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise FetchError(
                f"Failed to fetch {path}@{ref} from {self.repo}: {e}",
                path=path,
                ref=ref,
                context={"repo": self.repo},
            ) from e

    async def _fetch_with(self, client: httpx.AsyncClient, path: str, ref: str) -> bytes:
        if self.uses_api:
            logger.debug(f"Fetching {path}@{ref} via contents API")
            return await self._fetch_api(client, path, ref)
        logger.debug(f"Fetching {path}@{ref} via raw download")
        return await self._fetch_raw(client, path, ref)

    async def _fetch_api(self, client: httpx.AsyncClient, path: str, ref: str) -> bytes:
        resp = await client.get(
            f"{self.api_url}/repos/{self.repo}/contents/{path}",
            params={"ref": ref},
            headers={
                "Accept": "application/vnd.github+json",
                "Authorization": f"Bearer {self.token}",
            },
            timeout=self.timeout,
        )
        resp.raise_for_status()

        try:
            content = resp.json()["content"]
            return base64.b64decode(content)
        except (ValueError, KeyError, TypeError, binascii.Error) as e:
            raise FetchError(
                f"Could not decode contents API response for {path}@{ref}: {e}",
                path=path,
                ref=ref,
                context={"repo": self.repo},
            ) from e

    async def _fetch_raw(self, client: httpx.AsyncClient, path: str, ref: str) -> bytes:
        resp = await client.get(
            f"{self.raw_url}/{self.repo}/{ref}/{path}",
            follow_redirects=True,
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.content
