"""GitHub REST API client for repository content access."""

from __future__ import annotations

import base64
import os
from typing import TYPE_CHECKING, Any, Self
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from skillsync.exceptions import ProviderApiError
from skillsync.log import get_logger
from skillsync.models import RemoteEntry


if TYPE_CHECKING:
    from types import TracebackType


logger = get_logger(__name__)

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_TIMEOUT = 30.0
TOKEN_ENV_VARS = ("GITHUB_TOKEN", "GH_TOKEN")
JSON_MEDIA_TYPE = "application/vnd.github+json"
RAW_MEDIA_TYPE = "application/vnd.github.raw+json"
API_VERSION = "2022-11-28"


class RepoInfo(BaseModel):
    """Subset of the repository resource we rely on."""

    model_config = ConfigDict(extra="ignore")

    default_branch: str


AUTH_TIPS = (
    "Tip: Set GITHUB_TOKEN or GH_TOKEN environment variable "
    "for private repositories or better rate limits.",
    "Tip: If you use GitHub CLI, you can use "
    "`GITHUB_TOKEN=$(gh auth token) skillsync fetch ...`",
)


def log_auth_hints(error: ProviderApiError) -> None:
    """Log a provider error, plus token setup tips for 401/403 responses."""
    logger.error("GitHub API error", error=str(error), status_code=error.status_code)
    if error.is_auth_error:
        for tip in AUTH_TIPS:
            logger.info(tip)


class GitHubClient:
    """Client for the GitHub repository contents API.

    One instance is created per run and handed to every component that needs
    network access. Use it as an async context manager to release the
    underlying connection pool:

        async with GitHubClient(token=GitHubClient.resolve_token()) as client:
            sha = await client.resolve_ref_to_sha("owner", "repo", "main")
    """

    def __init__(
        self,
        *,
        token: str | None = None,
        base_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            token: Bearer token sent with every request
            base_url: API base URL (defaults to api.github.com, must be HTTPS)
            timeout: Per-request timeout in seconds
            transport: Custom httpx transport (mainly for testing)
        """
        self.base_url = (base_url or DEFAULT_API_URL).rstrip("/")
        if not self.base_url.startswith("https://"):
            # Tokens are never sent in clear text
            msg = "GitHub API base URL must use HTTPS"
            raise ProviderApiError(msg)
        self.has_token = bool(token)
        headers = {"Accept": JSON_MEDIA_TYPE, "X-GitHub-Api-Version": API_VERSION}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
            follow_redirects=True,
        )

    @staticmethod
    def resolve_token(explicit_token: str | None = None) -> str | None:
        """Get an authentication token.

        Precedence: explicit value, then GITHUB_TOKEN, then GH_TOKEN.
        """
        if explicit_token:
            return explicit_token
        for var in TOKEN_ENV_VARS:
            if value := os.environ.get(var):
                return value
        return None

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def get_repo_info(self, owner: str, repo: str) -> RepoInfo:
        """Get repository information."""
        data = await self._get_json(f"/repos/{owner}/{repo}")
        try:
            return RepoInfo.model_validate(data)
        except ValidationError as e:
            msg = f"Invalid repository info response: {e}"
            raise ProviderApiError(msg) from e

    async def get_default_branch(self, owner: str, repo: str) -> str:
        """Get the default branch of a repository."""
        info = await self.get_repo_info(owner, repo)
        return info.default_branch

    async def validate_repository(self, owner: str, repo: str) -> bool:
        """Check that a repository exists and is accessible.

        Returns:
            False if the repository does not exist, True otherwise

        Raises:
            ProviderApiError: For failures other than 404
        """
        try:
            await self.get_repo_info(owner, repo)
        except ProviderApiError as e:
            if e.is_not_found:
                return False
            raise
        return True

    async def resolve_ref_to_sha(self, owner: str, repo: str, ref: str) -> str:
        """Resolve a branch, tag or commit id to a full commit id."""
        data = await self._get_json(f"/repos/{owner}/{repo}/commits/{quote(ref, safe='')}")
        sha = data.get("sha") if isinstance(data, dict) else None
        if not isinstance(sha, str):
            msg = f"Invalid commit response for ref {ref!r}"
            raise ProviderApiError(msg)
        return sha

    async def list_directory(
        self,
        owner: str,
        repo: str,
        path: str,
        ref: str | None = None,
    ) -> list[RemoteEntry]:
        """List one level of a directory.

        Items the API returns in a shape we do not understand are dropped.

        Raises:
            ProviderApiError: With status 404 if the path does not exist,
                or without status if the path is a file
        """
        data = await self._get_json(self._contents_url(owner, repo, path), ref=ref)
        if not isinstance(data, list):
            msg = f"Path {path!r} is not a directory"
            raise ProviderApiError(msg)

        entries: list[RemoteEntry] = []
        for item in data:
            try:
                entries.append(RemoteEntry.model_validate(item))
            except ValidationError:
                logger.debug("Ignoring unparseable directory entry", path=path, item=item)
        return entries

    async def get_file_content(
        self,
        owner: str,
        repo: str,
        path: str,
        ref: str | None = None,
    ) -> str:
        """Get the decoded text content of a file."""
        response = await self._request(
            self._contents_url(owner, repo, path),
            ref=ref,
            headers={"Accept": RAW_MEDIA_TYPE},
        )
        if "json" not in response.headers.get("content-type", ""):
            return response.text
        # Some proxies ignore the raw media type and hand back the JSON resource
        try:
            data = response.json()
        except ValueError:
            return response.text
        if isinstance(data, dict) and data.get("encoding") == "base64" and "content" in data:
            return base64.b64decode(data["content"]).decode("utf-8")
        return response.text

    @staticmethod
    def _contents_url(owner: str, repo: str, path: str) -> str:
        clean = path.strip("/")
        if clean in ("", "."):
            clean = ""
        return f"/repos/{owner}/{repo}/contents/{quote(clean, safe='/')}"

    async def _get_json(self, url: str, *, ref: str | None = None) -> Any:
        response = await self._request(url, ref=ref)
        return response.json()

    async def _request(
        self,
        url: str,
        *,
        ref: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        params = {"ref": ref} if ref else None
        try:
            response = await self._client.get(url, params=params, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise self._status_error(e.response) from e
        except httpx.TimeoutException as e:
            msg = f"GitHub API request timed out: {url}"
            raise ProviderApiError(msg) from e
        except httpx.RequestError as e:
            msg = f"Failed to connect to GitHub API: {e}"
            raise ProviderApiError(msg) from e
        return response

    def _status_error(self, response: httpx.Response) -> ProviderApiError:
        """Convert an error response into a ProviderApiError."""
        status = response.status_code
        api_message: str | None = None
        try:
            data = response.json()
        except ValueError:
            data = None
        if isinstance(data, dict) and isinstance(data.get("message"), str):
            api_message = data["message"]
        base = api_message or f"HTTP {status}"

        match status:
            case 401:
                msg = f"Authentication failed: {base}. Check your GitHub token."
            case 403 if "rate limit" in base.lower():
                hint = "Try again later." if self.has_token else "Consider using a GitHub token."
                msg = f"GitHub API rate limit exceeded. {hint}"
            case 403:
                msg = f"Access forbidden: {base}. Check repository permissions."
            case 404:
                msg = f"Not found: {base}"
            case 422:
                msg = f"Invalid request: {base}"
            case _:
                msg = f"GitHub API error: {base}"
        return ProviderApiError(msg, status, api_message)

