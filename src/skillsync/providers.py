"""Git provider protocol and client factory."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from skillsync.exceptions import ProviderNotSupportedError
from skillsync.github import GitHubClient


if TYPE_CHECKING:
    from skillsync.models import GitProvider, RemoteEntry


class GitProviderClient(Protocol):
    """Read-only access to repository contents on a Git hosting provider."""

    async def get_default_branch(self, owner: str, repo: str) -> str:
        """Get the default branch name of a repository."""
        ...

    async def validate_repository(self, owner: str, repo: str) -> bool:
        """Check that a repository exists and is accessible."""
        ...

    async def resolve_ref_to_sha(self, owner: str, repo: str, ref: str) -> str:
        """Resolve a branch, tag or commit id to a full commit id."""
        ...

    async def list_directory(
        self, owner: str, repo: str, path: str, ref: str | None = None
    ) -> list[RemoteEntry]:
        """List one level of a remote directory."""
        ...

    async def get_file_content(
        self, owner: str, repo: str, path: str, ref: str | None = None
    ) -> str:
        """Get the decoded text content of a remote file."""
        ...

    async def aclose(self) -> None:
        """Release network resources."""
        ...


def create_client(provider: GitProvider, *, token: str | None = None) -> GitHubClient:
    """Create the API client for a provider.

    The token falls back to the GITHUB_TOKEN and GH_TOKEN environment variables.

    Raises:
        ProviderNotSupportedError: For providers without an implementation
    """
    ensure_supported(provider)
    return GitHubClient(token=GitHubClient.resolve_token(token))


def ensure_supported(provider: GitProvider) -> None:
    """Raise for providers that cannot be fetched from."""
    if provider != "github":
        msg = f"{provider!r} sources are not yet supported, only GitHub can be fetched."
        raise ProviderNotSupportedError(msg)
