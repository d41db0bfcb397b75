"""Parsing of source strings into structured source specs.

Supported formats:
- URL: ``https://github.com/owner/repo[/tree|blob/<ref>[/<path>]]``
- Prefixed shorthand: ``github:owner/repo``, ``gitlab:owner/repo``
- Bare shorthand (GitHub): ``owner/repo``
- With ref: ``owner/repo@ref``
- With path: ``owner/repo:path``
- Combined: ``owner/repo@ref:path``
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from skillsync.exceptions import SourceSpecError
from skillsync.models import ALL_GIT_PROVIDERS, SourceSpec


if TYPE_CHECKING:
    from skillsync.models import GitProvider


# Exact host names only, no suffix matching
PROVIDER_HOSTS: dict[str, GitProvider] = {
    "github.com": "github",
    "www.github.com": "github",
    "gitlab.com": "gitlab",
    "www.gitlab.com": "gitlab",
}
REF_SEGMENTS = frozenset({"tree", "blob"})
MIN_URL_SEGMENTS = 2


def parse_source(source: str) -> SourceSpec:
    """Parse a source string into a SourceSpec.

    Args:
        source: Source in URL, prefixed or bare shorthand form

    Returns:
        The parsed source spec

    Raises:
        SourceSpecError: If the string is malformed or names an unknown host
    """
    source = source.strip()
    if source.startswith(("http://", "https://")):
        return _parse_url(source)

    if ":" in source:
        prefix, _, rest = source.partition(":")
        if prefix in ALL_GIT_PROVIDERS:
            provider: GitProvider = prefix  # type: ignore[assignment]
            return _parse_shorthand(rest, provider=provider, original=source)
        # Not a provider prefix, so the colon introduces a path (owner/repo:path)
    return _parse_shorthand(source, provider="github", original=source)


def _parse_url(url: str) -> SourceSpec:
    """Parse URL format into a SourceSpec."""
    try:
        parts = urlsplit(url)
        host = (parts.hostname or "").lower()
    except ValueError as e:
        msg = f"Invalid source URL: {url}"
        raise SourceSpecError(msg) from e

    provider = PROVIDER_HOSTS.get(host)
    if provider is None:
        supported = ", ".join(ALL_GIT_PROVIDERS)
        msg = f"Unknown Git provider for host: {host!r}. Supported providers: {supported}"
        raise SourceSpecError(msg)

    segments = [s for s in parts.path.split("/") if s]
    if len(segments) < MIN_URL_SEGMENTS:
        msg = f"Invalid {provider} URL: {url}. Expected format: https://{host}/owner/repo"
        raise SourceSpecError(msg)

    owner = segments[0]
    repo = _strip_git_suffix(segments[1])
    if not repo:
        msg = f"Invalid source: {url}. Both owner and repo are required."
        raise SourceSpecError(msg)

    rest = segments[2:]
    if not rest or rest[0] not in REF_SEGMENTS:
        return SourceSpec(provider=provider, owner=owner, repo=repo)
    if len(rest) < 2:  # noqa: PLR2004
        msg = f"Invalid source: {url}. Ref cannot be empty after '/{rest[0]}/'."
        raise SourceSpecError(msg)
    path = "/".join(rest[2:]) or None
    return SourceSpec(provider=provider, owner=owner, repo=repo, ref=rest[1], path=path)


def _parse_shorthand(source: str, *, provider: GitProvider, original: str) -> SourceSpec:
    """Parse ``owner/repo[@ref][:path]``."""
    remaining = source
    path: str | None = None
    ref: str | None = None

    # The path comes last but is split off first, so refs may not contain ':'
    if ":" in remaining:
        remaining, _, path = remaining.partition(":")
        if not path:
            msg = f"Invalid source: {original}. Path cannot be empty after ':'."
            raise SourceSpecError(msg)

    if "@" in remaining:
        remaining, _, ref = remaining.partition("@")
        if not ref:
            msg = f"Invalid source: {original}. Ref cannot be empty after '@'."
            raise SourceSpecError(msg)

    if "/" not in remaining:
        msg = (
            f"Invalid source: {original}. "
            "Expected format: owner/repo, owner/repo@ref, or owner/repo:path"
        )
        raise SourceSpecError(msg)

    owner, _, repo = remaining.partition("/")
    repo = _strip_git_suffix(repo)
    if not owner or not repo or "/" in repo:
        msg = f"Invalid source: {original}. Both owner and repo are required."
        raise SourceSpecError(msg)

    return SourceSpec(provider=provider, owner=owner, repo=repo, ref=ref, path=path)


def _strip_git_suffix(repo: str) -> str:
    return repo.removesuffix(".git")
