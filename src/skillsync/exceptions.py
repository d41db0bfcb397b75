"""Exceptions raised by the source synchronization engine."""

from __future__ import annotations


HTTP_UNAUTHORIZED = 401
HTTP_FORBIDDEN = 403
HTTP_NOT_FOUND = 404
HTTP_UNPROCESSABLE = 422


class SkillsyncError(Exception):
    """Base class for all skillsync errors."""


class SourceSpecError(SkillsyncError, ValueError):
    """A source string could not be parsed.

    Covers malformed strings, disallowed hosts and empty ref/path segments.
    Always raised before any network access.
    """


class ProviderNotSupportedError(SkillsyncError):
    """The source points at a provider without a client implementation."""


class ProviderApiError(SkillsyncError):
    """A Git hosting API call failed."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        api_message: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.api_message = api_message

    @property
    def is_auth_error(self) -> bool:
        """Whether the failure was an authentication/authorization problem."""
        return self.status_code in (HTTP_UNAUTHORIZED, HTTP_FORBIDDEN)

    @property
    def is_not_found(self) -> bool:
        """Whether the requested repository, ref or path does not exist."""
        return self.status_code == HTTP_NOT_FOUND


class PathTraversalError(SkillsyncError, ValueError):
    """A remote name or path would escape its intended root directory."""


class SizeLimitError(SkillsyncError):
    """A remote file is larger than the configured maximum."""

    def __init__(self, path: str, size: int, limit: int) -> None:
        msg = f"File {path!r} is {format_size(size)}, exceeding the {format_size(limit)} limit"
        super().__init__(msg)
        self.path = path
        self.size = size
        self.limit = limit


class FrozenLockError(SkillsyncError):
    """A frozen install found sources without a lockfile entry."""


class ConfigError(SkillsyncError):
    """The declarative configuration file is missing or invalid."""


def format_size(size: int) -> str:
    """Format a byte count in MiB with two decimals."""
    return f"{size / 1024 / 1024:.2f}MB"
