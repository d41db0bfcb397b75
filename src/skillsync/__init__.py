"""Remote source synchronization for AI assistant configuration.

This package provides:
- Parsing of source strings (URLs and ``owner/repo@ref:path`` shorthands)
- A GitHub contents API client with bounded, recursive tree fetching
- A lockfile pinning every declared source to a commit id
- Precedence rules between local skills and several remote sources
- The declarative multi-source flow and the ad-hoc single-source fetch
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from skillsync.config import SkillsyncConfig, SourceEntry, load_config
from skillsync.conflicts import MAX_FILE_SIZE, SkillPrecedence
from skillsync.exceptions import (
    ConfigError,
    FrozenLockError,
    PathTraversalError,
    ProviderApiError,
    ProviderNotSupportedError,
    SizeLimitError,
    SkillsyncError,
    SourceSpecError,
)
from skillsync.fetch import fetch_files, format_fetch_summary
from skillsync.github import GitHubClient
from skillsync.lock import read_lock_file, write_lock_file
from skillsync.models import (
    ConflictStrategy,
    FetchStatus,
    FetchSummary,
    LockedSource,
    RemoteEntry,
    SourceSpec,
    SourcesLock,
    SyncResult,
)
from skillsync.providers import GitProviderClient, create_client
from skillsync.source_parser import parse_source
from skillsync.sources import resolve_and_fetch_sources
from skillsync.tree import FETCH_CONCURRENCY_LIMIT, list_directory_recursive

try:
    __version__ = version("skillsync")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    # Limits
    "FETCH_CONCURRENCY_LIMIT",
    "MAX_FILE_SIZE",
    # Errors
    "ConfigError",
    # Models
    "ConflictStrategy",
    "FetchStatus",
    "FetchSummary",
    "FrozenLockError",
    # Providers
    "GitHubClient",
    "GitProviderClient",
    "LockedSource",
    "PathTraversalError",
    "ProviderApiError",
    "ProviderNotSupportedError",
    "RemoteEntry",
    "SizeLimitError",
    # Config
    "SkillPrecedence",
    "SkillsyncConfig",
    "SkillsyncError",
    "SourceEntry",
    "SourceSpec",
    "SourceSpecError",
    "SourcesLock",
    "SyncResult",
    "__version__",
    "create_client",
    # Flows
    "fetch_files",
    "format_fetch_summary",
    "list_directory_recursive",
    "load_config",
    "parse_source",
    # Lockfile
    "read_lock_file",
    "resolve_and_fetch_sources",
    "write_lock_file",
]
