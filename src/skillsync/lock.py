"""Lockfile storage for resolved source commits.

The lockfile pins every declared source to a full commit id, so repeated
installs fetch exactly the same content until an explicit update:

    {
      "sources": {
        "acme/skills": {
          "resolvedRef": "0123456789abcdef0123456789abcdef01234567",
          "skills": ["alpha", "beta"]
        }
      }
    }

All update helpers are pure and return a new lock.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import ValidationError

from skillsync.log import get_logger
from skillsync.models import LockedSource, SourcesLock
from skillsync.paths import LOCKFILE_NAME, write_file_content


if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path


logger = get_logger(__name__)


def create_empty_lock() -> SourcesLock:
    """Create a lock without entries."""
    return SourcesLock()


def lockfile_path(base_dir: Path) -> Path:
    """Location of the lockfile for a project."""
    return base_dir / LOCKFILE_NAME


def read_lock_file(base_dir: Path) -> SourcesLock:
    """Read the lockfile from disk.

    Returns:
        The parsed lock, or an empty lock if the file is missing or invalid
    """
    path = lockfile_path(base_dir)
    if not path.is_file():
        logger.debug("No sources lockfile found, starting fresh", path=str(path))
        return create_empty_lock()

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        msg = "Failed to read sources lockfile, starting fresh"
        logger.warning(msg, path=str(path), error=str(e))
        return create_empty_lock()

    try:
        return SourcesLock.model_validate_json(content)
    except ValidationError as e:
        logger.warning(
            "Invalid sources lockfile format, starting fresh",
            path=str(path),
            errors=e.error_count(),
        )
        return create_empty_lock()


def serialize_lock(lock: SourcesLock) -> str:
    """Render a lock in its canonical on-disk form (indented, trailing newline)."""
    return lock.model_dump_json(by_alias=True, indent=2) + "\n"


def write_lock_file(base_dir: Path, lock: SourcesLock) -> None:
    """Write the lockfile to disk."""
    path = lockfile_path(base_dir)
    write_file_content(path, serialize_lock(lock))
    logger.debug("Wrote sources lockfile", path=str(path))


def get_locked_source(lock: SourcesLock, source_key: str) -> LockedSource | None:
    """Get the entry for a source key, if any."""
    return lock.sources.get(source_key)


def set_locked_source(lock: SourcesLock, source_key: str, entry: LockedSource) -> SourcesLock:
    """Return a new lock with one entry added or replaced.

    Existing keys keep their position.
    """
    return SourcesLock(sources={**lock.sources, source_key: entry})


def prune_lock(lock: SourcesLock, source_keys: Iterable[str]) -> SourcesLock:
    """Return a new lock containing only the given keys, in the given order."""
    keys = list(dict.fromkeys(source_keys))
    for key in lock.sources:
        if key not in keys:
            logger.debug("Pruned stale lockfile entry", source=key)
    return SourcesLock(sources={k: lock.sources[k] for k in keys if k in lock.sources})
