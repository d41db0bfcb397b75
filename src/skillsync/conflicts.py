"""Rules deciding which remote items are fetched and which local files are replaced."""

from __future__ import annotations

from typing import TYPE_CHECKING

from skillsync.exceptions import SizeLimitError
from skillsync.log import get_logger
from skillsync.models import ConflictStrategy, FetchStatus


if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from pathlib import Path

    from skillsync.models import RemoteEntry


logger = get_logger(__name__)

MAX_FILE_SIZE = 10 * 1024 * 1024


class SkillPrecedence:
    """Precedence between local skills and skills from several sources.

    Local skills always win. Among remote sources the first declared one
    wins; later sources offering the same name are skipped with a warning.
    """

    def __init__(self, local_names: Iterable[str] = ()) -> None:
        self.local_names = frozenset(local_names)
        self._fetched: set[str] = set()

    @property
    def fetched_names(self) -> frozenset[str]:
        """Skill names fetched by the sources processed so far."""
        return frozenset(self._fetched)

    def should_fetch(self, name: str, source_key: str) -> bool:
        """Check whether a remote skill candidate should be fetched."""
        if name in self.local_names:
            logger.debug(
                "Skipping remote skill, local skill takes precedence",
                skill=name,
                source=source_key,
            )
            return False
        if name in self._fetched:
            logger.warning(
                "Skipping duplicate skill, already fetched from another source",
                skill=name,
                source=source_key,
            )
            return False
        return True

    def record(self, names: Iterable[str]) -> None:
        """Register the skills of a completely processed source."""
        self._fetched.update(names)


def check_file_size(entry: RemoteEntry, max_size: int = MAX_FILE_SIZE) -> None:
    """Raise SizeLimitError if a remote file is larger than allowed."""
    if entry.size > max_size:
        raise SizeLimitError(entry.path, entry.size, max_size)


def filter_oversized(
    entries: Sequence[RemoteEntry],
    max_size: int = MAX_FILE_SIZE,
) -> list[RemoteEntry]:
    """Drop entries exceeding the size limit, warning about each one."""
    kept: list[RemoteEntry] = []
    for entry in entries:
        try:
            check_file_size(entry, max_size)
        except SizeLimitError as e:
            logger.warning(
                "Skipping oversized file",
                path=entry.path,
                size=entry.size,
                limit=max_size,
                reason=str(e),
            )
            continue
        kept.append(entry)
    return kept


def resolve_file_status(path: Path, strategy: ConflictStrategy) -> FetchStatus:
    """Decide what happens to a local output file.

    Returns:
        SKIPPED if the file exists and must be kept, otherwise the status the
        write will have (CREATED or OVERWRITTEN)
    """
    if not path.exists():
        return FetchStatus.CREATED
    if strategy == ConflictStrategy.SKIP:
        return FetchStatus.SKIPPED
    return FetchStatus.OVERWRITTEN
