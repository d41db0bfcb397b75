"""Recursive remote directory walking under a shared concurrency limit."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from skillsync.log import get_logger
from skillsync.exceptions import PathTraversalError
from skillsync.models import RemoteEntryType
from skillsync.paths import validate_item_name


if TYPE_CHECKING:
    from collections.abc import Awaitable, Iterable, Sequence

    from skillsync.models import RemoteEntry
    from skillsync.providers import GitProviderClient


logger = get_logger(__name__)

FETCH_CONCURRENCY_LIMIT = 10


def create_limiter(limit: int = FETCH_CONCURRENCY_LIMIT) -> asyncio.Semaphore:
    """Create the limiter shared by all network calls of one source."""
    if limit < 1:
        msg = f"Concurrency limit must be at least 1, got {limit}"
        raise ValueError(msg)
    return asyncio.Semaphore(limit)


async def gather_all[T](coros: Iterable[Awaitable[T]]) -> list[T]:
    """Run awaitables concurrently, cancelling the rest on the first failure.

    Unlike a bare ``asyncio.gather``, no sibling keeps running after an error,
    and the original exception is raised instead of an ExceptionGroup.

    Returns:
        Results in the same order as the input
    """
    try:
        async with asyncio.TaskGroup() as tg:
            tasks = [tg.create_task(_as_coroutine(c)) for c in coros]
    except ExceptionGroup as eg:
        exc = eg.exceptions[0]
        raise exc  # noqa: B904
    return [task.result() for task in tasks]


async def _as_coroutine[T](awaitable: Awaitable[T]) -> T:
    return await awaitable


async def list_directory_recursive(
    client: GitProviderClient,
    owner: str,
    repo: str,
    path: str,
    ref: str | None,
    limiter: asyncio.Semaphore,
) -> list[RemoteEntry]:
    """List all files below a remote directory.

    Each listing call holds a limiter slot only while it is in flight, so the
    bound applies no matter how deep or wide the tree is. A failure in any
    subtree propagates; a partial listing is never returned.

    Args:
        client: Provider client
        owner: Repository owner
        repo: Repository name
        path: Directory path relative to the repository root
        ref: Ref to list at
        limiter: Semaphore shared with every other call for this source

    Returns:
        File entries, files of a directory before those of its subdirectories
    """
    async with limiter:
        entries = await client.list_directory(owner, repo, path, ref)

    files: list[RemoteEntry] = []
    subdirs: list[RemoteEntry] = []
    for entry in entries:
        match entry.type:
            case RemoteEntryType.FILE:
                files.append(entry)
            case RemoteEntryType.DIR if _is_child_dir(entry, path):
                subdirs.append(entry)
            case RemoteEntryType.DIR:
                logger.warning("Skipping directory with unsafe name", path=entry.path)
            case _:
                logger.warning(
                    "Skipping unsupported remote entry",
                    path=entry.path,
                    entry_type=str(entry.type),
                )

    nested = await gather_all(
        list_directory_recursive(client, owner, repo, d.path, ref, limiter) for d in subdirs
    )
    for sub_files in nested:
        files.extend(sub_files)
    return files


def _is_child_dir(entry: RemoteEntry, parent: str) -> bool:
    """Check that a listed directory is a direct, safely named child of its parent."""
    try:
        validate_item_name(entry.name)
    except PathTraversalError:
        return False
    base = parent.strip("/")
    expected = entry.name if base in ("", ".") else f"{base}/{entry.name}"
    return entry.path == expected


async def download_files(
    client: GitProviderClient,
    owner: str,
    repo: str,
    entries: Sequence[RemoteEntry],
    ref: str | None,
    limiter: asyncio.Semaphore,
) -> list[str]:
    """Fetch the content of several files concurrently.

    Returns:
        File contents in the order of ``entries``
    """

    async def fetch_one(entry: RemoteEntry) -> str:
        async with limiter:
            return await client.get_file_content(owner, repo, entry.path, ref)

    return await gather_all(fetch_one(entry) for entry in entries)
