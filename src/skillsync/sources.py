"""Declarative multi-source skill installation backed by the lockfile.

Declared sources are fetched into ``.skillsync/skills/.curated/``, which is
wiped and rebuilt on every run. Each source is pinned to a commit in
``skillsync.lock`` so that repeated runs are reproducible.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
import shutil
import tempfile
from typing import TYPE_CHECKING

from skillsync.conflicts import MAX_FILE_SIZE, SkillPrecedence, filter_oversized
from skillsync.exceptions import (
    FrozenLockError,
    PathTraversalError,
    ProviderApiError,
    SkillsyncError,
)
from skillsync.github import log_auth_hints
from skillsync.lock import (
    create_empty_lock,
    get_locked_source,
    prune_lock,
    read_lock_file,
    serialize_lock,
    set_locked_source,
    write_lock_file,
)
from skillsync.log import get_logger
from skillsync.models import LockedSource, RemoteEntryType, SyncResult
from skillsync.paths import (
    CURATED_DIR_NAME,
    CURATED_SKILLS_DIR,
    SKILLS_DIR,
    check_path_traversal,
    list_subdirectory_names,
    publish_directory,
    relative_remote_path,
    remove_directory,
    validate_item_name,
    write_file_content,
)
from skillsync.providers import create_client, ensure_supported
from skillsync.source_parser import parse_source
from skillsync.tree import (
    FETCH_CONCURRENCY_LIMIT,
    create_limiter,
    download_files,
    list_directory_recursive,
)


if TYPE_CHECKING:
    import asyncio
    from collections.abc import Sequence

    from skillsync.config import SourceEntry
    from skillsync.models import RemoteEntry, SourcesLock
    from skillsync.providers import GitProviderClient


logger = get_logger(__name__)

DEFAULT_SKILLS_PATH = "skills"


@dataclass
class _SourceOutcome:
    locked: LockedSource
    skill_names: list[str] = field(default_factory=list)


def get_local_skill_names(base_dir: Path) -> set[str]:
    """Names of locally authored skills (everything except the curated area)."""
    return list_subdirectory_names(base_dir / SKILLS_DIR) - {CURATED_DIR_NAME}


async def resolve_and_fetch_sources(
    sources: Sequence[SourceEntry],
    base_dir: Path | str,
    *,
    update_sources: bool = False,
    skip_sources: bool = False,
    frozen: bool = False,
    token: str | None = None,
    client: GitProviderClient | None = None,
    max_file_size: int = MAX_FILE_SIZE,
    concurrency: int = FETCH_CONCURRENCY_LIMIT,
) -> SyncResult:
    """Fetch the skills of all declared sources and update the lockfile.

    Sources are processed one after another in declaration order. A failing
    source is logged and contributes nothing; the remaining sources still run.

    Args:
        sources: Declared sources, first declared wins on name clashes
        base_dir: Project root containing ``.skillsync/`` and the lockfile
        update_sources: Ignore locked commits and re-resolve every ref
        skip_sources: Do nothing (use whatever is on disk)
        frozen: Require a lock entry for every source and never touch the lockfile
        token: Explicit API token (falls back to the environment)
        client: Provider client to use instead of creating one
        max_file_size: Largest file that will be fetched, in bytes
        concurrency: Maximum in-flight requests per source

    Returns:
        Number of fetched skills and processed sources

    Raises:
        FrozenLockError: In frozen mode, if a source has no lock entry
    """
    if not sources:
        return SyncResult()
    if skip_sources:
        logger.info("Skipping source fetching (--skip-sources)")
        return SyncResult()
    if frozen and update_sources:
        msg = "Frozen installs cannot update sources"
        raise ValueError(msg)

    base = Path(base_dir)
    lock = read_lock_file(base)
    original_lock = serialize_lock(lock)
    if update_sources:
        lock = create_empty_lock()
    if frozen:
        _check_frozen(lock, sources)

    precedence = SkillPrecedence(get_local_skill_names(base))
    curated_dir = base / CURATED_SKILLS_DIR
    remove_directory(curated_dir)

    owns_client = client is None
    if client is None:
        client = create_client("github", token=token)

    total = 0
    try:
        for entry in sources:
            try:
                outcome = await _fetch_source(
                    entry,
                    client=client,
                    curated_dir=curated_dir,
                    lock=lock,
                    precedence=precedence,
                    update_sources=update_sources,
                    max_file_size=max_file_size,
                    limiter=create_limiter(concurrency),
                )
            except ProviderApiError as e:
                log_auth_hints(e)
                logger.error("Failed to fetch source", source=entry.source)  # noqa: TRY400
                continue
            except SkillsyncError as e:
                msg = "Failed to fetch source"
                logger.error(msg, source=entry.source, error=str(e))  # noqa: TRY400
                continue
            except Exception:
                logger.exception("Failed to fetch source", source=entry.source)
                continue

            lock = set_locked_source(lock, entry.source, outcome.locked)
            precedence.record(outcome.skill_names)
            total += len(outcome.skill_names)
    finally:
        if owns_client:
            await client.aclose()

    lock = prune_lock(lock, [entry.source for entry in sources])
    if frozen:
        logger.debug("Frozen install, leaving lockfile untouched")
    elif serialize_lock(lock) != original_lock:
        write_lock_file(base, lock)
    else:
        logger.debug("Lockfile unchanged, skipping write")

    return SyncResult(fetched_skill_count=total, sources_processed=len(sources))


def _check_frozen(lock: SourcesLock, sources: Sequence[SourceEntry]) -> None:
    missing = [e.source for e in sources if get_locked_source(lock, e.source) is None]
    if missing:
        msg = (
            "Frozen install failed: lockfile is missing entries for "
            f"{', '.join(missing)}. Run 'skillsync install --update-sources' first."
        )
        raise FrozenLockError(msg)


async def _fetch_source(
    entry: SourceEntry,
    *,
    client: GitProviderClient,
    curated_dir: Path,
    lock: SourcesLock,
    precedence: SkillPrecedence,
    update_sources: bool,
    max_file_size: int,
    limiter: asyncio.Semaphore,
) -> _SourceOutcome:
    """Fetch the skills of one source into the curated directory."""
    spec = parse_source(entry.source)
    ensure_supported(spec.provider)
    source_key = entry.source

    locked = get_locked_source(lock, source_key)
    if locked and not update_sources:
        sha = locked.resolved_ref
        logger.debug("Using locked ref", source=source_key, sha=sha)
    else:
        async with limiter:
            requested = spec.ref or await client.get_default_branch(spec.owner, spec.repo)
            sha = await client.resolve_ref_to_sha(spec.owner, spec.repo, requested)
        logger.debug("Resolved ref", source=source_key, ref=requested, sha=sha)

    skills_path = spec.path or DEFAULT_SKILLS_PATH
    try:
        async with limiter:
            entries = await client.list_directory(spec.owner, spec.repo, skills_path, sha)
    except ProviderApiError as e:
        if not e.is_not_found:
            raise
        logger.warning("No skills directory found in source", source=source_key, path=skills_path)
        return _SourceOutcome(LockedSource(resolved_ref=sha))

    skill_dirs = [e for e in entries if e.type == RemoteEntryType.DIR and entry.wants(e.name)]
    if not entry.fetches_all:
        available = {d.name for d in skill_dirs}
        for name in entry.skills or []:
            if name not in available:
                logger.warning("Requested skill not found in source", skill=name, source=source_key)

    fetched: list[str] = []
    try:
        for skill_dir in skill_dirs:
            try:
                validate_item_name(skill_dir.name)
            except PathTraversalError as e:
                logger.warning("Skipping skill with invalid name", source=source_key, error=str(e))
                continue
            if not precedence.should_fetch(skill_dir.name, source_key):
                continue

            await _fetch_skill(
                client,
                spec.owner,
                spec.repo,
                skill_dir,
                sha,
                curated_dir=curated_dir,
                max_file_size=max_file_size,
                limiter=limiter,
            )
            fetched.append(skill_dir.name)
            logger.debug("Fetched skill", skill=skill_dir.name, source=source_key)
    except BaseException:
        # A failed source contributes nothing
        for name in fetched:
            remove_directory(curated_dir / name)
        raise

    logger.info(
        "Fetched skills from source",
        source=source_key,
        count=len(fetched),
        skills=", ".join(fetched) or "(none)",
    )
    return _SourceOutcome(LockedSource(resolved_ref=sha, skills=fetched), fetched)


async def _fetch_skill(
    client: GitProviderClient,
    owner: str,
    repo: str,
    skill_dir: RemoteEntry,
    ref: str,
    *,
    curated_dir: Path,
    max_file_size: int,
    limiter: asyncio.Semaphore,
) -> None:
    """Download one skill directory and publish it atomically."""
    files = await list_directory_recursive(client, owner, repo, skill_dir.path, ref, limiter)
    files = filter_oversized(files, max_file_size)

    target = curated_dir / skill_dir.name
    planned: list[tuple[str, RemoteEntry]] = []
    for file in files:
        relative = relative_remote_path(file.path, skill_dir.path)
        try:
            check_path_traversal(relative, target)
        except PathTraversalError as e:
            logger.warning("Skipping file with unsafe path", path=file.path, error=str(e))
            continue
        planned.append((relative, file))

    contents = await download_files(client, owner, repo, [f for _, f in planned], ref, limiter)

    curated_dir.mkdir(parents=True, exist_ok=True)
    staging = Path(tempfile.mkdtemp(prefix=f".{skill_dir.name}-", dir=curated_dir))
    try:
        for (relative, _), content in zip(planned, contents, strict=True):
            write_file_content(check_path_traversal(relative, staging), content)
        publish_directory(staging, target)
    finally:
        if staging.exists():
            shutil.rmtree(staging)

