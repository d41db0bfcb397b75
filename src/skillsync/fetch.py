"""Ad-hoc fetching of feature files from a single remote source."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from skillsync.conflicts import MAX_FILE_SIZE, filter_oversized, resolve_file_status
from skillsync.exceptions import PathTraversalError, ProviderApiError
from skillsync.log import get_logger
from skillsync.models import (
    ConflictStrategy,
    FetchFileResult,
    FetchStatus,
    FetchSummary,
    RemoteEntryType,
)
from skillsync.paths import (
    SKILLSYNC_DIR,
    check_path_traversal,
    relative_remote_path,
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

    from skillsync.models import RemoteEntry, SourceSpec
    from skillsync.providers import GitProviderClient


logger = get_logger(__name__)

# Feature name -> directory (recursive) or single file below the source path
FEATURE_PATHS: dict[str, str] = {
    "rules": "rules",
    "commands": "commands",
    "subagents": "subagents",
    "skills": "skills",
    "ignore": ".aiignore",
    "mcp": "mcp.json",
    "hooks": "hooks.json",
}
FILE_FEATURES = frozenset({"ignore", "mcp", "hooks"})
ALL_FEATURES = tuple(FEATURE_PATHS)


def resolve_features(features: Sequence[str] | None = None) -> list[str]:
    """Resolve requested feature names, handling the ``*`` wildcard.

    Unknown names are dropped with a warning.
    """
    if not features or "*" in features:
        return list(ALL_FEATURES)
    enabled: list[str] = []
    for feature in dict.fromkeys(features):
        if feature in FEATURE_PATHS:
            enabled.append(feature)
        else:
            known = ", ".join(ALL_FEATURES)
            logger.warning("Ignoring unknown feature", feature=feature, known=known)
    return enabled


async def fetch_files(
    source: str,
    *,
    ref: str | None = None,
    path: str | None = None,
    output: str = SKILLSYNC_DIR,
    conflict: ConflictStrategy = ConflictStrategy.OVERWRITE,
    features: Sequence[str] | None = None,
    token: str | None = None,
    base_dir: Path | str = ".",
    client: GitProviderClient | None = None,
    max_file_size: int = MAX_FILE_SIZE,
    concurrency: int = FETCH_CONCURRENCY_LIMIT,
) -> FetchSummary:
    """Fetch feature files (rules, commands, skills, ...) from a repository.

    Feature directories are looked up directly below the source path. Errors
    are not recovered from here; the caller decides how to report them.

    Args:
        source: Source string, see parse_source
        ref: Ref to fetch (overrides a ref in the source string)
        path: Path inside the repository (overrides a path in the source string)
        output: Output directory, relative to base_dir
        conflict: What to do with files that already exist locally
        features: Feature names to fetch (None or ``*`` for all)
        token: Explicit API token (falls back to the environment)
        base_dir: Directory the output path is relative to
        client: Provider client to use instead of creating one
        max_file_size: Largest file that will be fetched, in bytes
        concurrency: Maximum in-flight requests

    Returns:
        Per-file results with created/overwritten/skipped counts
    """
    spec = parse_source(source)
    ensure_supported(spec.provider)
    enabled = resolve_features(features)
    output_root = check_path_traversal(output, Path(base_dir), allow_root=True)

    owns_client = client is None
    if client is None:
        client = create_client(spec.provider, token=token)
    try:
        logger.debug("Validating repository", repository=spec.slug)
        if not await client.validate_repository(spec.owner, spec.repo):
            msg = (
                f"Repository not found: {spec.slug}. "
                "Check the repository name and your access permissions."
            )
            raise ProviderApiError(msg, 404)

        resolved_ref = ref or spec.ref or await client.get_default_branch(spec.owner, spec.repo)
        logger.debug("Using ref", ref=resolved_ref)

        limiter = create_limiter(concurrency)
        base_path = path or spec.path or "."
        candidates = await _collect_feature_files(
            client, spec, base_path, resolved_ref, enabled, limiter
        )
        if not candidates:
            logger.warning("No files found matching enabled features", features=", ".join(enabled))
            return FetchSummary(source=spec.slug, ref=resolved_ref)

        return await _write_files(
            client,
            spec,
            resolved_ref,
            candidates,
            output_root=output_root,
            conflict=conflict,
            max_file_size=max_file_size,
            limiter=limiter,
        )
    finally:
        if owns_client:
            await client.aclose()


async def _collect_feature_files(
    client: GitProviderClient,
    spec: SourceSpec,
    base_path: str,
    ref: str,
    features: Sequence[str],
    limiter: asyncio.Semaphore,
) -> list[tuple[str, RemoteEntry]]:
    """Collect (relative path, entry) pairs for all enabled features."""
    at_root = base_path.strip("/") in ("", ".")
    candidates: list[tuple[str, RemoteEntry]] = []
    base_listing: list[RemoteEntry] | None = None

    for feature in features:
        feature_path = FEATURE_PATHS[feature]
        full_path = feature_path if at_root else f"{base_path.strip('/')}/{feature_path}"
        try:
            if feature in FILE_FEATURES:
                if base_listing is None:
                    async with limiter:
                        base_listing = await client.list_directory(
                            spec.owner, spec.repo, "." if at_root else base_path, ref
                        )
                for entry in base_listing:
                    if entry.name == feature_path and entry.type == RemoteEntryType.FILE:
                        candidates.append((feature_path, entry))
                        break
                else:
                    logger.debug("Feature file not found", path=full_path)
            else:
                files = await list_directory_recursive(
                    client, spec.owner, spec.repo, full_path, ref, limiter
                )
                candidates.extend(
                    (relative_remote_path(f.path, base_path), f) for f in files
                )
        except ProviderApiError as e:
            if not e.is_not_found:
                raise
            logger.debug("Feature not found", path=full_path)
            if feature in FILE_FEATURES:
                base_listing = []
    return candidates


async def _write_files(
    client: GitProviderClient,
    spec: SourceSpec,
    ref: str,
    candidates: list[tuple[str, RemoteEntry]],
    *,
    output_root: Path,
    conflict: ConflictStrategy,
    max_file_size: int,
    limiter: asyncio.Semaphore,
) -> FetchSummary:
    """Apply safety checks and the conflict strategy, then download and write."""
    kept = filter_oversized([e for _, e in candidates], max_file_size)
    allowed = {e.path for e in kept}

    results: list[FetchFileResult] = []
    to_write: list[tuple[Path, RemoteEntry]] = []
    for relative, entry in candidates:
        if entry.path not in allowed:
            continue
        try:
            local_path = check_path_traversal(relative, output_root)
        except PathTraversalError as e:
            logger.warning("Skipping file with unsafe path", path=entry.path, error=str(e))
            continue
        status = resolve_file_status(local_path, conflict)
        results.append(FetchFileResult(relative_path=relative, status=status))
        if status == FetchStatus.SKIPPED:
            logger.debug("Skipping existing file", path=relative)
        else:
            to_write.append((local_path, entry))

    # All downloads finish before the first write
    contents = await download_files(
        client, spec.owner, spec.repo, [e for _, e in to_write], ref, limiter
    )
    for (local_path, entry), content in zip(to_write, contents, strict=True):
        write_file_content(local_path, content)
        logger.debug("Wrote file", path=entry.path, local_path=str(local_path))

    return FetchSummary(source=spec.slug, ref=ref, files=results)


def format_fetch_summary(summary: FetchSummary) -> str:
    """Format a fetch summary for display."""
    lines = [f"Fetched from {summary.source}@{summary.ref}:"]
    labels = {
        FetchStatus.CREATED: "(created)",
        FetchStatus.OVERWRITTEN: "(overwritten)",
        FetchStatus.SKIPPED: "(skipped - already exists)",
    }
    for file in summary.files:
        icon = "-" if file.status == FetchStatus.SKIPPED else "✓"
        lines.append(f"  {icon} {file.relative_path} {labels[file.status]}")

    parts = [
        f"{count} {label}"
        for count, label in (
            (summary.created, "created"),
            (summary.overwritten, "overwritten"),
            (summary.skipped, "skipped"),
        )
        if count
    ]
    lines.append("")
    lines.append(f"Summary: {', '.join(parts) if parts else 'no files'}")
    return "\n".join(lines)
