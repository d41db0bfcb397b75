"""Command for fetching files from a single remote source."""

from __future__ import annotations

import asyncio
from typing import Annotated

import typer as t

from skillsync.exceptions import SkillsyncError
from skillsync.fetch import ALL_FEATURES, fetch_files, format_fetch_summary
from skillsync.log import get_logger
from skillsync.models import ConflictStrategy
from skillsync.paths import SKILLSYNC_DIR
from skillsync_cli.common import fail, setup_logging, silent_opt, token_opt, verbose_opt


logger = get_logger(__name__)

FEATURES_HELP = f"Comma separated features to fetch ({', '.join(ALL_FEATURES)}, or *)"


def fetch_command(
    source: Annotated[
        str,
        t.Argument(help="Source: owner/repo[@ref][:path], github:owner/repo or a URL"),
    ],
    ref: Annotated[
        str | None,
        t.Option("--ref", "-r", help="Branch, tag or commit (overrides the source)"),
    ] = None,
    path: Annotated[
        str | None,
        t.Option("--path", "-p", help="Path inside the repository (overrides the source)"),
    ] = None,
    output: Annotated[
        str,
        t.Option("--output", "-o", help="Output directory"),
    ] = SKILLSYNC_DIR,
    conflict: Annotated[
        ConflictStrategy,
        t.Option("--conflict", "-c", help="What to do with existing files"),
    ] = ConflictStrategy.OVERWRITE,
    features: Annotated[
        str | None,
        t.Option("--features", "-f", help=FEATURES_HELP),
    ] = None,
    token: str | None = token_opt,
    verbose: bool = verbose_opt,
    silent: bool = silent_opt,
) -> None:
    """Fetch rules, commands, skills and other feature files from a repository.

    Examples:
        # Everything from the default branch
        skillsync fetch acme/ai-config

        # Only skills and rules at a tag, keeping local edits
        skillsync fetch acme/ai-config@v1.0.0 --features skills,rules --conflict skip
    """
    setup_logging(verbose=verbose, silent=silent)
    feature_list = [f.strip() for f in features.split(",") if f.strip()] if features else None

    try:
        summary = asyncio.run(
            fetch_files(
                source,
                ref=ref,
                path=path,
                output=output,
                conflict=conflict,
                features=feature_list,
                token=token,
            )
        )
    except SkillsyncError as e:
        logger.debug("Fetch failed", source=source, error=str(e))
        raise fail(e) from e

    if not summary.files:
        t.echo(f"No matching files found in {summary.source}@{summary.ref}")
        return
    t.echo(format_fetch_summary(summary))


if __name__ == "__main__":
    t.run(fetch_command)
