"""Command for installing skills from all declared sources."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated

import typer as t

from skillsync.config import load_config
from skillsync.exceptions import SkillsyncError
from skillsync.paths import CONFIG_FILE_NAME
from skillsync.sources import resolve_and_fetch_sources
from skillsync_cli.common import fail, setup_logging, silent_opt, token_opt, verbose_opt


def install_command(
    config: Annotated[
        Path,
        t.Option("--config", "-c", help="Path to the config file declaring sources"),
    ] = Path(CONFIG_FILE_NAME),
    update_sources: Annotated[
        bool,
        t.Option("--update-sources", help="Re-resolve every source and rewrite the lockfile"),
    ] = False,
    skip_sources: Annotated[
        bool,
        t.Option("--skip-sources", help="Do not fetch anything"),
    ] = False,
    frozen: Annotated[
        bool,
        t.Option("--frozen", help="Fail if the lockfile is missing entries, never update it"),
    ] = False,
    token: str | None = token_opt,
    verbose: bool = verbose_opt,
    silent: bool = silent_opt,
) -> None:
    """Install skills from the sources declared in the config file.

    Sources are pinned to commits in the lockfile next to the config file.
    Use --update-sources to move them to the latest commit of their ref.
    """
    setup_logging(verbose=verbose, silent=silent)
    if frozen and update_sources:
        msg = "--frozen cannot be combined with --update-sources"
        raise t.BadParameter(msg)

    try:
        cfg = load_config(config)
    except SkillsyncError as e:
        raise fail(e) from e

    if not cfg.sources:
        t.echo(f"No sources declared in {config}")
        return

    try:
        result = asyncio.run(
            resolve_and_fetch_sources(
                cfg.sources,
                config.parent,
                update_sources=update_sources,
                skip_sources=skip_sources,
                frozen=frozen,
                token=token,
                max_file_size=cfg.max_file_size,
                concurrency=cfg.concurrency,
            )
        )
    except SkillsyncError as e:
        raise fail(e) from e

    if skip_sources:
        t.echo("Skipped fetching sources")
        return
    t.echo(
        f"Fetched {result.fetched_skill_count} skill(s) "
        f"from {result.sources_processed} source(s)"
    )
