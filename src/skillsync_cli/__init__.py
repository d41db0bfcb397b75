"""Command line interface for skillsync."""

from __future__ import annotations

import typer as t

from skillsync_cli.fetch import fetch_command
from skillsync_cli.install import install_command


MAIN_HELP = "Synchronize AI assistant configuration from remote Git repositories."

cli = t.Typer(name="skillsync", help=MAIN_HELP, no_args_is_help=True)

cli.command(name="fetch")(fetch_command)
cli.command(name="install")(install_command)


def main() -> None:
    """Entry point for the ``skillsync`` script."""
    cli()


__all__ = ["cli", "main"]
