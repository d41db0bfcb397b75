"""Common options and helpers for the CLI."""

from __future__ import annotations

import logging

import typer as t

from skillsync.exceptions import ProviderApiError
from skillsync.github import AUTH_TIPS
from skillsync.log import configure_logging


VERBOSE_HELP = "Enable debug logging"
SILENT_HELP = "Only log errors"
TOKEN_HELP = "GitHub token (defaults to GITHUB_TOKEN, then GH_TOKEN)"
# Command options
VERBOSE_CMDS = "-v", "--verbose"
SILENT_CMDS = "-s", "--silent"

verbose_opt = t.Option(False, *VERBOSE_CMDS, help=VERBOSE_HELP)
silent_opt = t.Option(False, *SILENT_CMDS, help=SILENT_HELP)
token_opt = t.Option(None, "--token", help=TOKEN_HELP)


def setup_logging(*, verbose: bool = False, silent: bool = False) -> None:
    """Configure logging for a command. ``--silent`` wins over ``--verbose``."""
    if silent:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO
    configure_logging(level)


def fail(error: Exception) -> t.Exit:
    """Print an error (with token tips for auth failures) and build the exit.

    Usage: ``raise fail(e) from e``
    """
    t.echo(f"Error: {error}", err=True)
    if isinstance(error, ProviderApiError) and error.is_auth_error:
        for tip in AUTH_TIPS:
            t.echo(tip, err=True)
    return t.Exit(1)
