"""Allow running the CLI via ``python -m skillsync_cli``."""

from __future__ import annotations

from skillsync_cli import main


main()
