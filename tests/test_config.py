"""Tests for config loading."""

from __future__ import annotations

from textwrap import dedent
from typing import TYPE_CHECKING

import pytest

from skillsync.config import SkillsyncConfig, SourceEntry, load_config
from skillsync.conflicts import MAX_FILE_SIZE
from skillsync.exceptions import ConfigError


if TYPE_CHECKING:
    from pathlib import Path


def test_load_config(tmp_path: Path):
    path = tmp_path / "skillsync.yml"
    path.write_text(
        dedent("""
        sources:
          - source: acme/skills
          - source: github:acme/extra@v1:agent-skills
            skills: [reviewer, planner, reviewer]
        concurrency: 4
        """)
    )
    config = load_config(path)

    assert [s.source for s in config.sources] == [
        "acme/skills",
        "github:acme/extra@v1:agent-skills",
    ]
    assert config.sources[1].skills == ["reviewer", "planner"]
    assert config.concurrency == 4
    assert config.max_file_size == MAX_FILE_SIZE


def test_empty_file_gives_defaults(tmp_path: Path):
    path = tmp_path / "skillsync.yml"
    path.write_text("")
    assert load_config(path) == SkillsyncConfig()


@pytest.mark.parametrize(
    "content",
    ["sources: [", "sources:\n  - skills: [a]", "concurrency: 0", "sources:\n  - source: ''"],
)
def test_invalid_config(tmp_path: Path, content: str):
    path = tmp_path / "skillsync.yml"
    path.write_text(content)
    with pytest.raises(ConfigError):
        load_config(path)


def test_missing_file(tmp_path: Path):
    with pytest.raises(ConfigError, match="Could not read"):
        load_config(tmp_path / "nope.yml")


def test_skill_selection():
    assert SourceEntry(source="a/b").wants("anything")
    assert SourceEntry(source="a/b", skills=["*"]).fetches_all
    selective = SourceEntry(source="a/b", skills=["x"])
    assert selective.wants("x")
    assert not selective.wants("y")
