"""Configuration models for declared sources.

Example ``skillsync.yml``:

    sources:
      - source: acme/skills
      - source: github:acme/extra@v1.2.0:agent-skills
        skills: [reviewer, planner]
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, ValidationError, field_validator
import yaml

from skillsync.conflicts import MAX_FILE_SIZE
from skillsync.exceptions import ConfigError
from skillsync.tree import FETCH_CONCURRENCY_LIMIT


if TYPE_CHECKING:
    from pathlib import Path


WILDCARD = "*"


class SourceEntry(BaseModel):
    """A declared remote source of skills."""

    source: str = Field(min_length=1)
    """Source string (URL, ``github:owner/repo`` or ``owner/repo[@ref][:path]``)."""

    skills: list[str] | None = None
    """Skill names to fetch. None or ``["*"]`` fetches all skills."""

    @field_validator("skills")
    @classmethod
    def _dedupe_skills(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        return list(dict.fromkeys(value))

    @property
    def fetches_all(self) -> bool:
        """Whether every skill of the source is wanted."""
        return self.skills is None or self.skills == [WILDCARD]

    def wants(self, name: str) -> bool:
        """Check whether a skill name is selected by this entry."""
        return self.fetches_all or name in (self.skills or [])


class SkillsyncConfig(BaseModel):
    """Root configuration."""

    sources: list[SourceEntry] = Field(default_factory=list)
    """Remote sources, in precedence order (first declared wins)."""

    max_file_size: int = Field(default=MAX_FILE_SIZE, gt=0)
    """Largest remote file (in bytes) that will be fetched."""

    concurrency: int = Field(default=FETCH_CONCURRENCY_LIMIT, ge=1)
    """Maximum number of in-flight requests per source."""


def load_config(path: Path) -> SkillsyncConfig:
    """Load and validate a YAML configuration file.

    An empty file yields the default configuration.

    Raises:
        ConfigError: If the file cannot be read or is invalid
    """
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        msg = f"Could not read config file {path}: {e}"
        raise ConfigError(msg) from e

    try:
        data = yaml.safe_load(content) or {}
    except yaml.YAMLError as e:
        msg = f"Invalid YAML in config file {path}: {e}"
        raise ConfigError(msg) from e

    try:
        return SkillsyncConfig.model_validate(data)
    except ValidationError as e:
        msg = f"Invalid config file {path}: {e}"
        raise ConfigError(msg) from e
