"""Core models for remote source synchronization."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


GitProvider = Literal["github", "gitlab"]
ALL_GIT_PROVIDERS: tuple[GitProvider, ...] = ("github", "gitlab")


@dataclass(frozen=True)
class SourceSpec:
    """Parsed form of a source string like ``owner/repo@ref:path``."""

    provider: GitProvider
    """Hosting provider the repository lives on."""

    owner: str
    """Repository owner (user or organization)."""

    repo: str
    """Repository name, without a ``.git`` suffix."""

    ref: str | None = None
    """Branch, tag or commit id. None means the default branch."""

    path: str | None = None
    """Subdirectory inside the repository."""

    @property
    def slug(self) -> str:
        """The ``owner/repo`` identifier."""
        return f"{self.owner}/{self.repo}"


class RemoteEntryType(StrEnum):
    """Kinds of items a directory listing can return."""

    FILE = "file"
    DIR = "dir"
    SYMLINK = "symlink"
    SUBMODULE = "submodule"


class RemoteEntry(BaseModel):
    """One item of a remote directory listing."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    """Base name of the item."""

    path: str
    """Path of the item relative to the repository root."""

    type: RemoteEntryType
    """Item kind."""

    size: int = 0
    """Size in bytes (0 for directories)."""

    sha: str
    """Git object id of the item."""

    download_url: str | None = None
    """Direct download URL, if the provider exposes one."""


class LockedSource(BaseModel):
    """Lockfile entry for a single declared source."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    resolved_ref: str = Field(alias="resolvedRef", pattern=r"^[0-9a-f]{40}$")
    """Full commit id the source was fetched at."""

    skills: list[str] = Field(default_factory=list)
    """Names of the skills fetched from this source, in fetch order."""


class SourcesLock(BaseModel):
    """Persisted mapping from source key to its locked state."""

    model_config = ConfigDict(frozen=True)

    sources: dict[str, LockedSource] = Field(default_factory=dict)
    """Mapping of declared source string -> locked entry."""


class ConflictStrategy(StrEnum):
    """How the ad-hoc fetch treats files that already exist locally."""

    OVERWRITE = "overwrite"
    SKIP = "skip"


class FetchStatus(StrEnum):
    """Outcome for a single fetched file."""

    CREATED = "created"
    OVERWRITTEN = "overwritten"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class FetchFileResult:
    """Result of writing (or not writing) one file."""

    relative_path: str
    status: FetchStatus


@dataclass
class FetchSummary:
    """Aggregated result of an ad-hoc fetch."""

    source: str
    """The ``owner/repo`` that was fetched."""

    ref: str
    """The ref the files were fetched at."""

    files: list[FetchFileResult] = field(default_factory=list)

    def _count(self, status: FetchStatus) -> int:
        return sum(1 for f in self.files if f.status == status)

    @property
    def created(self) -> int:
        return self._count(FetchStatus.CREATED)

    @property
    def overwritten(self) -> int:
        return self._count(FetchStatus.OVERWRITTEN)

    @property
    def skipped(self) -> int:
        return self._count(FetchStatus.SKIPPED)


@dataclass(frozen=True)
class SyncResult:
    """Result of the declarative multi-source flow."""

    fetched_skill_count: int = 0
    """Number of skills written to the curated directory."""

    sources_processed: int = 0
    """Number of declared sources that were attempted."""
