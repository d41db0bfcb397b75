"""In-memory provider client used across the test suite."""

from __future__ import annotations

import asyncio
from collections import Counter
from dataclasses import dataclass, field

from skillsync.exceptions import ProviderApiError
from skillsync.models import RemoteEntry, RemoteEntryType


SHA_A = "a" * 40
SHA_B = "b" * 40
SHA_C = "c" * 40


@dataclass
class FakeRepo:
    """In-memory repository: commits map paths to file contents."""

    commits: dict[str, dict[str, str]]
    """Commit id -> {file path: content}."""

    refs: dict[str, str] = field(default_factory=dict)
    """Branch/tag name -> commit id."""

    default_branch: str = "main"
    sizes: dict[str, int] = field(default_factory=dict)
    """Reported sizes overriding the real content length."""

    special: dict[str, RemoteEntryType] = field(default_factory=dict)
    """Extra non-file entries (symlinks, submodules) by path."""

    error: ProviderApiError | None = None
    """Raised by every call against this repository."""


class FakeGitClient:
    """Provider client serving FakeRepo instances, with call accounting."""

    def __init__(self, repos: dict[str, FakeRepo], *, delay: float = 0) -> None:
        self.repos = repos
        self.delay = delay
        self.calls: Counter[str] = Counter()
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False
        self.failing_paths: dict[str, ProviderApiError] = {}
        # Appended to the listing of a path, as a hostile server might
        self.extra_entries: dict[str, list[RemoteEntry]] = {}
        self.listed: list[str] = []

    def _repo(self, owner: str, repo: str) -> FakeRepo:
        found = self.repos.get(f"{owner}/{repo}")
        if found is None:
            msg = f"Not found: {owner}/{repo}"
            raise ProviderApiError(msg, 404)
        if found.error is not None:
            raise found.error
        return found

    def _files(self, repo: FakeRepo, ref: str | None) -> dict[str, str]:
        ref = ref or repo.default_branch
        sha = repo.refs.get(ref, ref)
        if sha not in repo.commits:
            msg = f"Not found: ref {ref}"
            raise ProviderApiError(msg, 404)
        return repo.commits[sha]

    async def _enter(self, name: str) -> None:
        self.calls[name] += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        await asyncio.sleep(self.delay)

    async def get_default_branch(self, owner: str, repo: str) -> str:
        self.calls["get_default_branch"] += 1
        return self._repo(owner, repo).default_branch

    async def validate_repository(self, owner: str, repo: str) -> bool:
        self.calls["validate_repository"] += 1
        try:
            self._repo(owner, repo)
        except ProviderApiError as e:
            if e.is_not_found:
                return False
            raise
        return True

    async def resolve_ref_to_sha(self, owner: str, repo: str, ref: str) -> str:
        self.calls["resolve_ref_to_sha"] += 1
        found = self._repo(owner, repo)
        sha = found.refs.get(ref, ref)
        if sha not in found.commits:
            msg = f"Not found: ref {ref}"
            raise ProviderApiError(msg, 404)
        return sha

    async def list_directory(
        self, owner: str, repo: str, path: str, ref: str | None = None
    ) -> list[RemoteEntry]:
        await self._enter("list_directory")
        self.listed.append(path)
        try:
            found = self._repo(owner, repo)
            if path in self.failing_paths:
                raise self.failing_paths[path]
            files = self._files(found, ref)
            base = path.strip("/")
            base = "" if base == "." else base
            prefix = f"{base}/" if base else ""
            entries: dict[str, RemoteEntry] = {}
            all_paths = {**dict.fromkeys(files), **dict.fromkeys(found.special)}
            for file_path in all_paths:
                if not file_path.startswith(prefix):
                    continue
                name, _, rest = file_path.removeprefix(prefix).partition("/")
                child = f"{prefix}{name}"
                if rest:
                    entry_type = RemoteEntryType.DIR
                    size = 0
                elif file_path in found.special:
                    entry_type = found.special[file_path]
                    size = 0
                else:
                    entry_type = RemoteEntryType.FILE
                    size = found.sizes.get(file_path, len(files[file_path].encode()))
                entries.setdefault(
                    child,
                    RemoteEntry(name=name, path=child, type=entry_type, size=size, sha="0" * 40),
                )
            extra = self.extra_entries.get(path, [])
            if not entries and not extra:
                msg = f"Not found: {path}"
                raise ProviderApiError(msg, 404)
            return [*entries.values(), *extra]
        finally:
            self.in_flight -= 1

    async def get_file_content(
        self, owner: str, repo: str, path: str, ref: str | None = None
    ) -> str:
        await self._enter("get_file_content")
        try:
            found = self._repo(owner, repo)
            if path in self.failing_paths:
                raise self.failing_paths[path]
            files = self._files(found, ref)
            if path not in files:
                msg = f"Not found: {path}"
                raise ProviderApiError(msg, 404)
            return files[path]
        finally:
            self.in_flight -= 1

    async def aclose(self) -> None:
        self.closed = True

