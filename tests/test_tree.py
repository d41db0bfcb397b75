"""Tests for recursive remote tree listing and downloads."""

from __future__ import annotations

import pytest
from structlog.testing import capture_logs

from skillsync.exceptions import ProviderApiError
from skillsync.models import RemoteEntry, RemoteEntryType
from skillsync.tree import create_limiter, download_files, list_directory_recursive

from tests.fakes import SHA_A, FakeGitClient, FakeRepo


def wide_repo(width: int = 8, depth: int = 3) -> FakeRepo:
    files: dict[str, str] = {}

    def build(prefix: str, level: int) -> None:
        files[f"{prefix}/file.md"] = prefix
        if level == depth:
            return
        for i in range(width):
            build(f"{prefix}/d{i}", level + 1)

    build("skills", 1)
    return FakeRepo(commits={SHA_A: files}, refs={"main": SHA_A})


async def test_lists_all_files_recursively(fake_client: FakeGitClient):
    files = await list_directory_recursive(
        fake_client, "acme", "skills", "skills", SHA_A, create_limiter()
    )
    assert sorted(f.path for f in files) == [
        "skills/alpha/SKILL.md",
        "skills/alpha/scripts/run.sh",
        "skills/beta/SKILL.md",
    ]
    assert all(f.type == RemoteEntryType.FILE for f in files)


async def test_concurrency_never_exceeds_limit():
    client = FakeGitClient({"acme/wide": wide_repo()}, delay=0.001)
    limiter = create_limiter(3)

    files = await list_directory_recursive(client, "acme", "wide", "skills", SHA_A, limiter)
    contents = await download_files(client, "acme", "wide", files, SHA_A, limiter)

    # 1 + 8 + 64 directories, one file each
    assert len(files) == 73
    assert len(contents) == 73
    assert client.max_in_flight <= 3
    assert client.max_in_flight > 1


async def test_subtree_failure_propagates():
    client = FakeGitClient({"acme/wide": wide_repo(width=3, depth=2)})
    client.failing_paths["skills/d1"] = ProviderApiError("Access forbidden", 403)

    with pytest.raises(ProviderApiError, match="Access forbidden"):
        await list_directory_recursive(client, "acme", "wide", "skills", SHA_A, create_limiter())


async def test_symlinks_and_submodules_are_skipped(skills_repo: FakeRepo):
    skills_repo.special["skills/alpha/link"] = RemoteEntryType.SYMLINK
    skills_repo.special["skills/alpha/vendor"] = RemoteEntryType.SUBMODULE
    client = FakeGitClient({"acme/skills": skills_repo})

    with capture_logs() as logs:
        files = await list_directory_recursive(
            client, "acme", "skills", "skills/alpha", SHA_A, create_limiter()
        )

    assert sorted(f.name for f in files) == ["SKILL.md", "run.sh"]
    skipped = [e for e in logs if e["event"] == "Skipping unsupported remote entry"]
    assert {e["path"] for e in skipped} == {"skills/alpha/link", "skills/alpha/vendor"}
    assert all(e["log_level"] == "warning" for e in skipped)


async def test_download_preserves_order(fake_client: FakeGitClient):
    files = await list_directory_recursive(
        fake_client, "acme", "skills", "skills/alpha", SHA_A, create_limiter()
    )
    contents = await download_files(fake_client, "acme", "skills", files, SHA_A, create_limiter())
    assert dict(zip([f.name for f in files], contents, strict=True)) == {
        "SKILL.md": "# alpha",
        "run.sh": "echo alpha",
    }


def test_limiter_rejects_zero():
    with pytest.raises(ValueError, match="at least 1"):
        create_limiter(0)


async def test_unsafe_subdirectories_are_never_listed(fake_client: FakeGitClient):
    fake_client.extra_entries["skills/alpha"] = [
        RemoteEntry(name="../evil", path="skills/alpha/../evil", type=RemoteEntryType.DIR, sha="0"),
        RemoteEntry(name="elsewhere", path="other/elsewhere", type=RemoteEntryType.DIR, sha="0"),
    ]

    with capture_logs() as logs:
        files = await list_directory_recursive(
            fake_client, "acme", "skills", "skills/alpha", SHA_A, create_limiter()
        )

    assert sorted(f.name for f in files) == ["SKILL.md", "run.sh"]
    assert fake_client.listed == ["skills/alpha", "skills/alpha/scripts"]
    unsafe = [e for e in logs if e["event"] == "Skipping directory with unsafe name"]
    assert {e["path"] for e in unsafe} == {"skills/alpha/../evil", "other/elsewhere"}


async def test_failure_keeps_exception_chain():
    client = FakeGitClient({"acme/wide": wide_repo(width=2, depth=2)})
    error = ProviderApiError("GitHub API error: HTTP 500", 500)
    error.__cause__ = RuntimeError("upstream")
    client.failing_paths["skills/d0"] = error

    with pytest.raises(ProviderApiError) as exc_info:
        await list_directory_recursive(client, "acme", "wide", "skills", SHA_A, create_limiter())

    assert exc_info.value is error
    assert isinstance(exc_info.value.__cause__, RuntimeError)
