"""Test configuration and shared fixtures."""

from __future__ import annotations

import pytest
import structlog

from tests.fakes import SHA_A, FakeGitClient, FakeRepo


@pytest.fixture(autouse=True)
def reset_structlog():
    """Give every test unconfigured structlog defaults."""
    structlog.reset_defaults()
    yield
    structlog.reset_defaults()


@pytest.fixture(autouse=True)
def no_token_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep real tokens from the environment out of the tests."""
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("GH_TOKEN", raising=False)


@pytest.fixture
def skills_repo() -> FakeRepo:
    """A repository with two skills at SHA_A on main."""
    return FakeRepo(
        commits={
            SHA_A: {
                "skills/alpha/SKILL.md": "# alpha",
                "skills/alpha/scripts/run.sh": "echo alpha",
                "skills/beta/SKILL.md": "# beta",
                "README.md": "readme",
            },
        },
        refs={"main": SHA_A},
    )


@pytest.fixture
def fake_client(skills_repo: FakeRepo) -> FakeGitClient:
    return FakeGitClient({"acme/skills": skills_repo})
