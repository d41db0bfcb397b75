"""Tests for source string parsing."""

from __future__ import annotations

import pytest

from skillsync.exceptions import SourceSpecError
from skillsync.models import SourceSpec
from skillsync.source_parser import parse_source


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ("owner/repo", SourceSpec("github", "owner", "repo")),
        ("owner/repo@v1.0", SourceSpec("github", "owner", "repo", ref="v1.0")),
        ("owner/repo:skills/dev", SourceSpec("github", "owner", "repo", path="skills/dev")),
        (
            "owner/repo@main:agent-skills",
            SourceSpec("github", "owner", "repo", ref="main", path="agent-skills"),
        ),
        ("github:owner/repo", SourceSpec("github", "owner", "repo")),
        ("gitlab:group/project@dev", SourceSpec("gitlab", "group", "project", ref="dev")),
        ("owner/repo.git", SourceSpec("github", "owner", "repo")),
    ],
)
def test_parse_shorthand(source: str, expected: SourceSpec):
    assert parse_source(source) == expected


def test_parse_plain_url():
    spec = parse_source("https://github.com/owner/repo")
    assert spec == SourceSpec("github", "owner", "repo")


def test_parse_url_with_tree_ref_and_path():
    spec = parse_source("https://github.com/owner/repo/tree/develop/skills/extra")
    assert spec.ref == "develop"
    assert spec.path == "skills/extra"


def test_parse_blob_url_matches_shorthand():
    url = parse_source("https://github.com/owner/repo/blob/main/skills/x")
    assert url == parse_source("owner/repo@main:skills/x")


def test_parse_url_strips_git_suffix_and_accepts_www():
    spec = parse_source("https://www.github.com/owner/repo.git")
    assert spec.slug == "owner/repo"


def test_parse_gitlab_url():
    assert parse_source("https://gitlab.com/group/project").provider == "gitlab"


@pytest.mark.parametrize(
    "source",
    [
        "https://phishing.github.com/owner/repo",
        "https://evil.github.com/owner/repo",
        "https://notgithub.com/owner/repo",
        "https://notgitlab.com/owner/repo",
        "https://github.com.evil.net/owner/repo",
        "https://example.com/owner/repo",
    ],
)
def test_unknown_host_is_rejected(source: str):
    with pytest.raises(SourceSpecError, match="Unknown Git provider"):
        parse_source(source)


@pytest.mark.parametrize(
    ("source", "message"),
    [
        ("owner/repo@", "Ref cannot be empty"),
        ("owner/repo:", "Path cannot be empty"),
        ("owner/repo@:path", "Ref cannot be empty"),
        ("invalid", "Invalid source"),
        ("/repo", "Both owner and repo are required"),
        ("owner/", "Both owner and repo are required"),
        ("https://github.com/owner", "Invalid github URL"),
        ("https://github.com/owner/repo/tree", "Ref cannot be empty"),
    ],
)
def test_malformed_sources(source: str, message: str):
    with pytest.raises(SourceSpecError, match=message):
        parse_source(source)


def test_source_spec_error_is_value_error():
    with pytest.raises(ValueError):  # noqa: PT011
        parse_source("nope")
