"""Shared fixtures for autorelease tests."""

from __future__ import annotations

import subprocess
from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from autorelease.config.models import AutoReleaseConfig
from autorelease.core.version import Version, parse_tag
from autorelease.exceptions import (
    ArtifactPushFailure,
    HistoryUnavailable,
    PublishFailure,
    TagConflict,
)
from autorelease.vcs.gateway import RepositoryGateway
from autorelease.vcs.models import CommitRecord, ReleaseRecord

BASE_DATE = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)


def make_commits(*messages: str, prefix: str = "c") -> list[CommitRecord]:
    """Build commit records with predictable shas (``c000000``, ``c000001`` ...)."""
    return [
        CommitRecord(
            sha=f"{prefix}{i:06d}" + "0" * 33,
            date=BASE_DATE + timedelta(minutes=i),
            message=message,
        )
        for i, message in enumerate(messages)
    ]


class FakeGateway(RepositoryGateway):
    """In-memory repository: a linear history, tags and hosted releases."""

    WRITE_METHODS = frozenset({"create_tag", "delete_tag", "publish_release", "push_artifacts"})

    def __init__(
        self,
        commits: list[CommitRecord] | None = None,
        *,
        tags: Mapping[str, str] | None = None,
        files: Mapping[str, str] | None = None,
        tag_prefix: str = "v",
    ) -> None:
        self.commits = list(commits or [])
        self.tags = dict(tags or {})
        self.files = dict(files or {})
        self.releases: dict[str, ReleaseRecord] = {}
        self.pushed: list[tuple[dict[str, str], str]] = []
        self.calls: list[str] = []
        self.tag_prefix = tag_prefix

        self.fail_history = False
        self.fail_publish = False
        self.fail_push = False
        self.fail_delete = False
        self.conflict_on_create: str | None = None

    @property
    def writes(self) -> list[str]:
        return [c for c in self.calls if c in self.WRITE_METHODS]

    def _tag(self, version: Version) -> str:
        return version.to_tag(self.tag_prefix)

    def latest_release(self) -> tuple[str, Version] | None:
        self.calls.append("latest_release")
        if self.fail_history:
            raise HistoryUnavailable("history offline")
        found = [(t, parse_tag(t, self.tag_prefix)) for t in self.tags]
        stable = [(t, v) for t, v in found if v is not None and v.is_stable]
        return max(stable, key=lambda item: item[1], default=None)

    def list_commits_since(self, tag: str | None) -> tuple[CommitRecord, ...]:
        self.calls.append("list_commits_since")
        if self.fail_history:
            raise HistoryUnavailable("history offline")
        if tag is None:
            return tuple(self.commits)
        sha = self.tags[tag]
        index = next(i for i, c in enumerate(self.commits) if c.sha == sha)
        return tuple(self.commits[index + 1 :])

    def tag_exists(self, version: Version) -> bool:
        self.calls.append("tag_exists")
        return self._tag(version) in self.tags

    def tag_target(self, version: Version) -> str | None:
        self.calls.append("tag_target")
        return self.tags.get(self._tag(version))

    def create_tag(self, version: Version, target_sha: str) -> ReleaseRecord:
        self.calls.append("create_tag")
        tag = self._tag(version)
        if self.conflict_on_create is not None:
            self.tags[tag] = self.conflict_on_create
        if tag in self.tags:
            raise TagConflict(f"{tag} exists", tag_name=tag, existing_sha=self.tags[tag])
        self.tags[tag] = target_sha
        return ReleaseRecord(
            version=version,
            tag_name=tag,
            target_sha=target_sha,
            created_at=BASE_DATE,
        )

    def delete_tag(self, version: Version) -> None:
        self.calls.append("delete_tag")
        if self.fail_delete:
            raise PublishFailure("cannot delete tag")
        self.tags.pop(self._tag(version), None)

    def publish_release(self, record: ReleaseRecord, notes: str) -> ReleaseRecord:
        self.calls.append("publish_release")
        if self.fail_publish:
            raise PublishFailure("hosting API said no")
        published = ReleaseRecord(
            version=record.version,
            tag_name=record.tag_name,
            target_sha=record.target_sha,
            created_at=record.created_at,
            commit_shas=record.commit_shas,
            notes=notes,
            url=f"https://example.test/releases/{record.tag_name}",
        )
        self.releases[record.tag_name] = published
        return published

    def push_artifacts(self, files: Mapping[str, str], message: str) -> None:
        self.calls.append("push_artifacts")
        if self.fail_push:
            raise ArtifactPushFailure("branch is protected")
        self.files.update(files)
        self.pushed.append((dict(files), message))

    def read_file(self, path: str) -> str | None:
        self.calls.append("read_file")
        return self.files.get(path)


@pytest.fixture(name="make_commits")
def make_commits_fixture():
    return make_commits


@pytest.fixture(name="FakeGateway")
def fake_gateway_class() -> type[FakeGateway]:
    return FakeGateway


@pytest.fixture
def config() -> AutoReleaseConfig:
    """Default configuration."""
    return AutoReleaseConfig()


@pytest.fixture
def fixed_clock():
    """Clock pinned to 2024-03-15 so changelog dates are stable."""
    return lambda: datetime(2024, 3, 15, 9, 30, tzinfo=UTC)


@pytest.fixture
def released_history() -> FakeGateway:
    """v1.2.3 tagged on the first commit; later commits are up to the test."""
    commits = make_commits("feat: initial release")
    return FakeGateway(commits, tags={"v1.2.3": commits[0].sha})


@pytest.fixture
def feat_commit() -> CommitRecord:
    return CommitRecord("feat1230000", BASE_DATE, "feat: add user authentication")


@pytest.fixture
def fix_commit() -> CommitRecord:
    return CommitRecord("fix4560000", BASE_DATE, "fix(core): resolve memory leak")


@pytest.fixture
def breaking_commit() -> CommitRecord:
    return CommitRecord(
        "break789000",
        BASE_DATE,
        "feat!: redesign API\n\nBREAKING CHANGE: the v1 endpoints are gone",
    )


@pytest.fixture
def sample_commits(
    feat_commit: CommitRecord,
    fix_commit: CommitRecord,
    breaking_commit: CommitRecord,
) -> list[CommitRecord]:
    return [
        feat_commit,
        fix_commit,
        CommitRecord("docs000000", BASE_DATE, "docs: update README"),
        CommitRecord("chore00000", BASE_DATE, "chore: update dependencies"),
        breaking_commit,
    ]


def _git(cwd: Path, *args: str) -> str:
    return subprocess.run(
        ["git", *args], cwd=cwd, capture_output=True, text=True, check=True
    ).stdout.strip()


@pytest.fixture
def temp_git_repo(tmp_path: Path) -> Path:
    """An initialised git repository with one commit on ``main``."""
    repo = tmp_path / "repo"
    repo.mkdir()
    _git(repo, "init", "--quiet", "--initial-branch=main")
    _git(repo, "config", "user.email", "test@example.com")
    _git(repo, "config", "user.name", "Test")
    _git(repo, "config", "commit.gpgsign", "false")
    _git(repo, "config", "tag.gpgsign", "false")
    (repo / "README.md").write_text("# demo\n")
    _git(repo, "add", "README.md")
    _git(repo, "commit", "--quiet", "-m", "chore: initial commit")
    return repo


@pytest.fixture
def git():
    """Run git in a directory: ``git(path, "log")``."""
    return _git
