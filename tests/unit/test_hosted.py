"""Tests for HostedGateway error mapping and publication."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from autorelease.config.models import AutoReleaseConfig, GitHubConfig
from autorelease.core.version import Version
from autorelease.exceptions import (
    ArtifactPushFailure,
    FileUnreadable,
    GitCommandError,
    GitHubApiError,
    HistoryUnavailable,
    PublishFailure,
    TagConflict,
)
from autorelease.vcs.git import GitRepository
from autorelease.vcs.github import GitHubClient, ReleaseInfo
from autorelease.vcs.hosted import HostedGateway
from autorelease.vcs.models import ReleaseRecord

V = Version(1, 3, 0)
SHA = "a" * 40


@pytest.fixture
def mock_git() -> MagicMock:
    git = MagicMock(spec=GitRepository)
    git.remote = "origin"
    git.branch = "main"
    git.current_branch.return_value = "main"
    git.tag_target.return_value = None
    git.remote_tag_target.return_value = None
    return git


@pytest.fixture
def mock_github() -> MagicMock:
    return MagicMock(spec=GitHubClient)


@pytest.fixture
def record() -> ReleaseRecord:
    return ReleaseRecord(
        version=V,
        tag_name="v1.3.0",
        target_sha=SHA,
        created_at=datetime(2024, 1, 1, tzinfo=UTC),
        commit_shas=frozenset({SHA}),
    )


class TestHistory:
    def test_latest_release_fetches_tags_once(self, mock_git: MagicMock):
        mock_git.get_latest_release_tag.return_value = ("v1.2.3", Version(1, 2, 3))
        gateway = HostedGateway(mock_git)

        assert gateway.latest_release() == ("v1.2.3", Version(1, 2, 3))
        gateway.list_commits_since("v1.2.3")

        mock_git.fetch_tags.assert_called_once()
        mock_git.get_commits_since.assert_called_once_with("v1.2.3")

    def test_git_failure_is_history_unavailable(self, mock_git: MagicMock):
        mock_git.get_commits_since.side_effect = GitCommandError("boom", stderr="auth failed")

        with pytest.raises(HistoryUnavailable) as exc:
            HostedGateway(mock_git).list_commits_since(None)
        assert exc.value.hint == "auth failed"

    def test_fetch_failure_is_history_unavailable(self, mock_git: MagicMock):
        mock_git.fetch_tags.side_effect = GitCommandError("network down")

        with pytest.raises(HistoryUnavailable):
            HostedGateway(mock_git).latest_release()

    def test_refuses_other_branch(self, mock_git: MagicMock):
        mock_git.current_branch.return_value = "feature/wip"

        with pytest.raises(HistoryUnavailable, match="feature/wip") as exc:
            HostedGateway(mock_git).list_commits_since("v1.2.3")
        assert exc.value.hint == "run from a checkout of main"
        mock_git.get_commits_since.assert_not_called()

    def test_refuses_detached_head(self, mock_git: MagicMock):
        mock_git.current_branch.return_value = None

        with pytest.raises(HistoryUnavailable, match="detached"):
            HostedGateway(mock_git).latest_release()


class TestReadFile:
    def test_missing_file(self, mock_git: MagicMock):
        mock_git.read_file.return_value = None

        assert HostedGateway(mock_git).read_file("CHANGELOG.md") is None

    def test_undecodable_file(self, mock_git: MagicMock):
        mock_git.read_file.side_effect = UnicodeDecodeError(
            "utf-8", b"\xff\xfe", 0, 1, "invalid start byte"
        )

        with pytest.raises(FileUnreadable, match="CHANGELOG.md") as exc:
            HostedGateway(mock_git).read_file("CHANGELOG.md")
        assert exc.value.code == "file_unreadable"

    def test_os_error(self, mock_git: MagicMock):
        mock_git.read_file.side_effect = PermissionError("denied")

        with pytest.raises(FileUnreadable):
            HostedGateway(mock_git).read_file("VERSION")


class TestTags:
    def test_create_tag(self, mock_git: MagicMock):
        result = HostedGateway(mock_git).create_tag(V, SHA)

        mock_git.create_tag.assert_called_once_with("v1.3.0", SHA, "Release 1.3.0")
        mock_git.push_tag.assert_called_once_with("v1.3.0")
        assert result.tag_name == "v1.3.0"
        assert result.target_sha == SHA

    def test_existing_tag_conflicts(self, mock_git: MagicMock):
        mock_git.tag_target.return_value = SHA

        with pytest.raises(TagConflict) as exc:
            HostedGateway(mock_git).create_tag(V, SHA)
        assert exc.value.existing_sha == SHA
        mock_git.create_tag.assert_not_called()

    def test_push_rejected_because_remote_has_tag(self, mock_git: MagicMock):
        mock_git.push_tag.side_effect = GitCommandError("rejected", stderr="already exists")
        mock_git.remote_tag_target.side_effect = [None, "b" * 40]

        with pytest.raises(TagConflict) as exc:
            HostedGateway(mock_git).create_tag(V, SHA)
        assert exc.value.existing_sha == "b" * 40
        mock_git.delete_tag.assert_called_once_with("v1.3.0", remote=False)

    def test_push_failure_is_publish_failure(self, mock_git: MagicMock):
        mock_git.push_tag.side_effect = GitCommandError("network")

        with pytest.raises(PublishFailure):
            HostedGateway(mock_git).create_tag(V, SHA)
        mock_git.delete_tag.assert_called_once_with("v1.3.0", remote=False)

    def test_tag_exists_checks_remote(self, mock_git: MagicMock):
        mock_git.remote_tag_target.return_value = SHA

        assert HostedGateway(mock_git).tag_exists(V)

    def test_custom_prefix(self, mock_git: MagicMock):
        HostedGateway(mock_git, tag_prefix="release-").tag_target(V)

        mock_git.tag_target.assert_called_once_with("release-1.3.0")

    def test_delete_failure(self, mock_git: MagicMock):
        mock_git.delete_tag.side_effect = GitCommandError("nope")

        with pytest.raises(PublishFailure):
            HostedGateway(mock_git).delete_tag(V)


class TestPublish:
    def test_tag_only_without_github(self, mock_git: MagicMock, record: ReleaseRecord):
        published = HostedGateway(mock_git).publish_release(record, "notes")

        assert published.notes == "notes"
        assert published.url is None
        assert published.commit_shas == record.commit_shas
        assert published.idempotency_key("main") == ("main", "1.3.0")

    def test_creates_github_release(
        self, mock_git: MagicMock, mock_github: MagicMock, record: ReleaseRecord
    ):
        mock_github.get_release_by_tag.return_value = None
        mock_github.create_release.return_value = ReleaseInfo(
            id=1, tag_name="v1.3.0", html_url="https://gh/r/1", target_commitish=SHA, body="notes"
        )

        published = HostedGateway(mock_git, mock_github).publish_release(record, "notes")

        mock_github.create_release.assert_called_once_with(
            "v1.3.0", "notes", name="v1.3.0", target_commitish=SHA
        )
        assert published.url == "https://gh/r/1"

    def test_existing_github_release_reused(
        self, mock_git: MagicMock, mock_github: MagicMock, record: ReleaseRecord
    ):
        mock_github.get_release_by_tag.return_value = ReleaseInfo(
            id=1, tag_name="v1.3.0", html_url="https://gh/r/1", target_commitish=SHA, body="old"
        )

        published = HostedGateway(mock_git, mock_github).publish_release(record, "notes")

        mock_github.create_release.assert_not_called()
        assert published.notes == "old"

    def test_api_error_is_publish_failure(
        self, mock_git: MagicMock, mock_github: MagicMock, record: ReleaseRecord
    ):
        mock_github.get_release_by_tag.return_value = None
        mock_github.create_release.side_effect = GitHubApiError("HTTP 422", status_code=422)

        with pytest.raises(PublishFailure):
            HostedGateway(mock_git, mock_github).publish_release(record, "notes")


class TestPushArtifacts:
    def test_commit_then_push(self, mock_git: MagicMock):
        mock_git.commit_files.return_value = SHA

        HostedGateway(mock_git).push_artifacts({"VERSION": "1.3.0\n"}, "chore(release): 1.3.0")

        mock_git.commit_files.assert_called_once_with({"VERSION": "1.3.0\n"}, "chore(release): 1.3.0")
        mock_git.push_branch.assert_called_once()

    def test_nothing_to_push(self, mock_git: MagicMock):
        mock_git.commit_files.return_value = None

        HostedGateway(mock_git).push_artifacts({"VERSION": "1.3.0\n"}, "msg")

        mock_git.push_branch.assert_not_called()

    def test_push_failure(self, mock_git: MagicMock):
        mock_git.commit_files.return_value = SHA
        mock_git.push_branch.side_effect = GitCommandError("protected branch")

        with pytest.raises(ArtifactPushFailure):
            HostedGateway(mock_git).push_artifacts({"VERSION": "1.3.0\n"}, "msg")


class TestFromConfig:
    def test_without_token_uses_tags_only(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        config = AutoReleaseConfig(github=GitHubConfig(owner="acme", repo="widgets"))

        gateway = HostedGateway.from_config(tmp_path, config)

        assert gateway.github is None
        assert gateway.git.branch == "main"

    def test_with_token(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
        monkeypatch.setenv("RELEASE_TOKEN", "secret")
        config = AutoReleaseConfig(
            timeout_seconds=5,
            github=GitHubConfig(owner="acme", repo="widgets", token_env="RELEASE_TOKEN"),
        )

        gateway = HostedGateway.from_config(tmp_path, config)

        assert gateway.github is not None
        assert gateway.github.timeout == 5
        assert gateway.git.timeout == 5
