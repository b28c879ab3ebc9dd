"""Gateway backed by a local git checkout and, optionally, GitHub Releases.

Adapter errors are translated here, each onto exactly one release error:
reading history (or running off the release branch) fails with
HistoryUnavailable, reading a file with FileUnreadable, tag and release
creation with TagConflict or PublishFailure, the artifact push with
ArtifactPushFailure.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

from autorelease.exceptions import (
    ArtifactPushFailure,
    FileUnreadable,
    GitCommandError,
    GitHubApiError,
    HistoryUnavailable,
    PublishFailure,
    TagConflict,
)
from autorelease.vcs.gateway import RepositoryGateway
from autorelease.vcs.git import GitRepository
from autorelease.vcs.github import GitHubClient
from autorelease.vcs.models import ReleaseRecord

if TYPE_CHECKING:
    from autorelease.config.models import AutoReleaseConfig
    from autorelease.core.version import Version
    from autorelease.vcs.models import CommitRecord

logger = logging.getLogger(__name__)


class HostedGateway(RepositoryGateway):
    """Tags and branch pushes through git; release pages through GitHub.

    Without a GitHub client the annotated tag is the release: its message
    carries the notes.
    """

    def __init__(
        self,
        git: GitRepository,
        github: GitHubClient | None = None,
        *,
        tag_prefix: str = "v",
    ) -> None:
        self.git = git
        self.github = github
        self.tag_prefix = tag_prefix
        self._tags_fetched = False

    @classmethod
    def from_config(cls, path: Path, config: AutoReleaseConfig) -> HostedGateway:
        git = GitRepository(
            path,
            remote=config.remote,
            branch=config.branch,
            timeout=config.timeout_seconds,
        )
        github = None
        token = os.environ.get(config.github.token_env, "")
        if config.github.owner and config.github.repo and token:
            github = GitHubClient(
                config.github.owner,
                config.github.repo,
                token,
                api_url=config.github.api_url,
                timeout=config.timeout_seconds,
            )
        elif config.github.slug:
            logger.warning(
                "%s is not set; releases will be published as annotated tags only",
                config.github.token_env,
            )
        return cls(git, github, tag_prefix=config.tag_prefix)

    def _tag(self, version: Version) -> str:
        return version.to_tag(self.tag_prefix)

    def _ensure_tags(self) -> None:
        if not self._tags_fetched:
            self._check_branch()
            self.git.fetch_tags()
            self._tags_fetched = True

    def _check_branch(self) -> None:
        # Release commits are made on HEAD and pushed to the release branch.
        current = self.git.current_branch()
        if current != self.git.branch:
            raise HistoryUnavailable(
                f"Checked out {current or 'a detached HEAD'}, not release branch {self.git.branch}",
                hint=f"run from a checkout of {self.git.branch}",
            )

    # -------- History --------

    def latest_release(self) -> tuple[str, Version] | None:
        try:
            self._ensure_tags()
            return self.git.get_latest_release_tag(self.tag_prefix)
        except GitCommandError as e:
            raise HistoryUnavailable("Could not list release tags", hint=e.hint) from e

    def list_commits_since(self, tag: str | None) -> tuple[CommitRecord, ...]:
        try:
            self._ensure_tags()
            return self.git.get_commits_since(tag)
        except GitCommandError as e:
            since = f"since {tag}" if tag else "for the full history"
            raise HistoryUnavailable(f"Could not list commits {since}", hint=e.hint) from e

    def read_file(self, path: str) -> str | None:
        try:
            return self.git.read_file(path)
        except UnicodeDecodeError as e:
            raise FileUnreadable(f"{path} is not valid UTF-8", hint=str(e)) from e
        except OSError as e:
            raise FileUnreadable(f"Could not read {path}", hint=str(e)) from e

    # -------- Tags --------

    def tag_target(self, version: Version) -> str | None:
        tag = self._tag(version)
        try:
            return self.git.tag_target(tag) or self.git.remote_tag_target(tag)
        except GitCommandError as e:
            raise HistoryUnavailable(f"Could not inspect tag {tag}", hint=e.hint) from e

    def tag_exists(self, version: Version) -> bool:
        return self.tag_target(version) is not None

    def create_tag(self, version: Version, target_sha: str) -> ReleaseRecord:
        tag = self._tag(version)
        existing = self.tag_target(version)
        if existing is not None:
            raise TagConflict(f"Tag {tag} already exists", tag_name=tag, existing_sha=existing)

        try:
            self.git.create_tag(tag, target_sha, f"Release {version}")
        except GitCommandError as e:
            raise PublishFailure(f"Could not create tag {tag}", hint=e.hint) from e

        try:
            self.git.push_tag(tag)
        except GitCommandError as e:
            # Somebody else may have pushed the same tag in the meantime.
            remote_sha = self._safe_remote_target(tag)
            self._safe_delete_local(tag)
            if remote_sha is not None:
                raise TagConflict(
                    f"Tag {tag} already exists on {self.git.remote}",
                    tag_name=tag,
                    existing_sha=remote_sha,
                ) from e
            raise PublishFailure(f"Could not push tag {tag}", hint=e.hint) from e

        logger.info("Created tag %s at %s", tag, target_sha[:7])
        return ReleaseRecord(
            version=version,
            tag_name=tag,
            target_sha=target_sha,
            created_at=datetime.now(UTC),
        )

    def delete_tag(self, version: Version) -> None:
        tag = self._tag(version)
        try:
            self.git.delete_tag(tag)
        except GitCommandError as e:
            raise PublishFailure(f"Could not delete tag {tag}", hint=e.hint) from e
        logger.info("Deleted unpublished tag %s", tag)

    def _safe_remote_target(self, tag: str) -> str | None:
        try:
            return self.git.remote_tag_target(tag)
        except GitCommandError:
            logger.debug("Could not query remote tag %s", tag, exc_info=True)
            return None

    def _safe_delete_local(self, tag: str) -> None:
        try:
            self.git.delete_tag(tag, remote=False)
        except GitCommandError:
            logger.warning("Could not remove local tag %s", tag, exc_info=True)

    # -------- Publication --------

    def publish_release(self, record: ReleaseRecord, notes: str) -> ReleaseRecord:
        if self.github is None:
            return _with_notes(record, notes, url=None)

        try:
            existing = self.github.get_release_by_tag(record.tag_name)
            if existing is not None:
                logger.info("Release %s already published at %s", record.tag_name, existing.html_url)
                return _with_notes(record, existing.body, url=existing.html_url)
            info = self.github.create_release(
                record.tag_name,
                notes,
                name=record.tag_name,
                target_commitish=record.target_sha,
            )
        except GitHubApiError as e:
            raise PublishFailure(f"Could not publish release {record.tag_name}: {e}") from e

        return _with_notes(record, notes, url=info.html_url)

    def push_artifacts(self, files: Mapping[str, str], message: str) -> None:
        try:
            sha = self.git.commit_files(files, message)
            if sha is not None:
                self.git.push_branch()
        except GitCommandError as e:
            raise ArtifactPushFailure(
                f"Could not push release artifacts to {self.git.branch}", hint=e.hint
            ) from e
        except OSError as e:
            raise ArtifactPushFailure(f"Could not write release artifacts: {e}") from e


def _with_notes(record: ReleaseRecord, notes: str, *, url: str | None) -> ReleaseRecord:
    return ReleaseRecord(
        version=record.version,
        tag_name=record.tag_name,
        target_sha=record.target_sha,
        created_at=record.created_at,
        commit_shas=record.commit_shas,
        notes=notes,
        url=url,
    )
