"""Repository gateway interface.

The orchestrator talks to version control and the hosting service only
through this interface. Implementations map every failure onto one of the
gateway errors in :mod:`autorelease.exceptions`; a timeout counts as a
failure of the operation that timed out.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from autorelease.core.version import Version
    from autorelease.vcs.models import CommitRecord, ReleaseRecord


class RepositoryGateway(ABC):
    """Commit history, tags, hosted releases and branch pushes."""

    @abstractmethod
    def latest_release(self) -> tuple[str, Version] | None:
        """
        Find the newest stable release tag.

        Returns:
            ``(tag_name, version)``, or ``None`` if nothing was released yet

        Raises:
            HistoryUnavailable: If tags cannot be listed
        """
        ...

    @abstractmethod
    def list_commits_since(self, tag: str | None) -> tuple[CommitRecord, ...]:
        """
        List commits after ``tag`` (full history when ``None``).

        Returns:
            Commits ordered from oldest to newest

        Raises:
            HistoryUnavailable: If the history cannot be enumerated
        """
        ...

    @abstractmethod
    def tag_exists(self, version: Version) -> bool:
        """Whether the release tag for ``version`` exists."""
        ...

    @abstractmethod
    def tag_target(self, version: Version) -> str | None:
        """Commit the release tag for ``version`` points at, or ``None``."""
        ...

    @abstractmethod
    def create_tag(self, version: Version, target_sha: str) -> ReleaseRecord:
        """
        Create and push the release tag.

        Raises:
            TagConflict: If the tag already exists
            PublishFailure: If the tag cannot be created or pushed
        """
        ...

    @abstractmethod
    def delete_tag(self, version: Version) -> None:
        """
        Remove a tag created by this run whose release never got published.

        Raises:
            PublishFailure: If the tag cannot be removed
        """
        ...

    @abstractmethod
    def publish_release(self, record: ReleaseRecord, notes: str) -> ReleaseRecord:
        """
        Publish the hosted release for an existing tag.

        Returns:
            The record with notes and URL filled in

        Raises:
            PublishFailure: If the hosting service rejects the release
        """
        ...

    @abstractmethod
    def push_artifacts(self, files: Mapping[str, str], message: str) -> None:
        """
        Commit ``files`` (path to content) and push them to the branch.

        Raises:
            ArtifactPushFailure: If the commit or push fails
        """
        ...

    @abstractmethod
    def read_file(self, path: str) -> str | None:
        """
        Current content of a repository file, ``None`` if absent.

        Raises:
            FileUnreadable: If the file exists but cannot be decoded
        """
        ...
