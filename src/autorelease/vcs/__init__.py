"""Version control and hosting adapters."""

from __future__ import annotations

from autorelease.vcs.gateway import RepositoryGateway
from autorelease.vcs.git import GitRepository
from autorelease.vcs.github import GitHubClient
from autorelease.vcs.hosted import HostedGateway
from autorelease.vcs.models import CommitRecord, ReleaseRecord

__all__ = [
    "CommitRecord",
    "GitHubClient",
    "GitRepository",
    "HostedGateway",
    "ReleaseRecord",
    "RepositoryGateway",
]
