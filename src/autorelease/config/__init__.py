"""Configuration management for autorelease."""

from __future__ import annotations

from autorelease.config.loader import load_config
from autorelease.config.models import (
    AutoReleaseConfig,
    ChangelogConfig,
    CommitsConfig,
    GitHubConfig,
    PublishConfig,
    VersionConfig,
)

__all__ = [
    "AutoReleaseConfig",
    "ChangelogConfig",
    "CommitsConfig",
    "GitHubConfig",
    "PublishConfig",
    "VersionConfig",
    "load_config",
]
