"""Core business logic for autorelease.

This module contains the fundamental building blocks:
- Semantic version parsing and bumping
- Conventional commit classification
- Next-version resolution
- Changelog rendering
- Release orchestration
"""

from __future__ import annotations

from autorelease.core.changelog import build as build_changelog
from autorelease.core.changelog import render_section
from autorelease.core.commits import (
    ChangeEntry,
    ChangeType,
    calculate_bump,
    classify,
    classify_commits,
    filter_skip_release_commits,
    get_breaking_changes,
    group_entries_by_type,
)
from autorelease.core.orchestrator import ReleaseOrchestrator, ReleaseState, RunResult
from autorelease.core.resolver import NO_RELEASE, ReleasePlan, Resolution, build_plan, resolve
from autorelease.core.version import BumpType, Version, max_bump, parse_version

__all__ = [
    # Version
    "BumpType",
    "Version",
    "max_bump",
    "parse_version",
    # Commits
    "ChangeEntry",
    "ChangeType",
    "calculate_bump",
    "classify",
    "classify_commits",
    "filter_skip_release_commits",
    "get_breaking_changes",
    "group_entries_by_type",
    # Resolver
    "NO_RELEASE",
    "ReleasePlan",
    "Resolution",
    "build_plan",
    "resolve",
    # Changelog
    "build_changelog",
    "render_section",
    # Orchestrator
    "ReleaseOrchestrator",
    "ReleaseState",
    "RunResult",
]
