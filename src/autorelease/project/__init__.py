"""Project files that carry the released version."""

from __future__ import annotations

from autorelease.project.artifacts import build_artifacts, render_version_file
from autorelease.project.pyproject import (
    get_pyproject_version,
    get_version_from_content,
    update_pyproject_version,
    update_version_content,
)

__all__ = [
    "build_artifacts",
    "get_pyproject_version",
    "get_version_from_content",
    "render_version_file",
    "update_pyproject_version",
    "update_version_content",
]
