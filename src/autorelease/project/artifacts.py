"""Assemble the files committed back to the branch after a release."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from autorelease.core import changelog
from autorelease.exceptions import VersionNotFoundError
from autorelease.project.pyproject import update_pyproject_version, update_version_content

if TYPE_CHECKING:
    from autorelease.config.models import AutoReleaseConfig
    from autorelease.core.resolver import ReleasePlan

logger = logging.getLogger(__name__)

FileReader = Callable[[str], str | None]


def render_version_file(version: str) -> str:
    return f"{version}\n"


def build_artifacts(
    plan: ReleasePlan,
    config: AutoReleaseConfig,
    read_file: FileReader,
    *,
    release_date: datetime,
) -> dict[str, str]:
    """Compute new content for every release artifact, in memory.

    Args:
        plan: The resolved release
        config: Project configuration naming the artifact paths
        read_file: Returns current content of a repo-relative path, or
            ``None`` if it does not exist
        release_date: Date stamped on the changelog section

    Returns:
        Mapping of repo-relative POSIX path to new content

    Raises:
        VersionNotFoundError: If a configured version file has no version
            assignment to rewrite
    """
    version = str(plan.next_version)
    files: dict[str, str] = {}

    if config.changelog.enabled:
        path = _key(config.changelog.path)
        files[path] = changelog.build(
            plan.next_version,
            plan.grouped,
            read_file(path) or "",
            release_date=release_date,
            header=config.changelog.header,
        )

    if config.version.version_file is not None:
        files[_key(config.version.version_file)] = render_version_file(version)

    if config.version.update_pyproject:
        current = read_file("pyproject.toml")
        if current is None:
            raise VersionNotFoundError("update_pyproject is set but pyproject.toml is missing")
        files["pyproject.toml"] = update_pyproject_version(current, version)

    for extra in config.version.version_files:
        path = _key(extra)
        current = read_file(path)
        if current is None:
            raise VersionNotFoundError(f"Version file not found: {path}")
        try:
            files[path] = update_version_content(current, version)
        except VersionNotFoundError as e:
            raise VersionNotFoundError(f"Could not find version pattern in {path}") from e

    logger.debug("Prepared %d artifact(s): %s", len(files), ", ".join(files))
    return files


def _key(path: Path) -> str:
    return path.as_posix()
