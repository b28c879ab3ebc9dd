"""Version rewriting for pyproject.toml and Python source files.

All functions work on file *content* and return new content; nothing here
touches the filesystem. Edits are targeted regex replacements so that
formatting and comments survive.
"""

from __future__ import annotations

import re

from autorelease.exceptions import VersionNotFoundError

_VERSION_ASSIGNMENT = r'^(version\s*=\s*)["\'][^"\']+["\']'

_SECTION_PATTERNS = (
    r"^\[project\].*?(?=^\[|\Z)",
    r"^\[tool\.poetry\].*?(?=^\[|\Z)",
)

DEFAULT_VERSION_PATTERNS = (
    r'^__version__\s*=\s*["\']([^"\']+)["\']',
    r'^VERSION\s*=\s*["\']([^"\']+)["\']',
    r'^version\s*=\s*["\']([^"\']+)["\']',
)


def get_pyproject_version(content: str) -> str:
    """Return ``[project].version`` (or ``[tool.poetry].version``).

    Raises:
        VersionNotFoundError: If neither table declares a version
    """
    for section_pattern in _SECTION_PATTERNS:
        section = re.search(section_pattern, content, re.MULTILINE | re.DOTALL)
        if section is None:
            continue
        match = re.search(
            r'^version\s*=\s*["\']([^"\']+)["\']', section.group(0), re.MULTILINE
        )
        if match:
            return match.group(1)

    raise VersionNotFoundError(
        "Could not find version in pyproject.toml. "
        "Expected [project].version or [tool.poetry].version."
    )


def update_pyproject_version(content: str, new_version: str) -> str:
    """Set the version inside ``[project]`` or, failing that, ``[tool.poetry]``.

    Raises:
        VersionNotFoundError: If no version assignment exists in either table
    """

    def replace(match: re.Match[str]) -> str:
        return re.sub(
            _VERSION_ASSIGNMENT,
            rf'\g<1>"{new_version}"',
            match.group(0),
            count=1,
            flags=re.MULTILINE,
        )

    for section_pattern in _SECTION_PATTERNS:
        section = re.search(section_pattern, content, re.MULTILINE | re.DOTALL)
        if section is None or not re.search(_VERSION_ASSIGNMENT, section.group(0), re.MULTILINE):
            continue
        return re.sub(
            section_pattern,
            replace,
            content,
            count=1,
            flags=re.MULTILINE | re.DOTALL,
        )

    raise VersionNotFoundError(
        "Could not find version to update in pyproject.toml. "
        "Expected [project].version or [tool.poetry].version."
    )


def get_version_from_content(content: str, pattern: str | None = None) -> str:
    """Read a version from Python source (``__version__ = "..."`` by default).

    Args:
        content: File content
        pattern: Regex with one capture group for the version

    Raises:
        VersionNotFoundError: If no pattern matches
    """
    patterns = [pattern] if pattern else list(DEFAULT_VERSION_PATTERNS)
    for pat in patterns:
        match = re.search(pat, content, re.MULTILINE)
        if match:
            return match.group(1)
    raise VersionNotFoundError("Could not find a version assignment")


def update_version_content(content: str, new_version: str, pattern: str | None = None) -> str:
    """Replace the first version assignment in Python source.

    Args:
        content: File content
        new_version: Version to write
        pattern: Regex whose first group is the text kept before the quoted
            version. Defaults to ``__version__ = "..."``.

    Raises:
        VersionNotFoundError: If the pattern does not match
    """
    if pattern is None:
        pattern = r'^(__version__\s*=\s*)["\'][^"\']+["\']'

    new_content, count = re.subn(
        pattern,
        rf'\g<1>"{new_version}"',
        content,
        count=1,
        flags=re.MULTILINE,
    )
    if count == 0:
        raise VersionNotFoundError("Could not find a version assignment to update")
    return new_content
