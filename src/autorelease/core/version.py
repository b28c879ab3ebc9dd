"""Semantic versions and bump kinds.

Versions follow SemVer 2.0.0: ``MAJOR.MINOR.PATCH[-PRERELEASE][+BUILD]``.
Precedence is major, minor, patch, then pre-release; build metadata is
carried along but never takes part in ordering or equality.
"""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass, field
from enum import StrEnum

from autorelease.exceptions import InvalidVersionError

_SEMVER_RE = re.compile(
    r"^v?(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<prerelease>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)


class BumpType(StrEnum):
    """Category of version increment, from weakest to strongest."""

    NONE = "none"
    PATCH = "patch"
    MINOR = "minor"
    MAJOR = "major"

    @property
    def rank(self) -> int:
        return _BUMP_RANK[self]


_BUMP_RANK = {
    BumpType.NONE: 0,
    BumpType.PATCH: 1,
    BumpType.MINOR: 2,
    BumpType.MAJOR: 3,
}


def max_bump(*bumps: BumpType) -> BumpType:
    """Return the strongest of the given bumps (``NONE`` when empty).

    >>> max_bump(BumpType.PATCH, BumpType.MINOR)
    <BumpType.MINOR: 'minor'>
    """
    return max(bumps, key=lambda b: b.rank, default=BumpType.NONE)


def _prerelease_key(prerelease: str | None) -> tuple:
    # A release without pre-release sorts after any of its pre-releases.
    if prerelease is None:
        return (1, ())
    identifiers = []
    for part in prerelease.split("."):
        if part.isdigit():
            identifiers.append((0, int(part), ""))
        else:
            identifiers.append((1, 0, part))
    return (0, tuple(identifiers))


@functools.total_ordering
@dataclass(frozen=True, slots=True)
class Version:
    """An immutable semantic version."""

    major: int
    minor: int
    patch: int
    prerelease: str | None = None
    build: str | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if min(self.major, self.minor, self.patch) < 0:
            raise InvalidVersionError(
                f"Version components must be non-negative: "
                f"{self.major}.{self.minor}.{self.patch}"
            )

    @classmethod
    def parse(cls, value: str) -> Version:
        """Parse ``1.2.3``, ``v1.2.3``, ``1.2.3-rc.1+build.5`` and friends.

        Raises:
            InvalidVersionError: If the string is not a semantic version
        """
        match = _SEMVER_RE.match(value.strip())
        if match is None:
            raise InvalidVersionError(f"Invalid semantic version: {value!r}")
        return cls(
            major=int(match.group("major")),
            minor=int(match.group("minor")),
            patch=int(match.group("patch")),
            prerelease=match.group("prerelease"),
            build=match.group("build"),
        )

    @property
    def is_stable(self) -> bool:
        return self.prerelease is None

    @property
    def core(self) -> Version:
        """This version without pre-release and build metadata."""
        return Version(self.major, self.minor, self.patch)

    def bump(self, bump_type: BumpType) -> Version:
        """Increment the component named by ``bump_type``.

        Lower components reset to zero and metadata is dropped.
        ``BumpType.NONE`` returns the version unchanged.
        """
        if bump_type == BumpType.MAJOR:
            return Version(self.major + 1, 0, 0)
        if bump_type == BumpType.MINOR:
            return Version(self.major, self.minor + 1, 0)
        if bump_type == BumpType.PATCH:
            return Version(self.major, self.minor, self.patch + 1)
        return self

    def to_tag(self, prefix: str = "v") -> str:
        return f"{prefix}{self}"

    def _precedence(self) -> tuple:
        return (self.major, self.minor, self.patch, _prerelease_key(self.prerelease))

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._precedence() < other._precedence()

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += f"-{self.prerelease}"
        if self.build:
            text += f"+{self.build}"
        return text


def parse_version(value: str) -> Version:
    """Parse a version string. See :meth:`Version.parse`."""
    return Version.parse(value)


def parse_tag(tag: str, prefix: str = "v") -> Version | None:
    """Parse a release tag such as ``v1.2.3``; ``None`` when it is not one."""
    if prefix and not tag.startswith(prefix):
        return None
    try:
        return Version.parse(tag[len(prefix) :])
    except InvalidVersionError:
        return None
