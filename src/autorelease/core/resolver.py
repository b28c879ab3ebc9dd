"""Next-version resolution.

Folds the classified commits since the last release into a single
decision: the next version, or no release at all. Everything here is pure;
the previous version is always passed in, never looked up.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, NamedTuple

from autorelease.core.commits import (
    ChangeEntry,
    ChangeType,
    calculate_bump,
    group_entries_by_type,
)
from autorelease.core.version import BumpType, Version

if TYPE_CHECKING:
    from autorelease.vcs.models import CommitRecord

DEFAULT_INITIAL_VERSION = Version(1, 0, 0)


class Resolution(NamedTuple):
    """Outcome of :func:`resolve`. ``next_version`` is ``None`` when no release is due."""

    next_version: Version | None
    bump: BumpType

    @property
    def is_release(self) -> bool:
        return self.next_version is not None


NO_RELEASE = Resolution(None, BumpType.NONE)


def resolve(
    previous_version: Version | None,
    entries: Sequence[ChangeEntry],
    *,
    initial_version: Version = DEFAULT_INITIAL_VERSION,
) -> Resolution:
    """Compute the next version from the entries since ``previous_version``.

    Args:
        previous_version: Last released version, ``None`` if never released
        entries: Classified commits, oldest first
        initial_version: Version used for the very first release

    Returns:
        ``Resolution(next_version, bump)``, or :data:`NO_RELEASE` when no
        entry warrants a bump.
    """
    bump = calculate_bump(entries)
    if bump == BumpType.NONE:
        return NO_RELEASE
    if previous_version is None:
        return Resolution(initial_version, bump)
    return Resolution(previous_version.core.bump(bump), bump)


@dataclass(frozen=True)
class ReleasePlan:
    """Everything decided for one release, before anything is written."""

    previous_version: Version | None
    next_version: Version
    bump: BumpType
    tag_name: str
    target_sha: str
    entries: tuple[ChangeEntry, ...]
    grouped: Mapping[ChangeType, Sequence[ChangeEntry]] = field(default_factory=dict)
    commits: tuple[CommitRecord, ...] = ()

    @property
    def is_first_release(self) -> bool:
        return self.previous_version is None

    @property
    def commit_shas(self) -> frozenset[str]:
        return frozenset(c.sha for c in self.commits)

    def summary(self) -> dict[str, object]:
        """Machine-readable view of the plan."""
        return {
            "previous_version": str(self.previous_version) if self.previous_version else None,
            "next_version": str(self.next_version),
            "bump": str(self.bump),
            "tag": self.tag_name,
            "target": self.target_sha,
            "commits": len(self.commits),
            "changes": {str(kind): len(items) for kind, items in self.grouped.items()},
        }


def build_plan(
    previous_version: Version | None,
    commits: Sequence[CommitRecord],
    entries: Sequence[ChangeEntry],
    *,
    tag_prefix: str = "v",
    initial_version: Version = DEFAULT_INITIAL_VERSION,
) -> ReleasePlan | None:
    """Resolve and package the result as a :class:`ReleasePlan`.

    Returns ``None`` when no release is due. The newest commit is the tag
    target.
    """
    resolution = resolve(previous_version, entries, initial_version=initial_version)
    if resolution.next_version is None or not commits:
        return None
    return ReleasePlan(
        previous_version=previous_version,
        next_version=resolution.next_version,
        bump=resolution.bump,
        tag_name=resolution.next_version.to_tag(tag_prefix),
        target_sha=commits[-1].sha,
        entries=tuple(entries),
        grouped=group_entries_by_type(entries),
        commits=tuple(commits),
    )
