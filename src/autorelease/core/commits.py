"""Conventional commit classification.

Turns raw commit messages into :class:`ChangeEntry` records. The header
grammar is ``type(scope)!: description`` with optional scope and ``!``.
Classification is total: any string, however malformed, yields an entry
(type ``other``, no bump) instead of an error.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from autorelease.core.version import BumpType, max_bump

if TYPE_CHECKING:
    from autorelease.config.models import CommitsConfig
    from autorelease.vcs.models import CommitRecord

HEADER_PATTERN = re.compile(
    r"^(?P<type>[A-Za-z][A-Za-z0-9_-]*)"
    r"(?:\((?P<scope>[^()\r\n]*)\))?"
    r"(?P<breaking>!)?"
    r":\s*(?P<description>\S.*)$"
)

# Footer tokens are matched case-sensitively.
BREAKING_FOOTER_PATTERN = re.compile(r"^(?:BREAKING CHANGE|BREAKING-CHANGE):\s*(?P<text>.*)$")


class ChangeType(StrEnum):
    FEATURE = "feature"
    FIX = "fix"
    BREAKING = "breaking"
    CHORE = "chore"
    DOCS = "docs"
    OTHER = "other"


COMMIT_TYPE_KINDS: dict[str, ChangeType] = {
    "feat": ChangeType.FEATURE,
    "fix": ChangeType.FIX,
    "chore": ChangeType.CHORE,
    "docs": ChangeType.DOCS,
    "breaking": ChangeType.BREAKING,
}


@dataclass(frozen=True)
class ChangeEntry:
    """A classified commit.

    ``commit`` points back at the source record for lookups only and does
    not take part in equality.
    """

    change_type: ChangeType
    description: str
    commit_type: str | None = None
    scope: str | None = None
    is_breaking: bool = False
    breaking_description: str | None = None
    bump: BumpType = BumpType.NONE
    commit: CommitRecord | None = field(default=None, compare=False, repr=False)

    @property
    def is_conventional(self) -> bool:
        return self.commit_type is not None

    @property
    def short_sha(self) -> str | None:
        return self.commit.short_sha if self.commit is not None else None


def _find_breaking_footer(body_lines: Iterable[str]) -> tuple[bool, str | None]:
    for line in body_lines:
        match = BREAKING_FOOTER_PATTERN.match(line.strip())
        if match:
            # First footer wins for rendering; later ones don't change severity.
            return True, match.group("text").strip() or None
    return False, None


def classify(
    message: str,
    *,
    config: CommitsConfig | None = None,
    commit: CommitRecord | None = None,
) -> ChangeEntry:
    """Classify one commit message.

    Args:
        message: Full commit message; the first line is the header
        config: Commit settings providing the severity table (defaults apply
            when omitted)
        commit: Source record to reference from the entry

    Returns:
        A ChangeEntry. Never ``None`` and never raises.
    """
    if config is None:
        from autorelease.config.models import CommitsConfig

        config = CommitsConfig()

    lines = message.splitlines() or [""]
    header = lines[0].strip()
    has_footer, breaking_text = _find_breaking_footer(lines[1:])

    match = HEADER_PATTERN.match(header)
    if match is None:
        return ChangeEntry(
            change_type=ChangeType.OTHER,
            description=header,
            is_breaking=has_footer,
            breaking_description=breaking_text,
            bump=BumpType.MAJOR if has_footer else BumpType.NONE,
            commit=commit,
        )

    commit_type = match.group("type").lower()
    scope = (match.group("scope") or "").strip() or None
    is_breaking = bool(match.group("breaking")) or has_footer
    bump = BumpType.MAJOR if is_breaking else config.severity_for(commit_type)

    return ChangeEntry(
        change_type=COMMIT_TYPE_KINDS.get(commit_type, ChangeType.OTHER),
        description=match.group("description").strip(),
        commit_type=commit_type,
        scope=scope,
        is_breaking=is_breaking,
        breaking_description=breaking_text,
        bump=bump,
        commit=commit,
    )


def classify_commits(
    commits: Iterable[CommitRecord],
    config: CommitsConfig | None = None,
) -> list[ChangeEntry]:
    """Classify commits, preserving their order."""
    return [classify(c.message, config=config, commit=c) for c in commits]


def filter_skip_release_commits(
    commits: Sequence[CommitRecord],
    patterns: Sequence[str],
) -> list[CommitRecord]:
    """Drop commits whose message contains a skip-release marker.

    Markers are matched case-insensitively anywhere in the message.
    """
    if not patterns:
        return list(commits)
    lowered = [p.lower() for p in patterns]
    return [c for c in commits if not any(p in c.message.lower() for p in lowered)]


def calculate_bump(entries: Iterable[ChangeEntry]) -> BumpType:
    """Strongest bump across entries; breaking always means major."""
    return max_bump(*(e.bump for e in entries))


def group_entries_by_type(entries: Iterable[ChangeEntry]) -> dict[ChangeType, list[ChangeEntry]]:
    """Group entries for changelog rendering.

    Breaking entries, and types configured as major, go under
    ``ChangeType.BREAKING`` whatever their declared type, so each entry
    lands in exactly one group.
    """
    grouped: dict[ChangeType, list[ChangeEntry]] = {}
    for entry in entries:
        if entry.is_breaking or entry.bump == BumpType.MAJOR:
            key = ChangeType.BREAKING
        else:
            key = entry.change_type
        grouped.setdefault(key, []).append(entry)
    return grouped


def get_breaking_changes(entries: Iterable[ChangeEntry]) -> list[ChangeEntry]:
    return [e for e in entries if e.is_breaking]
