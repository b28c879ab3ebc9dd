"""Changelog rendering.

A release section groups entries into Breaking Changes, Features and Bug
Fixes, in that order. New sections are only ever prepended: existing
changelog text is kept byte for byte below the new section.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date, datetime

from autorelease.core.commits import ChangeEntry, ChangeType
from autorelease.core.version import Version

DEFAULT_HEADER = "# Changelog"

SECTION_TITLES: tuple[tuple[ChangeType, str], ...] = (
    (ChangeType.BREAKING, "### Breaking Changes"),
    (ChangeType.FEATURE, "### Features"),
    (ChangeType.FIX, "### Bug Fixes"),
)


def format_entry(entry: ChangeEntry, *, breaking: bool = False) -> str:
    """Render one entry as a markdown list item.

    Under Breaking Changes the first ``BREAKING CHANGE:`` footer text is
    preferred over the header description.
    """
    text = entry.description
    if breaking and entry.breaking_description:
        text = entry.breaking_description
    scope = f"**{entry.scope}:** " if entry.scope else ""
    sha = f" ({entry.short_sha})" if entry.short_sha else ""
    return f"- {scope}{text}{sha}"


def render_section(
    version: Version,
    grouped: Mapping[ChangeType, Sequence[ChangeEntry]],
    *,
    release_date: date | datetime,
) -> str:
    """Render the changelog section for one release (also used as release notes)."""
    lines = [f"## [{version}] - {release_date.strftime('%Y-%m-%d')}", ""]
    for change_type, title in SECTION_TITLES:
        entries = grouped.get(change_type, ())
        if not entries:
            continue
        lines.append(title)
        lines.append("")
        is_breaking = change_type == ChangeType.BREAKING
        lines.extend(format_entry(e, breaking=is_breaking) for e in entries)
        lines.append("")
    return "\n".join(lines).rstrip("\n") + "\n"


def prepend_section(section: str, prior: str, *, header: str = DEFAULT_HEADER) -> str:
    """Place ``section`` above every existing section of ``prior``.

    If ``prior`` opens with ``header`` the section goes right after it,
    otherwise at the very top. ``prior`` itself is never altered.
    """
    section = section.rstrip("\n") + "\n"
    if not prior.strip():
        return f"{header}\n\n{section}" if header else section

    if header and prior.startswith(header):
        rest = prior[len(header) :]
        if rest == "":
            return f"{header}\n\n{section}"
        if rest.startswith("\n"):
            # Everything after the header's own line break is kept as is.
            return f"{header}\n\n{section}{rest[1:]}"

    return f"{section}\n{prior}"


def build(
    next_version: Version,
    grouped: Mapping[ChangeType, Sequence[ChangeEntry]],
    prior_changelog: str,
    *,
    release_date: date | datetime,
    header: str = DEFAULT_HEADER,
) -> str:
    """Return the complete new changelog: new section first, prior content after.

    Deterministic for identical inputs; ``release_date`` is the only
    time-dependent value and is always supplied by the caller.
    """
    section = render_section(next_version, grouped, release_date=release_date)
    return prepend_section(section, prior_changelog, header=header)
