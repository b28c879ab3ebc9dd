"""Records exchanged with the repository gateway."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from autorelease.core.version import Version


@dataclass(frozen=True)
class CommitRecord:
    """A commit as listed by the gateway. Never mutated."""

    sha: str
    date: datetime
    message: str

    @property
    def lines(self) -> tuple[str, ...]:
        return tuple(self.message.splitlines())

    @property
    def short_sha(self) -> str:
        return self.sha[:7]

    @property
    def subject(self) -> str:
        return self.lines[0] if self.message else ""


@dataclass(frozen=True)
class ReleaseRecord:
    """A published release: tag, hosted release and the commits it covers.

    Once published it is immutable. ``notes`` and ``url`` are filled in
    by the publish step; ``create_tag`` returns a record without them.
    """

    version: Version
    tag_name: str
    target_sha: str
    created_at: datetime
    commit_shas: frozenset[str] = field(default_factory=frozenset)
    notes: str = ""
    url: str | None = None

    def idempotency_key(self, branch: str) -> tuple[str, str]:
        return (branch, str(self.version))
