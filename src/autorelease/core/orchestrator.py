"""Release orchestration.

One run walks a fixed state machine::

    IDLE -> FETCHING -> CLASSIFYING -> RESOLVING -> (NO_RELEASE | PREPARING)
         -> PUBLISHING -> COMMITTING -> DONE

with FAILED reachable from every non-terminal state. Nothing external is
written before PUBLISHING, so a run that fails earlier can simply be
re-run. Once the release is published it is never rolled back; a failed
artifact push afterwards is reported as a partial success.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from autorelease.core import changelog
from autorelease.core.commits import classify_commits, filter_skip_release_commits
from autorelease.core.resolver import ReleasePlan, build_plan
from autorelease.exceptions import (
    ArtifactPushFailure,
    AutoReleaseError,
    ConfigValidationError,
    InvalidTransitionError,
    PublishFailure,
    TagConflict,
    VersionCollision,
)
from autorelease.project.artifacts import build_artifacts

if TYPE_CHECKING:
    from autorelease.config.models import AutoReleaseConfig
    from autorelease.vcs.gateway import RepositoryGateway
    from autorelease.vcs.models import ReleaseRecord

logger = logging.getLogger(__name__)


class ReleaseState(StrEnum):
    IDLE = "idle"
    FETCHING = "fetching"
    CLASSIFYING = "classifying"
    RESOLVING = "resolving"
    NO_RELEASE = "no_release"
    PREPARING = "preparing"
    PUBLISHING = "publishing"
    COMMITTING = "committing"
    DONE = "done"
    FAILED = "failed"


TERMINAL_STATES = frozenset({ReleaseState.NO_RELEASE, ReleaseState.DONE, ReleaseState.FAILED})

TRANSITIONS: dict[ReleaseState, frozenset[ReleaseState]] = {
    ReleaseState.IDLE: frozenset({ReleaseState.FETCHING}),
    ReleaseState.FETCHING: frozenset({ReleaseState.CLASSIFYING}),
    ReleaseState.CLASSIFYING: frozenset({ReleaseState.RESOLVING}),
    ReleaseState.RESOLVING: frozenset({ReleaseState.NO_RELEASE, ReleaseState.PREPARING}),
    # The idempotency guard may end the run before anything is published.
    ReleaseState.PREPARING: frozenset({ReleaseState.PUBLISHING, ReleaseState.NO_RELEASE}),
    ReleaseState.PUBLISHING: frozenset({ReleaseState.COMMITTING, ReleaseState.NO_RELEASE}),
    ReleaseState.COMMITTING: frozenset({ReleaseState.DONE}),
}


class ExitCode:
    OK = 0
    FAILED = 1
    PARTIAL = 2


# Reasons reported for runs that end in NO_RELEASE.
REASON_NO_COMMITS = "no_commits"
REASON_NO_RELEASABLE_CHANGES = "no_releasable_changes"
REASON_ALREADY_RELEASED = "already_released"


@dataclass
class RunResult:
    """Outcome of one orchestrator run."""

    state: ReleaseState
    plan: ReleasePlan | None = None
    record: ReleaseRecord | None = None
    notes: str | None = None
    artifacts: dict[str, str] = field(default_factory=dict)
    dry_run: bool = False
    error: AutoReleaseError | None = None
    failed_transition: tuple[ReleaseState, ReleaseState] | None = None
    partial: bool = False
    no_release_reason: str | None = None
    transitions: list[tuple[ReleaseState, ReleaseState]] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.state != ReleaseState.FAILED

    @property
    def reason(self) -> str | None:
        """Machine-readable reason code for the outcome."""
        if self.error is not None:
            return self.error.code
        return self.no_release_reason

    @property
    def exit_code(self) -> int:
        if self.state != ReleaseState.FAILED:
            return ExitCode.OK
        return ExitCode.PARTIAL if self.partial else ExitCode.FAILED

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "state": str(self.state),
            "dry_run": self.dry_run,
            "exit_code": self.exit_code,
            "reason": self.reason,
            "partial": self.partial,
            "plan": self.plan.summary() if self.plan else None,
            "release": None,
            "error": None,
            "failed_transition": None,
        }
        if self.record is not None:
            data["release"] = {
                "version": str(self.record.version),
                "tag": self.record.tag_name,
                "target": self.record.target_sha,
                "url": self.record.url,
            }
        if self.error is not None:
            data["error"] = {"message": self.error.message, "hint": self.error.hint}
        if self.failed_transition is not None:
            data["failed_transition"] = [str(s) for s in self.failed_transition]
        return data


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ReleaseOrchestrator:
    """Drive one release run against a repository gateway.

    A single orchestrator may be run repeatedly; each run starts from IDLE
    and recomputes everything from the gateway's current view.
    """

    def __init__(
        self,
        gateway: RepositoryGateway,
        config: AutoReleaseConfig,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.gateway = gateway
        self.config = config
        self.clock = clock
        self._result = RunResult(state=ReleaseState.IDLE)
        self._target: ReleaseState | None = None

    @property
    def state(self) -> ReleaseState:
        return self._result.state

    def _transition(self, new_state: ReleaseState) -> None:
        current = self._result.state
        allowed = TRANSITIONS.get(current, frozenset())
        if new_state != ReleaseState.FAILED and new_state not in allowed:
            raise InvalidTransitionError(f"Illegal transition {current} -> {new_state}")
        if new_state == ReleaseState.FAILED and current in TERMINAL_STATES:
            raise InvalidTransitionError(f"Cannot fail from terminal state {current}")
        logger.info("%s -> %s", current, new_state)
        self._result.transitions.append((current, new_state))
        self._result.state = new_state

    def _attempt(self, next_state: ReleaseState) -> None:
        # Remembered so a failure names the exact transition that broke.
        self._target = next_state

    def run(self, *, dry_run: bool = False) -> RunResult:
        """Execute one release run.

        Args:
            dry_run: Stop after PREPARING and report the plan without any
                gateway writes

        Returns:
            The run result; errors are captured in it rather than raised
        """
        self._result = RunResult(state=ReleaseState.IDLE, dry_run=dry_run)
        self._target = None
        try:
            self._run(dry_run)
        except InvalidTransitionError:
            raise
        except AutoReleaseError as e:
            self._fail(e)
        return self._result

    def _run(self, dry_run: bool) -> None:
        result = self._result
        config = self.config

        self._transition(ReleaseState.FETCHING)
        self._attempt(ReleaseState.CLASSIFYING)
        latest = self.gateway.latest_release()
        previous_tag, previous_version = latest if latest else (None, None)
        commits = self.gateway.list_commits_since(previous_tag)
        logger.info(
            "Found %d commit(s) since %s", len(commits), previous_tag or "the beginning"
        )

        self._transition(ReleaseState.CLASSIFYING)
        self._attempt(ReleaseState.RESOLVING)
        releasable = filter_skip_release_commits(commits, config.commits.skip_release_patterns)
        entries = classify_commits(releasable, config.commits)

        self._transition(ReleaseState.RESOLVING)
        self._attempt(ReleaseState.PREPARING)
        plan = build_plan(
            previous_version,
            commits,
            entries,
            tag_prefix=config.tag_prefix,
            initial_version=config.initial_version,
        )
        if plan is None:
            reason = REASON_NO_COMMITS if not commits else REASON_NO_RELEASABLE_CHANGES
            self._no_release(reason)
            return
        result.plan = plan
        logger.info(
            "Next version %s (%s bump from %s)",
            plan.next_version,
            plan.bump,
            plan.previous_version or "no previous release",
        )

        self._transition(ReleaseState.PREPARING)
        self._attempt(ReleaseState.PUBLISHING)
        release_date = self.clock()
        result.notes = changelog.render_section(
            plan.next_version, plan.grouped, release_date=release_date
        )
        result.artifacts = build_artifacts(
            plan, config, self.gateway.read_file, release_date=release_date
        )
        commit_message = _release_commit_message(config, plan)
        if config.publish.registry:
            logger.info("Package registry publishing is left to the surrounding workflow")
        if dry_run:
            logger.info("Dry run: stopping before %s", ReleaseState.PUBLISHING)
            return

        existing = self.gateway.tag_target(plan.next_version)
        if existing is not None:
            self._check_existing_tag(plan, existing)
            self._no_release(REASON_ALREADY_RELEASED)
            return

        self._transition(ReleaseState.PUBLISHING)
        self._attempt(ReleaseState.COMMITTING)
        try:
            record = self.gateway.create_tag(plan.next_version, plan.target_sha)
        except TagConflict as e:
            self._check_existing_tag(plan, e.existing_sha)
            self._no_release(REASON_ALREADY_RELEASED)
            return
        record = replace(record, commit_shas=plan.commit_shas)

        try:
            record = self.gateway.publish_release(record, result.notes)
        except PublishFailure:
            self._remove_unpublished_tag(plan)
            raise
        result.record = record
        logger.info("Published %s", record.tag_name)

        self._transition(ReleaseState.COMMITTING)
        self._attempt(ReleaseState.DONE)
        if result.artifacts:
            try:
                self.gateway.push_artifacts(result.artifacts, commit_message)
            except ArtifactPushFailure as e:
                result.partial = True
                logger.error(
                    "Release %s is published but the branch lacks its changelog/version "
                    "commit; push the artifacts manually",
                    record.tag_name,
                )
                self._fail(e)
                return

        self._transition(ReleaseState.DONE)

    def _check_existing_tag(self, plan: ReleasePlan, existing_sha: str | None) -> None:
        if existing_sha is not None and existing_sha != plan.target_sha:
            raise VersionCollision(
                f"Tag {plan.tag_name} already points at {existing_sha[:7]}, "
                f"expected {plan.target_sha[:7]}",
                hint="two histories claim the same version; resolve the tag manually",
            )
        logger.info("%s already released at %s, nothing to do", plan.tag_name, plan.target_sha[:7])

    def _remove_unpublished_tag(self, plan: ReleasePlan) -> None:
        try:
            self.gateway.delete_tag(plan.next_version)
        except PublishFailure:
            logger.error(
                "Tag %s was created but its release was not published and the tag "
                "could not be removed; delete it before retrying",
                plan.tag_name,
            )

    def _no_release(self, reason: str) -> None:
        self._result.no_release_reason = reason
        self._transition(ReleaseState.NO_RELEASE)

    def _fail(self, error: AutoReleaseError) -> None:
        current = self._result.state
        target = self._target or current
        self._result.error = error
        self._result.failed_transition = (current, target)
        logger.error("Release failed during %s -> %s: %s", current, target, error)
        if current in TERMINAL_STATES:
            return
        self._transition(ReleaseState.FAILED)


def _release_commit_message(config: AutoReleaseConfig, plan: ReleasePlan) -> str:
    template = config.commits.release_commit_message
    try:
        return template.format(version=plan.next_version)
    except (KeyError, IndexError, ValueError) as e:
        raise ConfigValidationError(
            f"Invalid release_commit_message {template!r}",
            hint="only the {version} placeholder is allowed",
        ) from e
