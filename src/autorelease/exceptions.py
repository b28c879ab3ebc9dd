"""Exception hierarchy for autorelease.

Every error carries a stable, machine-readable ``code`` so the CLI can
report *why* a run failed without parsing messages. Gateway errors map
one-to-one onto the recovery action the orchestrator takes for them.
"""

from __future__ import annotations


class AutoReleaseError(Exception):
    """Base class for all autorelease errors."""

    code = "error"

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message} ({self.hint})"
        return self.message


# =============================================================================
# Configuration
# =============================================================================


class ConfigError(AutoReleaseError):
    """Base class for configuration problems."""

    code = "config_invalid"


class ConfigNotFoundError(ConfigError):
    """No pyproject.toml could be located."""

    code = "config_not_found"


class ConfigValidationError(ConfigError):
    """Configuration exists but does not validate."""


# =============================================================================
# Versions and project files
# =============================================================================


class VersionError(AutoReleaseError):
    code = "version_invalid"


class InvalidVersionError(VersionError):
    """A string is not a valid semantic version."""


class ProjectError(AutoReleaseError):
    code = "project_error"


class VersionNotFoundError(ProjectError):
    """A version file does not contain a recognisable version."""

    code = "version_not_found"


# =============================================================================
# Repository gateway
# =============================================================================


class GatewayError(AutoReleaseError):
    """Base class for failures at the repository/hosting boundary."""

    code = "gateway_error"


class HistoryUnavailable(GatewayError):
    """Commit history could not be enumerated. Fatal, never retried here."""

    code = "history_unavailable"


class TagConflict(GatewayError):
    """The release tag already exists."""

    code = "tag_conflict"

    def __init__(
        self,
        message: str,
        *,
        tag_name: str,
        existing_sha: str | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.tag_name = tag_name
        self.existing_sha = existing_sha


class VersionCollision(GatewayError):
    """The release tag exists but points at a different commit.

    Two different histories claim the same version; a human has to decide.
    """

    code = "version_collision"


class PublishFailure(GatewayError):
    """The hosting API rejected the release. Retryable from scratch."""

    code = "publish_failed"


class ArtifactPushFailure(GatewayError):
    """Pushing changelog/version files failed after the release was published."""

    code = "artifact_push_failed"


class FileUnreadable(GatewayError):
    """A repository file exists but cannot be read as UTF-8 text."""

    code = "file_unreadable"


class GitCommandError(GatewayError):
    """A git subprocess exited with a non-zero status or timed out."""

    code = "git_failed"

    def __init__(self, message: str, *, stderr: str | None = None) -> None:
        super().__init__(message, hint=(stderr or "").strip() or None)
        self.stderr = stderr


class GitHubApiError(GatewayError):
    """The GitHub REST API returned an unexpected response."""

    code = "github_api_error"

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


# =============================================================================
# Orchestration
# =============================================================================


class InvalidTransitionError(AutoReleaseError):
    """The orchestrator attempted a transition its state machine forbids."""

    code = "invalid_transition"
