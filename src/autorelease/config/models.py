"""Pydantic models for ``[tool.autorelease]`` configuration."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from autorelease.core.version import BumpType, Version
from autorelease.exceptions import InvalidVersionError

DEFAULT_SEVERITY: dict[str, BumpType] = {
    "feat": BumpType.MINOR,
    "fix": BumpType.PATCH,
    "perf": BumpType.PATCH,
}

DEFAULT_SKIP_RELEASE_PATTERNS = ["[skip release]", "[release skip]", "[no release]"]


class _StrictModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class CommitsConfig(_StrictModel):
    """How commit types translate into version bumps."""

    severity: dict[str, BumpType] = Field(default_factory=lambda: dict(DEFAULT_SEVERITY))
    skip_release_patterns: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SKIP_RELEASE_PATTERNS)
    )
    release_commit_message: str = "chore(release): {version} [skip release]"

    @field_validator("severity")
    @classmethod
    def _lowercase_types(cls, value: dict[str, BumpType]) -> dict[str, BumpType]:
        return {commit_type.lower(): bump for commit_type, bump in value.items()}

    @field_validator("release_commit_message")
    @classmethod
    def _formattable_message(cls, value: str) -> str:
        try:
            value.format(version="0.0.0")
        except (KeyError, IndexError, ValueError) as e:
            raise ValueError(f"only the {{version}} placeholder is allowed: {e!r}") from e
        return value

    def severity_for(self, commit_type: str | None) -> BumpType:
        if commit_type is None:
            return BumpType.NONE
        return self.severity.get(commit_type.lower(), BumpType.NONE)


class ChangelogConfig(_StrictModel):
    enabled: bool = True
    path: Path = Path("CHANGELOG.md")
    header: str = "# Changelog"


class VersionConfig(_StrictModel):
    """Version numbering and the files that carry the version."""

    initial_version: str = "1.0.0"
    version_file: Path | None = Path("VERSION")
    version_files: list[Path] = Field(default_factory=list)
    update_pyproject: bool = False

    @field_validator("initial_version")
    @classmethod
    def _valid_initial_version(cls, value: str) -> str:
        try:
            Version.parse(value)
        except InvalidVersionError as e:
            raise ValueError(e.message) from e
        return value


class GitHubConfig(_StrictModel):
    owner: str | None = None
    repo: str | None = None
    api_url: str = "https://api.github.com"
    token_env: str = "GITHUB_TOKEN"

    @property
    def slug(self) -> str | None:
        if self.owner and self.repo:
            return f"{self.owner}/{self.repo}"
        return None


class PublishConfig(_StrictModel):
    """Package registry publishing happens outside autorelease."""

    registry: bool = False


class AutoReleaseConfig(_StrictModel):
    """Root configuration model."""

    branch: str = "main"
    remote: str = "origin"
    tag_prefix: str = "v"
    timeout_seconds: float = Field(default=30.0, gt=0)

    commits: CommitsConfig = Field(default_factory=CommitsConfig)
    changelog: ChangelogConfig = Field(default_factory=ChangelogConfig)
    version: VersionConfig = Field(default_factory=VersionConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    publish: PublishConfig = Field(default_factory=PublishConfig)

    @property
    def initial_version(self) -> Version:
        return Version.parse(self.version.initial_version)

    def tag_name(self, version: Version) -> str:
        return version.to_tag(self.tag_prefix)

    def artifact_paths(self) -> list[Path]:
        """Every path a release commit may touch, in a stable order."""
        paths: list[Path] = []
        if self.changelog.enabled:
            paths.append(self.changelog.path)
        if self.version.version_file is not None:
            paths.append(self.version.version_file)
        if self.version.update_pyproject:
            paths.append(Path("pyproject.toml"))
        paths.extend(self.version.version_files)
        return list(dict.fromkeys(paths))
