"""Git operations via the git command line.

Every call runs ``git`` as a subprocess with an explicit timeout. Failures,
including timeouts, surface as :class:`GitCommandError`; mapping them onto
release-level errors is the gateway's job.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Mapping
from datetime import datetime
from pathlib import Path

from autorelease.core.version import Version, parse_tag
from autorelease.exceptions import GitCommandError
from autorelease.vcs.models import CommitRecord

logger = logging.getLogger(__name__)

# Unit/record separators keep multi-line messages intact in ``git log`` output.
_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"
_LOG_FORMAT = f"%H{_FIELD_SEP}%aI{_FIELD_SEP}%B{_RECORD_SEP}"


class GitRepository:
    """A local git checkout with one remote and one release branch."""

    def __init__(
        self,
        path: Path,
        *,
        remote: str = "origin",
        branch: str = "main",
        timeout: float = 30.0,
    ) -> None:
        self.path = path
        self.remote = remote
        self.branch = branch
        self.timeout = timeout

    def _run(self, *args: str, check: bool = True) -> subprocess.CompletedProcess[str]:
        cmd = ["git", *args]
        logger.debug("Running %s", " ".join(cmd))
        try:
            return subprocess.run(
                cmd,
                cwd=self.path,
                capture_output=True,
                text=True,
                check=check,
                timeout=self.timeout,
            )
        except subprocess.CalledProcessError as e:
            raise GitCommandError(
                f"git {args[0]} failed with exit code {e.returncode}",
                stderr=e.stderr,
            ) from e
        except subprocess.TimeoutExpired as e:
            raise GitCommandError(f"git {args[0]} timed out after {self.timeout}s") from e
        except FileNotFoundError as e:
            raise GitCommandError("git executable not found") from e

    def _output(self, *args: str) -> str:
        return self._run(*args).stdout.strip()

    # -------- Inspection --------

    def has_remote(self) -> bool:
        return self.remote in self._output("remote").split()

    def head_sha(self) -> str:
        return self._output("rev-parse", "HEAD")

    def current_branch(self) -> str | None:
        """Name of the checked-out branch, ``None`` on a detached HEAD."""
        result = self._run("symbolic-ref", "--quiet", "--short", "HEAD", check=False)
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    def fetch_tags(self) -> None:
        """Refresh tags from the remote so release checks see published tags."""
        if self.has_remote():
            self._run("fetch", "--tags", "--force", "--quiet", self.remote)

    def list_tags(self, pattern: str = "*") -> list[str]:
        output = self._output("tag", "--list", pattern)
        return [line for line in output.splitlines() if line]

    def get_latest_release_tag(self, prefix: str = "v") -> tuple[str, Version] | None:
        """Highest stable version among tags named ``<prefix>X.Y.Z``.

        Pre-release tags are ignored; ordering is by SemVer precedence,
        not by tag date.
        """
        best: tuple[str, Version] | None = None
        for tag in self.list_tags(f"{prefix}*"):
            version = parse_tag(tag, prefix)
            if version is None or not version.is_stable:
                continue
            if best is None or version > best[1]:
                best = (tag, version)
        return best

    def get_commits_since(self, tag: str | None) -> tuple[CommitRecord, ...]:
        """Commits on the release branch after ``tag``, oldest first.

        All of the branch history when ``tag`` is ``None``.
        """
        branch_ref = f"refs/heads/{self.branch}"
        revision = f"{tag}..{branch_ref}" if tag else branch_ref
        if tag is None:
            head = self._run("rev-parse", "--verify", "--quiet", branch_ref, check=False)
            if head.returncode != 0:
                # Branch without commits.
                return ()
        log_args = ("log", "--reverse", f"--format={_LOG_FORMAT}", revision, "--")
        output = self._run(*log_args).stdout
        return tuple(_parse_log(output))

    def tag_target(self, tag: str) -> str | None:
        """Commit ``tag`` points at, or ``None`` if there is no such tag."""
        result = self._run(
            "rev-parse", "--verify", "--quiet", f"refs/tags/{tag}^{{commit}}", check=False
        )
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    def remote_tag_target(self, tag: str) -> str | None:
        if not self.has_remote():
            return None
        output = self._output("ls-remote", "--tags", self.remote)
        targets = {}
        for line in output.splitlines():
            sha, _, ref = line.partition("\t")
            targets[ref] = sha
        # Annotated tags report the peeled commit under ``^{}``.
        return targets.get(f"refs/tags/{tag}^{{}}") or targets.get(f"refs/tags/{tag}")

    def read_file(self, relative_path: str) -> str | None:
        path = self.path / relative_path
        if not path.is_file():
            return None
        return path.read_text(encoding="utf-8")

    # -------- Mutation --------

    def create_tag(self, tag: str, target_sha: str, message: str) -> None:
        self._run("tag", "--annotate", tag, target_sha, "--message", message)

    def push_tag(self, tag: str) -> None:
        if self.has_remote():
            self._run("push", self.remote, f"refs/tags/{tag}")

    def delete_tag(self, tag: str, *, remote: bool = True) -> None:
        if remote and self.has_remote():
            self._run("push", self.remote, f":refs/tags/{tag}")
        if self.tag_target(tag) is not None:
            self._run("tag", "--delete", tag)

    def commit_files(self, files: Mapping[str, str], message: str) -> str | None:
        """Write ``files``, commit them and return the new commit sha.

        Returns ``None`` when the content was already up to date.
        """
        for relative_path, content in files.items():
            target = self.path / relative_path
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        paths = list(files)
        self._run("add", "--", *paths)
        if self._run("diff", "--cached", "--quiet", "--", *paths, check=False).returncode == 0:
            logger.info("Release artifacts already up to date, nothing to commit")
            return None
        # Only the artifact paths; anything else already staged stays staged.
        self._run("commit", "--message", message, "--", *paths)
        return self.head_sha()

    def push_branch(self) -> None:
        if self.has_remote():
            self._run("push", self.remote, f"HEAD:refs/heads/{self.branch}")


def _parse_log(output: str) -> list[CommitRecord]:
    commits: list[CommitRecord] = []
    for raw in output.split(_RECORD_SEP):
        raw = raw.strip("\n")
        if not raw:
            continue
        parts = raw.split(_FIELD_SEP, 2)
        if len(parts) != 3:
            logger.warning("Skipping unparsable git log record: %r", raw[:80])
            continue
        sha, date_str, message = parts
        commits.append(
            CommitRecord(
                sha=sha.strip(),
                date=datetime.fromisoformat(date_str.strip()),
                message=message.strip("\n"),
            )
        )
    return commits
