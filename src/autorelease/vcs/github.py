"""GitHub Releases over the REST API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from autorelease import __version__
from autorelease.exceptions import GitHubApiError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReleaseInfo:
    id: int
    tag_name: str
    html_url: str
    target_commitish: str | None
    body: str


class GitHubClient:
    """Minimal client for the release endpoints of one repository."""

    def __init__(
        self,
        owner: str,
        repo: str,
        token: str,
        *,
        api_url: str = "https://api.github.com",
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        if not token:
            raise GitHubApiError("A GitHub token is required to publish releases")
        self.owner = owner
        self.repo = repo
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
                "User-Agent": f"autorelease/{__version__}",
            }
        )
        # Only idempotent reads are retried.
        retry_strategy = Retry(
            total=3,
            status_forcelist=[429, 500, 502, 503, 504],
            backoff_factor=1,
            allowed_methods=["HEAD", "GET", "OPTIONS"],
        )
        self.session.mount("https://", HTTPAdapter(max_retries=retry_strategy))

    @property
    def _releases_url(self) -> str:
        return f"{self.api_url}/repos/{self.owner}/{self.repo}/releases"

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        try:
            return self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.Timeout as e:
            raise GitHubApiError(f"{method} {url} timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise GitHubApiError(f"{method} {url} failed: {e}") from e

    def get_release_by_tag(self, tag: str) -> ReleaseInfo | None:
        """Return the release for ``tag``, or ``None`` if there is none."""
        response = self._request("GET", f"{self._releases_url}/tags/{tag}")
        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise GitHubApiError(
                f"GitHub API error fetching release {tag}: HTTP {response.status_code}",
                status_code=response.status_code,
            )
        return _to_release_info(response.json())

    def create_release(
        self,
        tag: str,
        body: str,
        *,
        name: str | None = None,
        target_commitish: str | None = None,
    ) -> ReleaseInfo:
        """Create a published (non-draft) release for an existing tag."""
        payload: dict[str, Any] = {
            "tag_name": tag,
            "name": name or tag,
            "body": body,
            "draft": False,
            "prerelease": False,
        }
        if target_commitish:
            payload["target_commitish"] = target_commitish

        logger.info("Creating GitHub release %s for %s/%s", tag, self.owner, self.repo)
        response = self._request("POST", self._releases_url, json=payload)
        if response.status_code == 401:
            raise GitHubApiError("Invalid GitHub token or insufficient permissions", status_code=401)
        if response.status_code not in (200, 201):
            raise GitHubApiError(
                f"GitHub API error creating release {tag}: HTTP {response.status_code}",
                status_code=response.status_code,
            )
        return _to_release_info(response.json())


def _to_release_info(data: dict[str, Any]) -> ReleaseInfo:
    return ReleaseInfo(
        id=int(data["id"]),
        tag_name=data["tag_name"],
        html_url=data.get("html_url", ""),
        target_commitish=data.get("target_commitish"),
        body=data.get("body") or "",
    )
