"""Tests for the GitHub Releases client."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from autorelease.exceptions import GitHubApiError
from autorelease.vcs.github import GitHubClient

RELEASE_JSON = {
    "id": 42,
    "tag_name": "v1.3.0",
    "html_url": "https://github.com/acme/widgets/releases/tag/v1.3.0",
    "target_commitish": "abc1234",
    "body": "notes",
}


def _response(status_code: int, data: dict | None = None) -> MagicMock:
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.json.return_value = data or {}
    return response


@pytest.fixture
def session() -> requests.Session:
    session = requests.Session()
    session.request = MagicMock()  # type: ignore[method-assign]
    return session


@pytest.fixture
def client(session: requests.Session) -> GitHubClient:
    return GitHubClient("acme", "widgets", "secret", timeout=5, session=session)


class TestGitHubClient:
    def test_requires_token(self):
        with pytest.raises(GitHubApiError):
            GitHubClient("acme", "widgets", "")

    def test_auth_headers(self, client: GitHubClient):
        assert client.session.headers["Authorization"] == "Bearer secret"
        assert client.session.headers["Accept"] == "application/vnd.github+json"

    def test_release_not_found(self, client: GitHubClient, session: MagicMock):
        session.request.return_value = _response(404)

        assert client.get_release_by_tag("v1.3.0") is None
        session.request.assert_called_once_with(
            "GET",
            "https://api.github.com/repos/acme/widgets/releases/tags/v1.3.0",
            timeout=5,
        )

    def test_release_found(self, client: GitHubClient, session: MagicMock):
        session.request.return_value = _response(200, RELEASE_JSON)

        info = client.get_release_by_tag("v1.3.0")

        assert info is not None
        assert info.id == 42
        assert info.html_url.endswith("/v1.3.0")

    def test_create_release(self, client: GitHubClient, session: MagicMock):
        session.request.return_value = _response(201, RELEASE_JSON)

        info = client.create_release("v1.3.0", "notes", target_commitish="abc1234")

        assert info.tag_name == "v1.3.0"
        _, kwargs = session.request.call_args
        assert kwargs["json"] == {
            "tag_name": "v1.3.0",
            "name": "v1.3.0",
            "body": "notes",
            "draft": False,
            "prerelease": False,
            "target_commitish": "abc1234",
        }

    def test_create_release_unauthorized(self, client: GitHubClient, session: MagicMock):
        session.request.return_value = _response(401)

        with pytest.raises(GitHubApiError, match="token") as exc:
            client.create_release("v1.3.0", "notes")
        assert exc.value.status_code == 401

    def test_server_error(self, client: GitHubClient, session: MagicMock):
        session.request.return_value = _response(500)

        with pytest.raises(GitHubApiError) as exc:
            client.get_release_by_tag("v1.3.0")
        assert exc.value.status_code == 500

    def test_timeout(self, client: GitHubClient, session: MagicMock):
        session.request.side_effect = requests.Timeout()

        with pytest.raises(GitHubApiError, match="timed out"):
            client.create_release("v1.3.0", "notes")

    def test_connection_error(self, client: GitHubClient, session: MagicMock):
        session.request.side_effect = requests.ConnectionError("refused")

        with pytest.raises(GitHubApiError, match="failed"):
            client.get_release_by_tag("v1.3.0")

    def test_custom_api_url(self, session: requests.Session):
        client = GitHubClient(
            "acme", "widgets", "secret", api_url="https://ghe.example.com/api/v3/", session=session
        )
        session.request.return_value = _response(404)

        client.get_release_by_tag("v1.0.0")

        args, _ = session.request.call_args
        assert args[1] == "https://ghe.example.com/api/v3/repos/acme/widgets/releases/tags/v1.0.0"
