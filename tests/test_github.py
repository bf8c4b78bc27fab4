"""
Tests for the GitHub client, with the HTTP session faked out.
"""

from unittest.mock import MagicMock

import pytest
import requests
from dupehunter.github import GitHubClient, GitHubError


def make_response(status=200, payload=None, next_url=None):
    resp = MagicMock()
    resp.status_code = status
    resp.url = "https://api.github.com/test"
    resp.json.return_value = payload if payload is not None else {}
    resp.links = {"next": {"url": next_url}} if next_url else {}
    return resp


class FakeSession:
    """Returns queued responses and records every request."""

    def __init__(self, responses):
        self.headers = {}
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, timeout=None, **kwargs):
        self.calls.append((method, url, kwargs))
        result = self.responses.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    monkeypatch.setattr("dupehunter.retry.time.sleep", lambda s: None)


class TestGitHubClient:
    """Test GitHub API calls."""

    def test_rejects_bad_repo(self):
        with pytest.raises(ValueError):
            GitHubClient("just-a-name", session=FakeSession([]))

    def test_token_header(self, monkeypatch):
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        session = FakeSession([])
        GitHubClient("o/r", token="abc", session=session)
        assert session.headers["Authorization"] == "Bearer abc"

    def test_token_from_env(self, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "from-env")
        session = FakeSession([])
        GitHubClient("o/r", session=session)
        assert session.headers["Authorization"] == "Bearer from-env"

    def test_list_issues_follows_pagination(self):
        session = FakeSession([
            make_response(payload=[{"number": 1}, {"number": 2}], next_url="https://api.github.com/page2"),
            make_response(payload=[{"number": 3}]),
        ])
        client = GitHubClient("o/r", token="t", session=session)

        issues = list(client.list_issues(since="2019-03-01"))

        assert [i["number"] for i in issues] == [1, 2, 3]
        first, second = session.calls
        assert first[1] == "https://api.github.com/repos/o/r/issues"
        assert first[2]["params"] == {"state": "all", "per_page": 100, "since": "2019-03-01"}
        assert second[1] == "https://api.github.com/page2"
        assert second[2]["params"] is None

    def test_retries_transient_status(self, quiet_logger):
        session = FakeSession([make_response(status=503), make_response(payload={"number": 4})])
        client = GitHubClient("o/r", token="t", session=session)
        assert client.get_issue(4) == {"number": 4}
        assert len(session.calls) == 2
        assert quiet_logger.metrics["api_calls"] == 2

    def test_retries_connection_errors(self):
        session = FakeSession([requests.exceptions.ConnectionError("reset"), make_response(payload={"number": 4})])
        client = GitHubClient("o/r", token="t", session=session)
        assert client.get_issue(4)["number"] == 4

    def test_gives_up_after_retries(self, quiet_logger):
        session = FakeSession([make_response(status=502) for _ in range(4)])
        client = GitHubClient("o/r", token="t", session=session)
        with pytest.raises(GitHubError):
            client.get_issue(4)
        assert len(session.calls) == 4
        assert quiet_logger.metrics["api_failures"] == 1

    def test_unexpected_status(self, quiet_logger):
        session = FakeSession([make_response(status=404)])
        client = GitHubClient("o/r", token="t", session=session)
        with pytest.raises(GitHubError) as exc_info:
            client.get_issue(99)
        assert exc_info.value.status == 404
        assert quiet_logger.metrics["errors_by_type"]["HTTPError_404"] == 1

    def test_ensure_label_creates_missing(self):
        session = FakeSession([make_response(status=404), make_response(status=201)])
        client = GitHubClient("o/r", token="t", session=session)
        assert client.ensure_label("potential duplicate", "#cfd3d7") is True
        assert session.calls[0][1].endswith("/labels/potential%20duplicate")
        assert session.calls[1][2]["json"] == {"name": "potential duplicate", "color": "cfd3d7"}

    def test_ensure_label_existing(self):
        session = FakeSession([make_response(status=200)])
        client = GitHubClient("o/r", token="t", session=session)
        assert client.ensure_label("potential-duplicate") is False
        assert len(session.calls) == 1

    def test_ensure_label_other_error(self):
        session = FakeSession([make_response(status=403)])
        client = GitHubClient("o/r", token="t", session=session)
        with pytest.raises(GitHubError):
            client.ensure_label("potential-duplicate")

    def test_add_labels_and_comment(self):
        session = FakeSession([make_response(status=200), make_response(status=201, payload={"id": 1})])
        client = GitHubClient("o/r", token="t", session=session)
        client.add_labels(7, ["potential-duplicate"])
        assert client.create_comment(7, "hello") == {"id": 1}
        assert session.calls[0][:2] == ("POST", "https://api.github.com/repos/o/r/issues/7/labels")
        assert session.calls[0][2]["json"] == {"labels": ["potential-duplicate"]}
        assert session.calls[1][2]["json"] == {"body": "hello"}
