"""GitHub REST client for listing issues and marking duplicates."""

import os
from typing import Any, Dict, Iterator, List, Optional
from urllib.parse import quote

import requests

from .logger import get_logger
from .retry import RetryError, exponential_backoff, should_retry_http_status

GITHUB_API = "https://api.github.com"


class GitHubError(Exception):
    """Raised when a GitHub API call fails."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class TransientHTTPError(Exception):
    """Retryable HTTP status (rate limit, 5xx)."""

    def __init__(self, response: requests.Response):
        super().__init__(f"HTTP {response.status_code} from {response.url}")
        self.response = response


class GitHubClient:
    """
    Minimal client for one repository.

    Args:
        repo: "owner/name"
        token: API token (default: GITHUB_TOKEN env var)
        session: Optional requests.Session (tests inject a fake one)
        base_url: API root, for GitHub Enterprise
        timeout: Per-request timeout in seconds
    """

    def __init__(
        self,
        repo: str,
        token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        base_url: str = GITHUB_API,
        timeout: float = 15,
    ):
        if "/" not in repo:
            raise ValueError(f"Repository must be 'owner/name', got {repo!r}")
        self.repo = repo
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Accept": "application/vnd.github+json",
            "User-Agent": "dupehunter",
        })
        token = token or os.getenv("GITHUB_TOKEN")
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def _url(self, path: str) -> str:
        return f"{self.base_url}/repos/{self.repo}{path}"

    @exponential_backoff(
        max_retries=3,
        base_delay=1.0,
        exceptions=(requests.exceptions.Timeout, requests.exceptions.ConnectionError, TransientHTTPError),
    )
    def _send(self, method: str, url: str, **kwargs) -> requests.Response:
        get_logger().record_api_call()
        resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        if should_retry_http_status(resp.status_code):
            raise TransientHTTPError(resp)
        return resp

    def _request(self, method: str, url: str, expected: tuple = (200,), **kwargs) -> requests.Response:
        """Send a request with retry and standardized error handling.

        Raises:
            GitHubError: On unexpected status or exhausted retries
        """
        log = get_logger()
        try:
            resp = self._send(method, url, **kwargs)
        except RetryError as e:
            log.record_api_failure(type(e.__cause__).__name__)
            log.error("GitHub request failed after retries", method=method, url=url, error=str(e))
            raise GitHubError(f"GitHub request failed: {e}") from e
        except requests.exceptions.RequestException as e:
            log.record_api_failure(type(e).__name__)
            log.error("GitHub request error", method=method, url=url, error=str(e))
            raise GitHubError(f"GitHub request error: {e}") from e

        if resp.status_code not in expected:
            log.record_api_failure(f"HTTPError_{resp.status_code}")
            log.warning("GitHub returned unexpected status", method=method, url=url, status=resp.status_code)
            raise GitHubError(
                f"GitHub {method} {url} returned {resp.status_code}", status=resp.status_code
            )
        return resp

    def list_issues(self, since: Optional[str] = None, state: str = "all", per_page: int = 100) -> Iterator[Dict[str, Any]]:
        """
        Yield every issue of the repository, following pagination.

        Pull requests are included, as the issues endpoint returns them;
        callers filter on the "pull_request" key.
        """
        params: Optional[Dict[str, Any]] = {"state": state, "per_page": per_page}
        if since:
            params["since"] = since
        url: Optional[str] = self._url("/issues")

        while url:
            resp = self._request("GET", url, params=params)
            for issue in resp.json():
                yield issue
            url = resp.links.get("next", {}).get("url")
            params = None  # next links already carry the query string

    def ensure_label(self, name: str, color: Optional[str] = None) -> bool:
        """Create the label if missing. Returns True when it was created."""
        try:
            self._request("GET", self._url(f"/labels/{quote(name, safe='')}"))
            return False
        except GitHubError as e:
            if e.status != 404:
                raise
        payload = {"name": name}
        if color:
            payload["color"] = color.lstrip("#")
        self._request("POST", self._url("/labels"), expected=(201,), json=payload)
        get_logger().info("Created label", repo=self.repo, label=name)
        return True

    def add_labels(self, number: int, labels: List[str]) -> None:
        self._request("POST", self._url(f"/issues/{number}/labels"), json={"labels": labels})

    def create_comment(self, number: int, body: str) -> Dict[str, Any]:
        resp = self._request("POST", self._url(f"/issues/{number}/comments"), expected=(201,), json={"body": body})
        return resp.json()

    def get_issue(self, number: int) -> Dict[str, Any]:
        return self._request("GET", self._url(f"/issues/{number}")).json()
