"""GitHub REST client used for label and issue management."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

import requests

from vulnissues import __version__
from vulnissues.errors import RateLimitedError, UpstreamError
from vulnissues.models.api import GitHubIssuePayload
from vulnissues.models.issue import GitHubIssueRef

logger = logging.getLogger(__name__)

API_URL = "https://api.github.com"
DEFAULT_TIMEOUT = (10, 60)
DEFAULT_RETRY_AFTER_SECONDS = 60
MAX_RETRY_AFTER_SECONDS = 900
PER_PAGE = 100

_SECONDARY_LIMIT_MARKERS = ("secondary rate limit", "abuse")


def _is_rate_limited(response: requests.Response) -> bool:
    if response.status_code == 429:
        return True
    return response.status_code == 403 and response.headers.get("X-RateLimit-Remaining") == "0"


def _is_secondary_limited(response: requests.Response) -> bool:
    if response.status_code not in (403, 429):
        return False
    text = response.text.lower()
    return any(marker in text for marker in _SECONDARY_LIMIT_MARKERS)


def _retry_after_seconds(response: requests.Response) -> float:
    retry_after = response.headers.get("Retry-After")
    if retry_after and retry_after.isdigit():
        return min(float(retry_after), MAX_RETRY_AFTER_SECONDS)
    reset = response.headers.get("X-RateLimit-Reset")
    if reset and reset.isdigit():
        return min(max(float(reset) - time.time(), 0.0), MAX_RETRY_AFTER_SECONDS)
    return DEFAULT_RETRY_AFTER_SECONDS


class GitHubClient:
    """Thin wrapper over the GitHub REST API for one repository.

    Rate limits are retried once after the delay GitHub asks for; a second rate
    limit, or any secondary (abuse) limit, raises RateLimitedError after logging a
    warning. Issue create/update calls turn that error into a ``None`` result so a
    run can carry on without the missing issue.

    Create and update calls run concurrently from worker threads. A client that
    builds its own session keeps one per thread; an injected session is shared
    as given.

    Args:
        token: GitHub personal access token
        owner: Repository owner (user or organization)
        repo: Repository name
        session: Optional pre-configured requests session
        sleep: Delay function used between rate-limit retries
    """

    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.owner = owner
        self.repo = repo
        self._token = token
        self._shared_session = session
        self._local = threading.local()
        self._sleep = sleep

    @staticmethod
    def _make_session(token: str, owner: str, repo: str) -> requests.Session:
        session = requests.Session()
        session.headers.update(
            {
                "Accept": "application/vnd.github+json",
                "User-Agent": f"vulnissues/{__version__} ({owner} {repo})",
                "Authorization": f"Bearer {token}",
            }
        )
        return session

    @property
    def session(self) -> requests.Session:
        if self._shared_session is not None:
            return self._shared_session
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._make_session(self._token, self.owner, self.repo)
            self._local.session = session
        return session

    @property
    def repo_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    def _request(
        self,
        method: str,
        url: str,
        operation: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> requests.Response:
        if url.startswith("/"):
            url = f"{API_URL}{url}"

        retried = False
        while True:
            try:
                response = self.session.request(
                    method, url, params=params, json=json, timeout=DEFAULT_TIMEOUT
                )
            except requests.RequestException as exc:
                raise UpstreamError(f"Failed to {operation}: {exc}") from exc

            if _is_secondary_limited(response):
                logger.warning("Abuse detected for request %s %s", method, url)
                raise RateLimitedError(
                    f"Failed to {operation}: secondary rate limit", response.status_code
                )

            if _is_rate_limited(response):
                logger.warning("Request quota exhausted for request %s %s", method, url)
                if not retried:
                    retried = True
                    delay = _retry_after_seconds(response)
                    logger.warning("Retrying after %s seconds!", delay)
                    self._sleep(delay)
                    continue
                raise RateLimitedError(f"Failed to {operation}: rate limited", response.status_code)

            try:
                response.raise_for_status()
            except requests.HTTPError as exc:
                raise UpstreamError(
                    f"Failed to {operation}: {exc}", response.status_code
                ) from exc
            return response

    def _paginate(
        self, url: str, operation: str, params: Optional[Dict[str, Any]] = None
    ) -> List[Any]:
        """Follow ``Link: rel=next`` headers, collecting each page's JSON."""
        pages = []
        next_url: Optional[str] = url
        next_params = dict(params or {}, per_page=PER_PAGE)
        while next_url:
            response = self._request("GET", next_url, operation, params=next_params)
            pages.append(response.json())
            next_url = response.links.get("next", {}).get("url")
            # the next link already carries the query string
            next_params = None
        return pages

    def is_private(self) -> bool:
        response = self._request(
            "GET", self.repo_path, f"load repository {self.owner}/{self.repo}"
        )
        return bool(response.json().get("private", False))

    def list_labels(self) -> List[str]:
        pages = self._paginate(
            f"{self.repo_path}/labels", f"list labels in repository {self.repo}"
        )
        return [label["name"] for page in pages for label in page]

    def create_label(self, name: str, description: str, color: str) -> bool:
        """Create a label; returns False if it already existed."""
        try:
            self._request(
                "POST",
                f"{self.repo_path}/labels",
                f"create label {name!r} in repository {self.repo}",
                json={"name": name, "description": description, "color": color},
            )
        except UpstreamError as exc:
            if exc.status_code == 422:
                logger.debug("Label %r already exists", name)
                return False
            raise
        return True

    def existing_issues(self, label: str = "snyk") -> List[Tuple[str, int]]:
        """(title, number) pairs of issues already filed with ``label``."""
        query = f"repo:{self.owner}/{self.repo} is:issue label:{label}"
        pages = self._paginate(
            "/search/issues",
            f"paginate existing issues in repository {self.repo}",
            params={"q": query},
        )
        return [(item["title"], item["number"]) for page in pages for item in page.get("items", [])]

    def create_issue(
        self, title: str, body: str, labels: List[str]
    ) -> Optional[GitHubIssueRef]:
        try:
            response = self._request(
                "POST",
                f"{self.repo_path}/issues",
                f"create issue: {title}",
                json={"title": title, "body": body, "labels": list(labels)},
            )
        except RateLimitedError as exc:
            logger.warning("%s", exc)
            return None
        return GitHubIssuePayload.model_validate(response.json()).to_ref()

    def update_issue(self, number: int, body: str) -> Optional[GitHubIssueRef]:
        try:
            response = self._request(
                "PATCH",
                f"{self.repo_path}/issues/{number}",
                f"update issue: {number}",
                json={"body": body},
            )
        except RateLimitedError as exc:
            logger.warning("%s", exc)
            return None
        return GitHubIssuePayload.model_validate(response.json()).to_ref()
