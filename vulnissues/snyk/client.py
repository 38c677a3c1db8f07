"""Snyk API client"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Iterable, List, Optional

import requests
from pydantic import ValidationError

from vulnissues.errors import UpstreamError
from vulnissues.models.api import AggregatedIssue, OrgPayload, PathsPage, ProjectPayload
from vulnissues.models.vulnerability import Project, Severity

logger = logging.getLogger(__name__)

V1_URL = "https://snyk.io/api/v1"
REST_URL = "https://api.snyk.io/rest"
REST_VERSION = "2023-11-27"
DEFAULT_TIMEOUT = (10, 60)


class SnykClient:
    """Reads organizations, projects and findings from Snyk.

    Args:
        token: Snyk API token
        org_id: Default organization id
        minimum_severity: Lowest severity to fetch (default: medium)
        session: Optional pre-configured requests session, shared across threads as given;
            otherwise each worker thread builds its own
    """

    def __init__(
        self,
        token: str,
        org_id: Optional[str] = None,
        minimum_severity: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        self.org_id = org_id
        self.minimum_severity = minimum_severity
        self._token = token
        self._shared_session = session
        self._local = threading.local()

    @staticmethod
    def _make_session(token: str) -> requests.Session:
        session = requests.Session()
        session.headers.update(
            {
                "Content-Type": "application/json; charset=utf-8",
                "Authorization": f"token {token}",
            }
        )
        return session

    @property
    def session(self) -> requests.Session:
        if self._shared_session is not None:
            return self._shared_session
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._make_session(self._token)
            self._local.session = session
        return session

    def _request(self, method: str, url: str, operation: str, **kwargs: Any) -> Any:
        logger.debug("%s %s", method, url)
        try:
            response = self.session.request(method, url, timeout=DEFAULT_TIMEOUT, **kwargs)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as exc:
            status = getattr(getattr(exc, "response", None), "status_code", None)
            raise UpstreamError(f"Failed to {operation}, error: {exc}", status) from exc
        except ValueError as exc:
            raise UpstreamError(f"Failed to {operation}, error: invalid JSON response") from exc

    def _paginate_rest(self, url: str, operation: str) -> List[Dict[str, Any]]:
        data: List[Dict[str, Any]] = []
        next_url: Optional[str] = url
        while next_url:
            body = self._request("GET", next_url, operation)
            data.extend(body.get("data") or [])
            next_link = (body.get("links") or {}).get("next")
            next_url = f"{REST_URL}{next_link.removeprefix('/rest')}" if next_link else None
        return data

    def orgs(self) -> List[Dict[str, Any]]:
        body = self._request("GET", f"{V1_URL}/orgs", "list snyk organizations")
        return list(body.get("orgs") or [])

    def org_info(self, org_id: str) -> OrgPayload:
        body = self._request(
            "GET",
            f"{REST_URL}/orgs/{org_id}?version={REST_VERSION}",
            f"query snyk organization with id {org_id}",
        )
        try:
            return OrgPayload.model_validate(body.get("data"))
        except ValueError as exc:
            raise UpstreamError(
                f"Failed to query snyk organization with id {org_id}, "
                "error: expected response to include data.attributes.name"
            ) from exc

    def projects(
        self, org_id: Optional[str] = None, selected_projects: Iterable[str] = ()
    ) -> List[Project]:
        """
        List the organization's projects.

        Inactive projects are dropped unless their id is in ``selected_projects``.
        """
        org_id = org_id or self.org_id
        org = self.org_info(org_id)
        selected = set(selected_projects)
        raw_projects = self._paginate_rest(
            f"{REST_URL}/orgs/{org_id}/projects?version={REST_VERSION}"
            "&meta.latest_issue_counts=true&limit=20",
            f"paginate projects of organization {org_id}",
        )
        projects = [ProjectPayload.model_validate(raw).to_project(org.browse_slug) for raw in raw_projects]
        return [project for project in projects if project.id in selected or project.is_monitored]

    def issues(self, project_id: str) -> List[AggregatedIssue]:
        """Vulnerability findings of one project, filtered by minimum severity."""
        severities = [severity.value for severity in Severity.at_or_above(self.minimum_severity)]
        body = self._request(
            "POST",
            f"{V1_URL}/org/{self.org_id}/project/{project_id}/aggregated-issues",
            f"fetch issues of project {project_id}",
            json={
                "includeDescription": True,
                "filters": {
                    "severities": severities,
                    "types": ["vuln"],
                    "ignored": False,
                    "patched": False,
                },
            },
        )
        return [AggregatedIssue.model_validate(raw) for raw in body.get("issues") or []]

    def get_link(self, url: str) -> PathsPage:
        """Fetch one page of dependency paths."""
        body = self._request("GET", url, f"fetch dependency paths page {url}")
        try:
            return PathsPage.model_validate(body)
        except ValidationError as exc:
            raise UpstreamError(f"Failed to fetch dependency paths page {url}, error: {exc}") from exc
