"""Pydantic models for parsing and validating Snyk and GitHub API payloads."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from vulnissues.models.issue import GitHubIssueRef
from vulnissues.models.vulnerability import PathElement, Project, Vulnerability


class _Lenient(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class Links(_Lenient):
    next: Optional[str] = None
    paths: Optional[str] = None


class IssueData(_Lenient):
    title: str = Field(..., description="Vulnerability title")
    severity: str = Field(..., description="Severity level")
    url: str = Field("", description="Canonical reference link")
    description: str = Field("", description="Free-text description (markdown)")
    identifiers: Dict[str, List[str]] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def normalize_input(cls, data: Any) -> Any:
        if isinstance(data, dict):
            identifiers = data.get("identifiers")
            if isinstance(identifiers, dict):
                # Snyk sends null for empty identifier schemes
                data["identifiers"] = {k: list(v or []) for k, v in identifiers.items()}
            elif identifiers is None:
                data["identifiers"] = {}
            if data.get("description") is None:
                data["description"] = ""
            if isinstance(data.get("severity"), str):
                data["severity"] = data["severity"].lower()
        return data


class AggregatedIssue(_Lenient):
    """One entry of the v1 ``aggregated-issues`` response"""

    id: str
    pkg_name: str = Field(..., alias="pkgName")
    pkg_versions: List[str] = Field(default_factory=list, alias="pkgVersions")
    priority_score: int = Field(0, alias="priorityScore")
    issue_data: IssueData = Field(..., alias="issueData")
    links: Links = Field(default_factory=Links)

    @model_validator(mode="before")
    @classmethod
    def normalize_input(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("priorityScore") is None:
            priority = data.get("priority")
            if isinstance(priority, dict) and priority.get("score") is not None:
                data["priorityScore"] = priority["score"]
            else:
                data["priorityScore"] = 0
        return data

    def to_vulnerability(self) -> Vulnerability:
        return Vulnerability(
            id=self.id,
            package_name=self.pkg_name,
            package_versions=list(self.pkg_versions),
            severity=self.issue_data.severity,
            priority_score=self.priority_score,
            title=self.issue_data.title,
            description=self.issue_data.description,
            url=self.issue_data.url,
            identifiers=dict(self.issue_data.identifiers),
        )


class PathElementPayload(_Lenient):
    name: str
    version: str = ""

    @model_validator(mode="before")
    @classmethod
    def normalize_input(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("version") is None:
            data["version"] = ""
        return data


class PathsPage(_Lenient):
    """One page of dependency paths for a finding"""

    paths: List[List[PathElementPayload]] = Field(default_factory=list)
    links: Links = Field(default_factory=Links)

    def dependency_paths(self) -> List[List[PathElement]]:
        return [[PathElement(name=e.name, version=e.version) for e in path] for path in self.paths]


class IssueCounts(_Lenient):
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0

    @property
    def total(self) -> int:
        return self.critical + self.high + self.medium + self.low


class ProjectAttributes(_Lenient):
    name: str
    status: str = "active"
    target_reference: Optional[str] = None


class ProjectMeta(_Lenient):
    latest_issue_counts: IssueCounts = Field(default_factory=IssueCounts)


class ProjectPayload(_Lenient):
    """One entry of the REST ``/orgs/{id}/projects`` response"""

    id: str
    attributes: ProjectAttributes
    meta: ProjectMeta = Field(default_factory=ProjectMeta)

    def to_project(self, org_slug: str) -> Project:
        return Project(
            id=self.id,
            name=self.attributes.name,
            browse_url=f"https://app.snyk.io/org/{org_slug}/project/{self.id}",
            is_monitored=self.attributes.status == "active",
            issue_count_total=self.meta.latest_issue_counts.total,
            image_tag=self.attributes.target_reference,
        )


class OrgAttributes(_Lenient):
    name: str
    slug: Optional[str] = None


class OrgPayload(_Lenient):
    id: str
    attributes: OrgAttributes

    @property
    def browse_slug(self) -> str:
        return self.attributes.slug or self.attributes.name.lower()


class GitHubIssuePayload(_Lenient):
    number: int
    title: str
    url: str

    def to_ref(self) -> GitHubIssueRef:
        return GitHubIssueRef(number=self.number, title=self.title, url=self.url)
