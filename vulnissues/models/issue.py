"""Tracker-bound issue models"""

from dataclasses import dataclass, field
from typing import List

from vulnissues.models.vulnerability import Vulnerability


@dataclass
class ComposedIssue:
    """Title, body and labels ready to be sent to the issue tracker"""

    title: str
    body: str
    labels: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class BatchChoice:
    """One selectable package when a batch spans several packages"""

    package_name: str
    severity: str
    priority_score: int
    version_label: str

    @property
    def label(self) -> str:
        """Display string, e.g. ``H|726 - lodash 4.17.15/4.17.11``"""
        return f"{self.severity[:1].upper()}|{self.priority_score} - {self.package_name} {self.version_label}"


@dataclass
class BatchProps:
    """Findings narrowed to one package"""

    package_name: str
    version: str
    issues: List[Vulnerability] = field(default_factory=list)


@dataclass(frozen=True)
class GitHubIssueRef:
    """Issue returned by the tracker after a create or update"""

    number: int
    title: str
    url: str

    @property
    def web_url(self) -> str:
        """User-facing URL derived from the API URL"""
        return self.url.replace("api.github.com/repos", "github.com")
