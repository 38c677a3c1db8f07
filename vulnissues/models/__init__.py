"""Data models for vulnissues"""

from vulnissues.models.issue import BatchChoice, BatchProps, ComposedIssue, GitHubIssueRef
from vulnissues.models.vulnerability import (
    SEVERITY_ORDER,
    Origin,
    PathElement,
    Project,
    Severity,
    Vulnerability,
)

__all__ = [
    "BatchChoice",
    "BatchProps",
    "ComposedIssue",
    "GitHubIssueRef",
    "Origin",
    "PathElement",
    "Project",
    "SEVERITY_ORDER",
    "Severity",
    "Vulnerability",
]
