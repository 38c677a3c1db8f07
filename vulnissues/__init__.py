"""
vulnissues - File deduplicated GitHub issues for Snyk vulnerability findings
"""

__version__ = "0.1.0"

from vulnissues.aggregate import aggregate_findings  # noqa: E402
from vulnissues.config import RunOptions  # noqa: E402
from vulnissues.models.issue import ComposedIssue  # noqa: E402
from vulnissues.models.vulnerability import Severity, Vulnerability  # noqa: E402
from vulnissues.reporters.issue_composer import IssueComposer  # noqa: E402

__all__ = [
    "aggregate_findings",
    "ComposedIssue",
    "IssueComposer",
    "RunOptions",
    "Severity",
    "Vulnerability",
]
