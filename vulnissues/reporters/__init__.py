"""Issue reporters"""

from vulnissues.reporters.issue_composer import IssueComposer

__all__ = ["IssueComposer"]
