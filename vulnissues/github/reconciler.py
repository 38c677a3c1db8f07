"""Create-or-update reconciliation of composed issues against the tracker."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from vulnissues.batch import ChoosePackage, select_batch
from vulnissues.config import RunOptions
from vulnissues.github.labels import ensure_labels_are_created
from vulnissues.models.issue import ComposedIssue, GitHubIssueRef
from vulnissues.models.vulnerability import Vulnerability
from vulnissues.reporters.issue_composer import IssueComposer

logger = logging.getLogger(__name__)

ExistingIssues = Union[Mapping[str, int], Iterable[Tuple[str, int]]]


@dataclass
class ReconcileResult:
    """Issues touched by one reconciliation"""

    created: List[GitHubIssueRef] = field(default_factory=list)
    updated: List[GitHubIssueRef] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.created and not self.updated

    def report_lines(self) -> List[str]:
        """Plain-text outcome report, updated issues first."""
        if self.is_empty:
            return ["No GitHub issues were created/updated"]
        lines: List[str] = []
        if self.updated:
            lines.append("The following GitHub issues were updated:")
            lines.extend(f'- "{issue.title}" {issue.web_url}' for issue in self.updated)
        if self.created:
            lines.append("The following GitHub issues were created:")
            lines.extend(f'- "{issue.title}" {issue.web_url}' for issue in self.created)
        return lines


@dataclass
class ReconcilePlan:
    """Issues to create and (issue number, issue) pairs to update"""

    create: List[ComposedIssue] = field(default_factory=list)
    update: List[Tuple[int, ComposedIssue]] = field(default_factory=list)

    @property
    def labels(self) -> List[str]:
        labels: List[str] = []
        for issue in self.create:
            labels.extend(issue.labels)
        for _, issue in self.update:
            labels.extend(issue.labels)
        return list(dict.fromkeys(labels))


def plan_unbatched(
    findings: Sequence[Vulnerability],
    existing_issues: Optional[ExistingIssues],
    options: RunOptions,
) -> ReconcilePlan:
    """
    Split findings into issues to create and issues to update.

    A finding whose composed title is already present in ``existing_issues`` is an
    update (body only); every other finding is a create. Input order is kept in
    both lists.
    """
    index = dict(existing_issues or {})
    plan = ReconcilePlan()
    for finding in findings:
        issue = IssueComposer.compose_issue(finding, options)
        number = index.get(issue.title)
        if number is None:
            plan.create.append(issue)
        else:
            plan.update.append((number, issue))
    return plan


def plan_batched(
    findings: Sequence[Vulnerability], options: RunOptions, choose: ChoosePackage
) -> ReconcilePlan:
    """A batch always produces exactly one new issue."""
    batch = select_batch(findings, choose)
    return ReconcilePlan(create=[IssueComposer.compose_batch_issue(batch, options)])


class IssueReconciler:
    """Applies a ReconcilePlan through a GitHubClient.

    Args:
        client: GitHubClient for the target repository
        options: Run options (batch and dry-run flags)
        choose: Package chooser used when a batch spans several packages
    """

    def __init__(self, client, options: RunOptions, choose: Optional[ChoosePackage] = None):
        self.client = client
        self.options = options
        self.choose = choose

    async def _create(self, issue: ComposedIssue) -> Optional[GitHubIssueRef]:
        if self.options.dry_run:
            logger.info("Dry run: would create %r", issue.title)
            return None
        return await asyncio.to_thread(self.client.create_issue, issue.title, issue.body, issue.labels)

    async def _update(self, number: int, issue: ComposedIssue) -> Optional[GitHubIssueRef]:
        if self.options.dry_run:
            logger.info("Dry run: would update #%s %r", number, issue.title)
            return None
        return await asyncio.to_thread(self.client.update_issue, number, issue.body)

    def plan(
        self, findings: Sequence[Vulnerability], existing_issues: Optional[ExistingIssues] = None
    ) -> ReconcilePlan:
        if self.options.batch:
            if self.choose is None:
                raise ValueError("A package chooser is required in batch mode")
            return plan_batched(findings, self.options, self.choose)
        return plan_unbatched(findings, existing_issues, self.options)

    async def reconcile(
        self,
        findings: Sequence[Vulnerability],
        existing_issues: Optional[ExistingIssues] = None,
    ) -> ReconcileResult:
        """
        Create or update tracker issues for ``findings``.

        Labels are provisioned first. Creates and updates run concurrently; results
        keep the input order and skipped calls (dry run, rate limited) are dropped.

        Args:
            findings: Selected findings; nothing happens when empty
            existing_issues: Title to issue-number index (ignored in batch mode)

        Returns:
            ReconcileResult listing created and updated issues
        """
        if not findings:
            logger.info("No issues to create")
            return ReconcileResult()

        plan = self.plan(findings, existing_issues)
        await ensure_labels_are_created(self.client, plan.labels, dry_run=self.options.dry_run)

        created = await asyncio.gather(*(self._create(issue) for issue in plan.create))
        updated = await asyncio.gather(*(self._update(number, issue) for number, issue in plan.update))

        return ReconcileResult(
            created=[issue for issue in created if issue is not None],
            updated=[issue for issue in updated if issue is not None],
        )
