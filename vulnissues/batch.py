"""Narrow a set of findings down to a single package for batched reporting."""

from __future__ import annotations

from typing import Callable, Dict, List, Sequence

from vulnissues.compare import sort_versions, uniq
from vulnissues.models.issue import BatchChoice, BatchProps
from vulnissues.models.vulnerability import Vulnerability

ChoosePackage = Callable[[List[BatchChoice]], BatchChoice]


def get_batch_version_string(findings: Sequence[Vulnerability]) -> str:
    """Every affected version across findings, without repeats, highest first, '/'-joined."""
    versions = uniq(version for finding in findings for version in finding.package_versions)
    return "/".join(sort_versions(versions))


def group_by_package(findings: Sequence[Vulnerability]) -> Dict[str, List[Vulnerability]]:
    groups: Dict[str, List[Vulnerability]] = {}
    for finding in findings:
        groups.setdefault(finding.package_name, []).append(finding)
    return groups


def build_batch_choices(findings: Sequence[Vulnerability]) -> List[BatchChoice]:
    """One choice per package, in first-seen order.

    Findings are expected in priority order, so the first finding of each package
    supplies the severity and score shown for it.
    """
    choices = []
    for package_name, group in group_by_package(findings).items():
        top = group[0]
        choices.append(
            BatchChoice(
                package_name=package_name,
                severity=top.severity,
                priority_score=top.priority_score,
                version_label=get_batch_version_string(group),
            )
        )
    return choices


def select_batch(findings: Sequence[Vulnerability], choose: ChoosePackage) -> BatchProps:
    """
    Resolve the package a batch is about.

    With a single package the whole set is returned; otherwise ``choose`` picks one
    of the offered packages and the set is filtered to it. ``findings`` must not be
    empty.

    Args:
        findings: Candidate findings, in priority order
        choose: Called with the available choices when more than one package is present

    Returns:
        BatchProps for the chosen package
    """
    package_names = uniq(finding.package_name for finding in findings)
    if len(package_names) == 1:
        return BatchProps(
            package_name=package_names[0],
            version=get_batch_version_string(findings),
            issues=list(findings),
        )

    selected = choose(build_batch_choices(findings))
    return BatchProps(
        package_name=selected.package_name,
        version=selected.version_label,
        issues=[finding for finding in findings if finding.package_name == selected.package_name],
    )
