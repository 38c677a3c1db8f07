"""Ordering and de-duplication of findings collected across projects."""

from __future__ import annotations

import logging
from functools import cmp_to_key
from typing import Dict, Iterable, List

from vulnissues.compare import (
    compare_severity,
    compare_text,
    compare_version_array,
    uniq,
)
from vulnissues.models.vulnerability import Origin, Vulnerability

logger = logging.getLogger(__name__)


def _project_name(vulnerability: Vulnerability) -> str:
    return vulnerability.origins[0].project.name if vulnerability.origins else ""


def compare_findings(a: Vulnerability, b: Vulnerability) -> int:
    """Composite order used for display and batching.

    Priority score (high first), severity (critical first), package name,
    package versions (high first), title, then project name.
    """
    return (
        (b.priority_score > a.priority_score) - (b.priority_score < a.priority_score)
        or compare_severity(a.severity, b.severity)
        or compare_text(a.package_name, b.package_name)
        or compare_version_array(a.package_versions, b.package_versions)
        or compare_text(a.title, b.title)
        or compare_text(_project_name(a), _project_name(b))
    )


def sort_findings(findings: Iterable[Vulnerability]) -> List[Vulnerability]:
    """Stable sort by :func:`compare_findings`."""
    return sorted(findings, key=cmp_to_key(compare_findings))


def merge_findings(findings: Iterable[Vulnerability]) -> List[Vulnerability]:
    """
    Combine findings sharing an id into one record per id.

    Each input is expected to carry the origin(s) of a single project. Descriptive
    fields come from the first instance seen; versions are unioned; origins from
    the same project are folded into one entry holding all of that project's paths.

    Args:
        findings: Findings in the order they should be reported

    Returns:
        One finding per id, in first-seen order
    """
    merged: Dict[str, Vulnerability] = {}
    origin_index: Dict[str, Dict[str, Origin]] = {}

    for finding in findings:
        record = merged.get(finding.id)
        if record is None:
            record = Vulnerability(
                id=finding.id,
                package_name=finding.package_name,
                package_versions=list(finding.package_versions),
                severity=finding.severity,
                priority_score=finding.priority_score,
                title=finding.title,
                description=finding.description,
                url=finding.url,
                identifiers=dict(finding.identifiers),
            )
            merged[finding.id] = record
            origin_index[finding.id] = {}
        else:
            record.package_versions = uniq(record.package_versions + list(finding.package_versions))

        origins = origin_index[finding.id]
        for origin in finding.origins:
            existing = origins.get(origin.project.id)
            if existing is None:
                existing = Origin(project=origin.project, paths=[])
                origins[origin.project.id] = existing
                record.origins.append(existing)
            existing.paths.extend(origin.paths)

    logger.debug("Merged %d distinct findings", len(merged))
    return list(merged.values())


def aggregate_findings(findings: Iterable[Vulnerability]) -> List[Vulnerability]:
    """Sort findings, then merge duplicates across projects."""
    return merge_findings(sort_findings(findings))
