"""Label computation and provisioning"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Iterable, List, Sequence

from vulnissues.compare import uniq
from vulnissues.config import SNYK_LABEL, RunOptions
from vulnissues.models.vulnerability import Vulnerability

logger = logging.getLogger(__name__)

LABELS: Dict[str, Dict[str, str]] = {
    SNYK_LABEL: {
        "description": "Issue reported by Snyk Open Source scanner",
        "color": "70389f",
    },
    "severity:critical": {
        "description": "Critical severity rating",
        "color": "990000",
    },
    "severity:high": {
        "description": "High severity rating",
        "color": "b31a6b",
    },
    "severity:medium": {
        "description": "Medium severity rating",
        "color": "df8620",
    },
    "severity:low": {
        "description": "Low severity rating",
        "color": "595775",
    },
}
DEFAULT_LABEL = {"description": "", "color": "ffffff"}


def get_labels(findings: Sequence[Vulnerability], options: RunOptions) -> List[str]:
    """Labels for an issue covering ``findings``: ``snyk``, configured labels, then severities."""
    labels = [SNYK_LABEL, *options.gh_labels]
    if options.severity_label:
        labels.extend(f"severity:{finding.severity}" for finding in findings)
    return uniq(labels)


def get_label_attributes(name: str) -> Dict[str, str]:
    return {"name": name, **LABELS.get(name, DEFAULT_LABEL)}


async def ensure_labels_are_created(client, labels: Iterable[str], dry_run: bool = False) -> List[str]:
    """
    Create any of ``labels`` missing from the repository.

    Args:
        client: GitHubClient for the target repository
        labels: Labels the upcoming issues will use
        dry_run: Compute the missing labels without creating them

    Returns:
        Names of labels that were (or in a dry run would be) created
    """
    wanted = uniq(labels)
    current = set(await asyncio.to_thread(client.list_labels))
    missing = [name for name in wanted if name not in current]
    if not missing:
        logger.debug("No labels to create")
        return []
    if dry_run:
        logger.info("Dry run: skipping creation of labels %s", ", ".join(missing))
        return missing

    await asyncio.gather(
        *(asyncio.to_thread(client.create_label, **get_label_attributes(name)) for name in missing)
    )
    for name in missing:
        logger.info('Created GitHub label: "%s"', name)
    return missing
