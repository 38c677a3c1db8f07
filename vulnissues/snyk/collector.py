"""Collect findings for the selected projects, with their dependency paths."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Sequence

from vulnissues.errors import UpstreamError
from vulnissues.models.vulnerability import Origin, Project, Vulnerability
from vulnissues.snyk.client import SnykClient

logger = logging.getLogger(__name__)

# Maximum simultaneous dependency-path crawls
PATH_FETCH_CONCURRENCY = 6


async def populate_paths(
    client: SnykClient,
    finding: Vulnerability,
    first_page: Optional[str],
    semaphore: asyncio.Semaphore,
) -> None:
    """
    Crawl every page of dependency paths for one finding.

    A failing page stops the crawl for this finding only: paths collected so far are
    kept and a warning is logged.
    """
    origin = finding.origins[0]
    page = first_page
    async with semaphore:
        while page:
            try:
                result = await asyncio.to_thread(client.get_link, page)
            except UpstreamError as exc:
                logger.warning("Could not load all dependency paths for %s: %s", finding.id, exc)
                return
            origin.paths.extend(result.dependency_paths())
            page = result.links.next


async def collect_findings(
    client: SnykClient,
    project_ids: Sequence[str],
    projects: Sequence[Project],
    concurrency: int = PATH_FETCH_CONCURRENCY,
) -> List[Vulnerability]:
    """
    Fetch findings of every selected project, each tagged with its project.

    Args:
        client: SnykClient bound to the organization
        project_ids: Ids of the projects to read, in order
        projects: Known projects, used to resolve ids
        concurrency: Maximum simultaneous dependency-path crawls

    Returns:
        Flat list of findings, one per (project, finding) pair, in project order
    """
    by_id = {project.id: project for project in projects}
    semaphore = asyncio.Semaphore(concurrency)
    findings: List[Vulnerability] = []
    crawls = []

    for project_id in project_ids:
        project = by_id.get(project_id) or Project(id=project_id, name=project_id)
        issues = await asyncio.to_thread(client.issues, project_id)
        logger.debug("Project %s has %d findings", project.name, len(issues))
        for issue in issues:
            finding = issue.to_vulnerability()
            finding.origins.append(Origin(project=project, paths=[]))
            crawls.append(populate_paths(client, finding, issue.links.paths, semaphore))
            findings.append(finding)

    await asyncio.gather(*crawls)
    return findings
