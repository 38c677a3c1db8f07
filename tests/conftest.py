"""Shared test fixtures."""

from typing import List, Optional, Sequence

import pytest

from vulnissues.config import RunOptions
from vulnissues.models.vulnerability import Origin, PathElement, Project, Vulnerability


def _make_path(*hops: str) -> List[PathElement]:
    """Build a dependency path from ``name@version`` strings."""
    path = []
    for hop in hops:
        name, _, version = hop.rpartition("@")
        path.append(PathElement(name=name, version=version))
    return path


def _make_finding(
    id: str = "SNYK-JS-LODASH-1",
    package_name: str = "lodash",
    versions: Sequence[str] = ("4.17.15",),
    severity: str = "high",
    priority_score: int = 500,
    title: str = "Prototype Pollution",
    project: Optional[Project] = None,
    paths: Optional[List[List[PathElement]]] = None,
    identifiers: Optional[dict] = None,
) -> Vulnerability:
    project = project or Project(id="p1", name="acme/app:package.json")
    if paths is None:
        paths = [_make_path(f"{package_name}@{versions[0]}")]
    return Vulnerability(
        id=id,
        package_name=package_name,
        package_versions=list(versions),
        severity=severity,
        priority_score=priority_score,
        title=title,
        description="Upgrade to a fixed version.",
        url=f"https://snyk.io/vuln/{id}",
        identifiers=identifiers if identifiers is not None else {"CVE": ["CVE-2020-8203"], "CWE": []},
        origins=[Origin(project=project, paths=paths)],
    )


@pytest.fixture
def options():
    """Unbatched run options without manifest parsing"""
    return RunOptions(
        gh_owner="acme",
        gh_repo="app",
        snyk_org="org-1",
        snyk_projects=("p1",),
        gh_labels=("snyk",),
        parse_manifest_name=False,
        batch=False,
    )


@pytest.fixture
def batch_options(options):
    return options.with_overrides(batch=True)


@pytest.fixture
def project():
    return Project(
        id="p1",
        name="acme/app(main):package.json",
        browse_url="https://app.snyk.io/org/acme/project/p1",
    )


@pytest.fixture
def other_project():
    return Project(
        id="p2",
        name="acme/app(main):web/package.json",
        browse_url="https://app.snyk.io/org/acme/project/p2",
        image_tag="1.4.0",
    )


@pytest.fixture
def make_path():
    return _make_path


@pytest.fixture
def make_finding():
    return _make_finding
