"""Issue title and body composition"""

from typing import Dict, List, Sequence

from vulnissues.compare import capitalize, uniq
from vulnissues.config import RunOptions
from vulnissues.github.labels import get_labels
from vulnissues.graph import get_project_name, get_unique_project_name_prefixes, render_graph
from vulnissues.models.issue import BatchProps, ComposedIssue
from vulnissues.models.vulnerability import Project, Vulnerability

CRLF = "\r\n"
SINGLE_ISSUE_PREAMBLE = "This issue has been created automatically by a source code scanner"
BATCH_ISSUE_PREAMBLE = (
    "This issue has been created automatically by "
    "[vulnissues](https://pypi.org/project/vulnissues/)."
)


def _projects_of(findings: Sequence[Vulnerability]) -> List[Project]:
    seen = set()
    projects = []
    for finding in findings:
        for project in finding.projects:
            if project.id not in seen:
                seen.add(project.id)
                projects.append(project)
    return projects


class IssueComposer:
    """Builds tracker issues from findings"""

    @staticmethod
    def issue_title(finding: Vulnerability, options: RunOptions) -> str:
        """
        Title for a single-finding issue.

        The finding id is part of the title so that two findings in the same
        package and version never share a title; titles are matched against
        existing tracker issues to decide between create and update.
        """
        project_name = get_project_name(finding.projects, options.project_name)
        return (
            f"{project_name} - {finding.title} in {finding.package_name} "
            f"{finding.version_label} - {finding.id}"
        )

    @staticmethod
    def issue_body(finding: Vulnerability, options: RunOptions) -> str:
        """Body for a single-finding issue"""
        project_name = get_project_name(finding.projects, options.project_name)
        graph = render_graph(
            finding,
            "* ",
            parse_manifest_name=options.parse_manifest_name,
            project_name=options.project_name,
        )
        identifiers = "".join(f"- {identifier}{CRLF}" for identifier in finding.extra_identifiers)
        return (
            f"{SINGLE_ISSUE_PREAMBLE}\n"
            "\n"
            "## Third party component with known security vulnerabilities\n"
            "\n"
            f"Introduced to {project_name} through:\n"
            "\n"
            f"{graph}\n"
            "\n"
            f"{finding.description}\n"
            f"- [{finding.id}]({finding.url})\n"
            f"{identifiers}"
        )

    @staticmethod
    def compose_issue(finding: Vulnerability, options: RunOptions) -> ComposedIssue:
        return ComposedIssue(
            title=IssueComposer.issue_title(finding, options),
            body=IssueComposer.issue_body(finding, options),
            labels=get_labels([finding], options),
        )

    @staticmethod
    def batch_description(findings: Sequence[Vulnerability]) -> str:
        """Describe a batch: the title of a lone finding, else a count."""
        if len(findings) == 1:
            return findings[0].title
        titles = uniq(finding.title for finding in findings)
        vulnerability = f" {titles[0]}" if len(titles) == 1 else ""
        return f"{len(findings)}{vulnerability} findings"

    @staticmethod
    def group_by_severity(findings: Sequence[Vulnerability]) -> Dict[str, List[Vulnerability]]:
        groups: Dict[str, List[Vulnerability]] = {}
        for finding in findings:
            groups.setdefault(finding.severity, []).append(finding)
        return groups

    @staticmethod
    def compose_batch_issue(batch: BatchProps, options: RunOptions) -> ComposedIssue:
        """
        Build one issue covering every finding of a batch.

        Args:
            batch: Findings narrowed to one package by the batch selector
            options: Run options (display name override, manifest parsing, labels)

        Returns:
            ComposedIssue with findings grouped by severity in collapsible sections
        """
        findings = batch.issues
        projects = _projects_of(findings)
        show_full_manifest = len(get_unique_project_name_prefixes(projects)) > 1

        title = (
            f"{get_project_name(projects, options.project_name)} - "
            f"{IssueComposer.batch_description(findings)} in {batch.package_name} {batch.version}"
        )

        lines = [f"{BATCH_ISSUE_PREAMBLE}{CRLF}{CRLF}Snyk project(s):"]
        for project in projects:
            tag = f" (manifest version {project.image_tag})" if project.image_tag else ""
            lines.append(f"{CRLF} * [`{project.name}`]({project.browse_url}){tag}")

        for severity, group in IssueComposer.group_by_severity(findings).items():
            lines.append(f"{CRLF}{CRLF}# {capitalize(severity)}-severity vulnerabilities")
            for index, finding in enumerate(group, 1):
                references = ", ".join([finding.id] + finding.extra_identifiers)
                graph = render_graph(
                    finding,
                    "* ",
                    show_full_manifest,
                    parse_manifest_name=options.parse_manifest_name,
                    project_name=options.project_name,
                )
                lines.append(
                    f"{CRLF}{CRLF}<details>\n"
                    f"<summary>{index}. {finding.title} in {finding.package_name} "
                    f"{finding.version_label} ({references})</summary>\n"
                    "\n"
                    "## Detailed paths\n"
                    f"{graph}\n"
                    "\n"
                    f"{finding.description}\n"
                    f"- [{finding.id}]({finding.url})\n"
                    "</details>"
                )

        return ComposedIssue(title=title, body="".join(lines), labels=get_labels(findings, options))
