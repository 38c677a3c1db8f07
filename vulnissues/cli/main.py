"""Main CLI entry point for vulnissues"""

import asyncio
import logging
import sys
from typing import List, Optional, Tuple

import click
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from vulnissues import __version__
from vulnissues.aggregate import aggregate_findings
from vulnissues.config import RunOptions, Settings, parse_snapshot_stdin
from vulnissues.errors import ConfigurationError, UpstreamError
from vulnissues.github.client import GitHubClient
from vulnissues.github.reconciler import IssueReconciler, ReconcileResult
from vulnissues.models.vulnerability import Project, Vulnerability
from vulnissues.select import prompt_package_choice, select_findings
from vulnissues.snyk.client import SnykClient
from vulnissues.snyk.collector import collect_findings

console = Console()
logger = logging.getLogger("vulnissues")

SEVERITY_CHOICES = ["low", "medium", "high", "critical"]


def _configure_logging(debug: bool, quiet: bool) -> None:
    """Route library logging through rich."""
    level = logging.DEBUG if debug else logging.WARNING if quiet else logging.INFO
    handler = RichHandler(console=console, show_path=debug, rich_tracebacks=debug)
    logger.handlers[:] = [handler]
    logger.setLevel(level)
    logger.propagate = False


def _require_secret(name: str, label: str, cli_value: Optional[str], yes: bool) -> str:
    value = Settings.get_secret(name, cli_value)
    if value:
        return value
    if yes:
        raise ConfigurationError(f"{label} is required (set {Settings.SECRET_ENV[name]})")
    return click.prompt(label, hide_input=True)


def _require_value(value: str, label: str, yes: bool) -> str:
    if value:
        return value
    if yes:
        raise ConfigurationError(f"{label} is required")
    return click.prompt(label)


def _choose_org(snyk: SnykClient, yes: bool) -> str:
    if yes:
        raise ConfigurationError("Snyk organization is required")
    orgs = snyk.orgs()
    if not orgs:
        raise ConfigurationError("No Snyk organizations are available for this token")
    console.print("[bold]Snyk organizations[/bold]")
    for number, org in enumerate(orgs, 1):
        console.print(f"  {number}. {escape(str(org.get('name')))} [dim]{org.get('id')}[/dim]")
    selected = click.prompt("Organization number", type=click.IntRange(1, len(orgs)), default=1)
    return orgs[selected - 1]["id"]


def _sorted_project_choices(projects: List[Project]) -> List[Project]:
    """Active projects first, then by display text."""
    def message(project: Project) -> str:
        if project.is_monitored:
            return f"{project.name} ({project.issue_count_total} issues)"
        return f"[Inactive project] {project.name}"

    return sorted(projects, key=lambda project: (not project.is_monitored, message(project)))


def _choose_projects(projects: List[Project], yes: bool) -> Tuple[str, ...]:
    if yes:
        raise ConfigurationError("At least one Snyk project is required")
    choices = _sorted_project_choices(projects)
    if not choices:
        raise ConfigurationError("The Snyk organization has no active projects")
    _display_projects(choices)
    raw = click.prompt("Project numbers (comma-separated)")
    picked = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        if not part.isdigit() or not 1 <= int(part) <= len(choices):
            raise click.BadParameter(f"{part!r} is not a listed project number")
        picked.append(choices[int(part) - 1].id)
    return tuple(dict.fromkeys(picked))


def _display_projects(projects: List[Project]) -> None:
    table = Table(title="Snyk projects", box=box.ROUNDED)
    table.add_column("#", style="dim", width=3)
    table.add_column("Project", style="bold")
    table.add_column("Issues", justify="right")
    table.add_column("Id", style="cyan")
    for idx, project in enumerate(projects, 1):
        issues = str(project.issue_count_total) if project.is_monitored else "[dim]inactive[/dim]"
        table.add_row(str(idx), escape(project.name), issues, project.id)
    console.print(table)


def _print_result(result: ReconcileResult) -> None:
    for line in result.report_lines():
        if line.startswith("- "):
            console.print(line, markup=False, highlight=False)
        else:
            console.print(f"[green]{line}[/green]")


def _collect(snyk: SnykClient, options: RunOptions, projects: List[Project]) -> List[Vulnerability]:
    with console.status("Loading Snyk issues"):
        findings = asyncio.run(collect_findings(snyk, options.snyk_projects, projects))
    return aggregate_findings(findings)


@click.group()
@click.version_option(version=__version__, prog_name="vulnissues")
def cli():
    """
    vulnissues - File GitHub issues for Snyk vulnerabilities

    Deduplicates findings across Snyk projects and creates or updates GitHub issues.
    """
    pass


@cli.command()
@click.option("--snyk-org", help="The Snyk organization UUID")
@click.option("--snyk-projects", help="Comma-separated list of Snyk project UUIDs")
@click.option("--gh-owner", help="Owner or organization of the GitHub repository")
@click.option("--gh-repo", help="GitHub repository where issues are created")
@click.option("--project-name", help="Alternative project name used in issue titles")
@click.option(
    "--gh-labels", help="Comma-separated GitHub labels for new issues (\"snyk\" is always added)"
)
@click.option(
    "--severity-label/--no-severity-label",
    default=None,
    help="Add severity label(s) to issues (default: yes)",
)
@click.option(
    "--parse-manifest-name/--no-parse-manifest-name",
    default=None,
    help="Start dependency paths with the manifest name instead of the project name (default: yes)",
)
@click.option(
    "--batch/--no-batch",
    default=None,
    help="Combine the selected findings into a single GitHub issue (default: yes)",
)
@click.option(
    "--minimum-severity",
    type=click.Choice(SEVERITY_CHOICES),
    help="Only show findings at or above this severity (default: medium)",
)
@click.option(
    "--auto-generate/--no-auto-generate",
    default=None,
    help="Create issues without confirmation prompts (default: no)",
)
@click.option("--dry-run", is_flag=True, help="Do not create any GitHub issues or labels")
@click.option(
    "--stdin",
    "read_stdin",
    is_flag=True,
    help="Read the Snyk org and project from `snyk monitor` output on stdin",
)
@click.option("--yes", "-y", is_flag=True, help="Re-use saved settings without asking")
@click.option("--save", is_flag=True, help="Save settings for later runs")
@click.option("--allow-public", is_flag=True, help="Skip confirmation for public repositories")
@click.option("--snyk-token", envvar="SNYK_TOKEN", help="Snyk API token [env: SNYK_TOKEN]")
@click.option("--gh-pat", envvar="GH_PAT", help="GitHub personal access token [env: GH_PAT]")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only)")
@click.option("--debug", is_flag=True, help="Show verbose diagnostic output")
def run(
    snyk_org: Optional[str],
    snyk_projects: Optional[str],
    gh_owner: Optional[str],
    gh_repo: Optional[str],
    project_name: Optional[str],
    gh_labels: Optional[str],
    severity_label: Optional[bool],
    parse_manifest_name: Optional[bool],
    batch: Optional[bool],
    minimum_severity: Optional[str],
    auto_generate: Optional[bool],
    dry_run: bool,
    read_stdin: bool,
    yes: bool,
    save: bool,
    allow_public: bool,
    snyk_token: Optional[str],
    gh_pat: Optional[str],
    quiet: bool,
    debug: bool,
):
    """
    Select Snyk findings and file them as GitHub issues.

    Examples:

        vulnissues run --snyk-org ORG --snyk-projects P1,P2 --gh-owner acme --gh-repo app

        vulnissues run --yes --auto-generate --no-batch

        snyk monitor | vulnissues run --stdin --yes
    """
    try:
        if quiet and debug:
            console.print(
                "[yellow]⚠️  Warning: --quiet and --debug are contradictory. Using --debug.[/yellow]"
            )
            quiet = False
        _configure_logging(debug, quiet)

        if read_stdin:
            snyk_org, project_id = parse_snapshot_stdin(click.get_text_stream("stdin").read())
            snyk_projects = project_id

        options = Settings.resolve(
            {
                "gh_owner": gh_owner,
                "gh_repo": gh_repo,
                "snyk_org": snyk_org,
                "snyk_projects": snyk_projects,
                "project_name": project_name,
                "gh_labels": gh_labels,
                "severity_label": severity_label,
                "parse_manifest_name": parse_manifest_name,
                "batch": batch,
                "minimum_severity": minimum_severity,
                "auto_generate": auto_generate,
                "dry_run": dry_run or None,
            }
        )

        snyk_token = _require_secret("snyk_token", "Snyk token", snyk_token, yes)
        snyk = SnykClient(token=snyk_token, minimum_severity=options.minimum_severity)

        if not options.snyk_org:
            options = options.with_overrides(snyk_org=_choose_org(snyk, yes))
        snyk.org_id = options.snyk_org

        with console.status("Loading Snyk projects"):
            projects = snyk.projects(options.snyk_org, options.snyk_projects)
        if not options.snyk_projects:
            options = options.with_overrides(snyk_projects=_choose_projects(projects, yes))

        gh_pat = _require_secret("gh_pat", "GitHub Personal Access Token", gh_pat, yes)
        options = options.with_overrides(
            gh_owner=_require_value(options.gh_owner, "GitHub Owner", yes),
            gh_repo=_require_value(options.gh_repo, "GitHub Repo", yes),
        )

        if save:
            path = Settings.save(options)
            console.print(f"[dim]Settings saved to {path}[/dim]")

        github = GitHubClient(token=gh_pat, owner=options.gh_owner, repo=options.gh_repo)
        with console.status("Loading GitHub repository"):
            private = github.is_private()
        if not private and not allow_public:
            if not click.confirm(
                "You are about to create issue(s) related to security vulnerabilities inside a "
                "public GitHub repo. Are you sure you want to continue?",
                default=False,
            ):
                sys.exit(0)

        findings = _collect(snyk, options, projects)
        if not findings:
            console.print("[green]No issues to create[/green]")
            sys.exit(0)

        choose = lambda choices: prompt_package_choice(choices, console)  # noqa: E731
        reconciler = IssueReconciler(github, options, choose)

        while True:
            selected = select_findings(findings, options, choose, console=console)
            existing = None
            if not options.batch and selected:
                existing = github.existing_issues()
            result = asyncio.run(reconciler.reconcile(selected, existing))
            _print_result(result)
            if options.auto_generate or not click.confirm("Pick another issue?", default=False):
                break

        sys.exit(0)

    except KeyboardInterrupt:
        console.print("\n[yellow]⚠️  Cancelled by user[/yellow]")
        sys.exit(130)
    except click.exceptions.Abort:
        console.print("\n[yellow]Aborted![/yellow]")
        sys.exit(1)
    except (ConfigurationError, UpstreamError, click.BadParameter) as e:
        console.print(f"[bold red]❌ Error:[/bold red] {escape(str(e))}")
        if debug:
            console.print_exception()
        sys.exit(1)
    except Exception as e:
        console.print(f"\n[bold red]❌ Error:[/bold red] {escape(str(e))}", style="red")
        if debug:
            console.print_exception()
        else:
            console.print("\n[dim]Run with --debug for the full stack trace[/dim]")
        sys.exit(1)


@cli.command()
@click.option("--snyk-org", help="The Snyk organization UUID")
@click.option("--snyk-token", envvar="SNYK_TOKEN", help="Snyk API token [env: SNYK_TOKEN]")
@click.option("--debug", is_flag=True, help="Show verbose diagnostic output")
def projects(snyk_org: Optional[str], snyk_token: Optional[str], debug: bool):
    """List the projects of a Snyk organization."""
    try:
        _configure_logging(debug, False)
        options = Settings.resolve({"snyk_org": snyk_org})
        token = _require_secret("snyk_token", "Snyk token", snyk_token, True)
        if not options.snyk_org:
            raise ConfigurationError("Snyk organization is required (--snyk-org)")
        snyk = SnykClient(token=token, org_id=options.snyk_org)
        _display_projects(_sorted_project_choices(snyk.projects()))
    except (ConfigurationError, UpstreamError) as e:
        console.print(f"[bold red]❌ Error:[/bold red] {escape(str(e))}")
        sys.exit(1)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
