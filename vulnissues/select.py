"""Pick which findings to file, interactively or automatically."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence

import click
from rich.console import Console
from rich.markup import escape

from vulnissues.batch import ChoosePackage, select_batch
from vulnissues.config import RunOptions
from vulnissues.graph import render_graph
from vulnissues.models.issue import BatchChoice
from vulnissues.models.vulnerability import Vulnerability

logger = logging.getLogger(__name__)

Confirm = Callable[[str], bool]


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count != 1 else ''}"


def describe_finding(index: int, finding: Vulnerability) -> str:
    """``N. S|score - package versions - title - id``"""
    return (
        f"{index}. {finding.severity[:1].upper()}|{finding.priority_score} - "
        f"{finding.package_name} {finding.version_label} - {finding.title} - {finding.id}"
    )


def prompt_package_choice(choices: List[BatchChoice], console: Optional[Console] = None) -> BatchChoice:
    """Ask the operator to pick one vulnerable package."""
    console = console or Console()
    console.print("[bold]Pick a vulnerable package[/bold]")
    for number, choice in enumerate(choices, 1):
        console.print(f"  {number}. {escape(choice.label)}")
    selected = click.prompt(
        "Package number",
        type=click.IntRange(1, len(choices)),
        default=1,
    )
    return choices[selected - 1]


def auto_generate(findings: Sequence[Vulnerability], options: RunOptions) -> List[Vulnerability]:
    """Select every finding."""
    count = len(findings)
    if options.batch:
        logger.info("Auto-generating a single GitHub issue for %s", _plural(count, "issue"))
    else:
        logger.info("Auto-generating %s...", _plural(count, "GitHub issue"))
    return list(findings)


def manual_selection(
    findings: Sequence[Vulnerability],
    options: RunOptions,
    console: Optional[Console] = None,
    confirm: Optional[Confirm] = None,
) -> List[Vulnerability]:
    """Show each finding with its paths and ask whether to include it."""
    console = console or Console()
    confirm = confirm or (lambda message: click.confirm(message, default=False))

    console.print(f"Found {len(findings)} vulnerabilities...")
    console.print(
        "Format: [Severity]|[Priority score] - [Package name] [Package Version] - [Vuln title] - [Vuln ID]\n",
        markup=False,
    )
    selected = []
    for index, finding in enumerate(findings, 1):
        description = describe_finding(index, finding)
        graph = render_graph(
            finding,
            " * ",
            True,
            parse_manifest_name=options.parse_manifest_name,
            project_name=options.project_name,
        )
        console.print(f"{description}\n{graph}\n", markup=False)
        message = (
            f'Add "{description}" to batch?'
            if options.batch
            else f"Create GitHub issue for {description}?"
        )
        if confirm(message):
            selected.append(finding)
    return selected


def select_findings(
    findings: Sequence[Vulnerability],
    options: RunOptions,
    choose: ChoosePackage,
    console: Optional[Console] = None,
    confirm: Optional[Confirm] = None,
) -> List[Vulnerability]:
    """
    Narrow to one package when batching, then select findings.

    Args:
        findings: Aggregated findings, in priority order (non-empty)
        options: Run options (batch, auto-generate)
        choose: Package chooser for batches spanning several packages
        console: Console used for the interactive listing
        confirm: Yes/no prompt used for each finding

    Returns:
        The findings to file
    """
    candidates = list(findings)
    if options.batch:
        candidates = select_batch(candidates, choose).issues
    if options.auto_generate:
        return auto_generate(candidates, options)
    return manual_selection(candidates, options, console=console, confirm=confirm)
