"""Project naming and dependency graph rendering"""

from __future__ import annotations

from typing import Dict, Iterable, Optional, Sequence, Set, Tuple, Union

from vulnissues.models.vulnerability import Project, Vulnerability

# Above this many paths, chains deeper than two hops are shortened
MAX_FULL_PATHS = 20
ELLIPSIS = "..."
SEPARATOR = " > "
LINE_BREAK = "\r\n"


def get_project_name(
    projects: Union[Project, Sequence[Project]], project_name: Optional[str] = None
) -> str:
    """Display name for one project or a group of projects.

    The ``project_name`` override always wins; several projects render as ``"<N> projects"``.
    """
    if project_name:
        return project_name
    if isinstance(projects, Project):
        return projects.name
    if len(projects) == 1:
        return projects[0].name
    return f"{len(projects)} projects"


def get_project_name_prefix(name: str) -> str:
    """Text before the first colon (the branch part), or '' without a colon."""
    index = name.find(":")
    return name[:index] if index >= 0 else ""


def get_unique_project_name_prefixes(projects: Iterable[Project]) -> Set[str]:
    return {get_project_name_prefix(project.name) for project in projects}


def get_manifest_name(
    project: Project,
    show_full_manifest: bool,
    *,
    parse_manifest_name: bool = False,
    project_name: Optional[str] = None,
) -> str:
    """Root label for a project's dependency paths.

    With ``parse_manifest_name`` the manifest part after the first colon is used unless the
    full name is requested; otherwise the project display name is used.
    """
    if parse_manifest_name:
        if show_full_manifest:
            return project.name
        return project.name[project.name.find(":") + 1:]
    return get_project_name(project, project_name)


def render_graph(
    vulnerability: Vulnerability,
    prefix: str,
    show_full_manifest: bool = False,
    *,
    parse_manifest_name: bool = False,
    project_name: Optional[str] = None,
) -> str:
    """
    Render every dependency path of a finding, one line per distinct path.

    Lines read ``<prefix><root> > a@1.0.0 > b@2.0.0`` and are joined with CRLF in
    origin order, then path order. When the finding has more than MAX_FULL_PATHS
    paths, chains longer than two hops become ``first > ... > last``; identical
    shortened lines are merged and annotated with ``... (xN)``.

    Args:
        vulnerability: Finding with its origins populated
        prefix: Bullet placed before each line
        show_full_manifest: Force full project names as roots
        parse_manifest_name: Use the manifest part of project names as roots
        project_name: Display name override for the project(s)

    Returns:
        Rendered graph, or '' when the finding has no paths
    """
    is_multiple_branches = (
        len(get_unique_project_name_prefixes(origin.project for origin in vulnerability.origins)) > 1
    )
    hide_transitive = vulnerability.path_count > MAX_FULL_PATHS

    # (root, hops) -> occurrences; None marks the elided middle of a shortened chain
    counts: Dict[Tuple[str, Tuple[Optional[str], ...]], int] = {}
    for origin in vulnerability.origins:
        root = get_manifest_name(
            origin.project,
            is_multiple_branches or show_full_manifest,
            parse_manifest_name=parse_manifest_name,
            project_name=project_name,
        )
        for path in origin.paths:
            hops = [str(element) for element in path]
            if hide_transitive and len(hops) > 2:
                key = (root, (hops[0], None, hops[-1]))
            else:
                key = (root, tuple(hops))
            counts[key] = counts.get(key, 0) + 1

    lines = []
    for (root, hops), count in counts.items():
        elided = ELLIPSIS if count == 1 else f"{ELLIPSIS} (x{count})"
        path_text = SEPARATOR.join(elided if hop is None else hop for hop in hops)
        lines.append(f"{prefix}{root}{SEPARATOR}{path_text}")
    return LINE_BREAK.join(lines)
