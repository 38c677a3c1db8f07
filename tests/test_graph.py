"""Tests for project naming and dependency graph rendering"""

import pytest

from vulnissues.graph import (
    get_manifest_name,
    get_project_name,
    get_project_name_prefix,
    get_unique_project_name_prefixes,
    render_graph,
)
from vulnissues.models.vulnerability import Origin, Project, Vulnerability

ROOT = Project(id="root", name="elastic/kibana(6.8):package.json")
XPACK = Project(id="xpack", name="elastic/kibana(6.8):x-pack/package.json")


def _finding(*origins: Origin) -> Vulnerability:
    return Vulnerability(
        id="SNYK-JS-ANGULAR-1",
        package_name="angular",
        package_versions=["1.6.9"],
        severity="high",
        priority_score=600,
        title="Cross-site Scripting (XSS)",
        origins=list(origins),
    )


def _many_paths(make_path, direct_name) -> list:
    """Twenty paths into angular, each one hop deeper than the last"""
    paths = []
    for n in range(20):
        hops = []
        if n > 0:
            hops.append(f"{direct_name(n)}@1.0.0")
            hops.extend(f"transitive-dependency{n}-{depth}@1.0.0" for depth in range(1, n))
        hops.append("angular@1.6.9")
        paths.append(make_path(*hops))
    return paths


class TestProjectNames:
    """Test project naming helpers"""

    def test_single_and_multiple_projects(self):
        foo = Project(id="1", name="foo")
        bar = Project(id="2", name="bar")
        assert get_project_name(foo) == "foo"
        assert get_project_name([foo]) == "foo"
        assert get_project_name([foo, bar]) == "2 projects"

    def test_override_always_wins(self):
        foo = Project(id="1", name="foo")
        bar = Project(id="2", name="bar")
        assert get_project_name(foo, "custom") == "custom"
        assert get_project_name([foo], "custom") == "custom"
        assert get_project_name([foo, bar], "custom") == "custom"

    def test_prefixes(self):
        assert get_project_name_prefix("a:b") == "a"
        assert get_project_name_prefix("no-colon") == ""
        projects = [Project(id="1", name="a:b"), Project(id="2", name="c:d")]
        assert get_unique_project_name_prefixes(projects) == {"a", "c"}

    def test_manifest_name(self):
        assert get_manifest_name(XPACK, False, parse_manifest_name=True) == "x-pack/package.json"
        assert get_manifest_name(XPACK, True, parse_manifest_name=True) == XPACK.name
        assert get_manifest_name(XPACK, False) == XPACK.name
        assert get_manifest_name(XPACK, False, project_name="kibana") == "kibana"


class TestRenderGraph:
    """Test dependency graph rendering"""

    def test_few_paths(self, make_path):
        finding = _finding(
            Origin(ROOT, [make_path("angular@1.6.9"), make_path("angular-elastic@2.5.0", "angular@1.6.9")]),
            Origin(XPACK, [make_path("angular@1.6.9")]),
        )

        assert render_graph(finding, " * ", False) == (
            " * elastic/kibana(6.8):package.json > angular@1.6.9\r\n"
            " * elastic/kibana(6.8):package.json > angular-elastic@2.5.0 > angular@1.6.9\r\n"
            " * elastic/kibana(6.8):x-pack/package.json > angular@1.6.9"
        )

    def test_many_paths_with_different_direct_dependencies(self, make_path):
        paths = _many_paths(make_path, lambda n: f"direct-dependency{n}")
        finding = _finding(Origin(ROOT, paths), Origin(XPACK, [make_path("angular@1.6.9")]))

        expected = [
            " * elastic/kibana(6.8):package.json > angular@1.6.9",
            " * elastic/kibana(6.8):package.json > direct-dependency1@1.0.0 > angular@1.6.9",
        ]
        expected.extend(
            f" * elastic/kibana(6.8):package.json > direct-dependency{n}@1.0.0 > ... > angular@1.6.9"
            for n in range(2, 20)
        )
        expected.append(" * elastic/kibana(6.8):x-pack/package.json > angular@1.6.9")

        assert render_graph(finding, " * ", False) == "\r\n".join(expected)

    def test_many_paths_with_same_direct_dependency(self, make_path):
        paths = _many_paths(make_path, lambda n: "direct-dependency")
        finding = _finding(Origin(ROOT, paths), Origin(XPACK, [make_path("angular@1.6.9")]))

        assert render_graph(finding, " * ", False) == (
            " * elastic/kibana(6.8):package.json > angular@1.6.9\r\n"
            " * elastic/kibana(6.8):package.json > direct-dependency@1.0.0 > angular@1.6.9\r\n"
            " * elastic/kibana(6.8):package.json > direct-dependency@1.0.0 > ... (x18) > angular@1.6.9\r\n"
            " * elastic/kibana(6.8):x-pack/package.json > angular@1.6.9"
        )

    def test_twenty_paths_are_not_shortened(self, make_path):
        paths = [make_path(f"direct{n}@1.0.0", "middle@1.0.0", "angular@1.6.9") for n in range(20)]
        graph = render_graph(_finding(Origin(ROOT, paths)), "* ")

        assert "..." not in graph
        assert len(graph.split("\r\n")) == 20

    def test_repeated_full_paths_are_listed_once_without_count(self, make_path):
        finding = _finding(Origin(ROOT, [make_path("angular@1.6.9"), make_path("angular@1.6.9")]))

        assert render_graph(finding, "* ") == "* elastic/kibana(6.8):package.json > angular@1.6.9"

    def test_count_is_attached_to_elided_hops_not_root_name(self, make_path):
        """Test that a project name containing dots keeps its text intact"""
        project = Project(id="w", name="weird...name")
        paths = [make_path("d@1", "m@1", "x@1") for _ in range(21)]

        graph = render_graph(_finding(Origin(project, paths)), "* ")

        assert graph == "* weird...name > d@1 > ... (x21) > x@1"

    def test_no_paths_renders_empty(self):
        assert render_graph(_finding(Origin(ROOT, [])), "* ") == ""

    @pytest.mark.parametrize(
        "projects,expected_roots",
        [
            # same branch prefix: manifest names only
            ((ROOT, XPACK), ["package.json", "x-pack/package.json"]),
            # different branches: full names
            (
                (ROOT, Project(id="main", name="elastic/kibana(main):package.json")),
                ["elastic/kibana(6.8):package.json", "elastic/kibana(main):package.json"],
            ),
        ],
    )
    def test_parsed_manifest_names(self, make_path, projects, expected_roots):
        finding = _finding(*(Origin(project, [make_path("angular@1.6.9")]) for project in projects))

        lines = render_graph(finding, "", parse_manifest_name=True).split("\r\n")

        assert lines == [f"{root} > angular@1.6.9" for root in expected_roots]

    def test_show_full_manifest_forces_full_names(self, make_path):
        finding = _finding(Origin(XPACK, [make_path("angular@1.6.9")]))

        graph = render_graph(finding, "", True, parse_manifest_name=True)

        assert graph == "elastic/kibana(6.8):x-pack/package.json > angular@1.6.9"
