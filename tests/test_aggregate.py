"""Tests for ordering and merging findings"""

from vulnissues.aggregate import aggregate_findings, compare_findings, merge_findings, sort_findings
from vulnissues.graph import get_project_name
from vulnissues.models.vulnerability import Project


class TestSortFindings:
    """Test the composite finding order"""

    def test_priority_score_descends(self, make_finding):
        low = make_finding(id="A", priority_score=100)
        high = make_finding(id="B", priority_score=900)

        assert [f.id for f in sort_findings([low, high])] == ["B", "A"]

    def test_severity_breaks_priority_ties(self, make_finding):
        medium = make_finding(id="A", severity="medium")
        critical = make_finding(id="B", severity="critical")

        assert [f.id for f in sort_findings([medium, critical])] == ["B", "A"]

    def test_package_then_versions_then_title(self, make_finding):
        zlib = make_finding(id="A", package_name="zlib")
        axios_old = make_finding(id="B", package_name="axios", versions=["0.18.0"])
        axios_new = make_finding(id="C", package_name="Axios", versions=["0.21.0"])
        axios_new_b = make_finding(id="D", package_name="axios", versions=["0.21.0"], title="ReDoS")

        ordered = sort_findings([zlib, axios_old, axios_new_b, axios_new])

        assert [f.id for f in ordered] == ["C", "D", "B", "A"]

    def test_project_name_is_last_tie_breaker(self, make_finding):
        a = make_finding(id="X", project=Project(id="2", name="b-project"))
        b = make_finding(id="X", project=Project(id="1", name="a-project"))

        assert compare_findings(a, b) == 1
        assert compare_findings(b, a) == -1
        assert compare_findings(a, a) == 0

    def test_sort_is_stable_for_equal_findings(self, make_finding):
        first = make_finding(id="1")
        second = make_finding(id="2")

        assert sort_findings([first, second]) == [first, second]


class TestMergeFindings:
    """Test de-duplication across projects"""

    def test_findings_from_two_projects_merge(self, make_finding, make_path, project, other_project):
        a = make_finding(id="SNYK-1", project=project, paths=[make_path("lodash@4.17.15")])
        b = make_finding(
            id="SNYK-1",
            project=other_project,
            paths=[make_path("express@4.0.0", "lodash@4.17.15")],
        )

        merged = merge_findings([a, b])

        assert len(merged) == 1
        record = merged[0]
        assert [origin.project.id for origin in record.origins] == ["p1", "p2"]
        assert record.path_count == 2
        assert get_project_name(record.projects) == "2 projects"

    def test_same_project_paths_are_folded(self, make_finding, make_path, project):
        a = make_finding(id="SNYK-1", project=project, paths=[make_path("lodash@4.17.15")])
        b = make_finding(id="SNYK-1", project=project, paths=[make_path("a@1.0.0", "lodash@4.17.15")])

        record = merge_findings([a, b])[0]

        assert len(record.origins) == 1
        assert record.origins[0].paths == [
            make_path("lodash@4.17.15"),
            make_path("a@1.0.0", "lodash@4.17.15"),
        ]

    def test_versions_are_unioned_and_first_fields_kept(self, make_finding, project, other_project):
        a = make_finding(id="SNYK-1", versions=["1.0.0"], title="First", project=project)
        b = make_finding(id="SNYK-1", versions=["1.0.0", "1.1.0"], title="Second", project=other_project)

        record = merge_findings([a, b])[0]

        assert record.package_versions == ["1.0.0", "1.1.0"]
        assert record.title == "First"

    def test_inputs_are_not_mutated(self, make_finding, project, other_project):
        a = make_finding(id="SNYK-1", project=project)
        b = make_finding(id="SNYK-1", project=other_project)

        merge_findings([a, b])

        assert len(a.origins) == 1
        assert len(a.origins[0].paths) == 1

    def test_distinct_ids_stay_separate_in_order(self, make_finding):
        merged = merge_findings([make_finding(id="B"), make_finding(id="A"), make_finding(id="B")])

        assert [f.id for f in merged] == ["B", "A"]


class TestAggregateFindings:
    """Test the full sort-then-merge pipeline"""

    def test_merged_records_follow_priority_order(self, make_finding, project, other_project):
        findings = [
            make_finding(id="LOW", priority_score=100, project=project),
            make_finding(id="TOP", priority_score=800, project=project),
            make_finding(id="LOW", priority_score=100, project=other_project),
        ]

        aggregated = aggregate_findings(findings)

        assert [f.id for f in aggregated] == ["TOP", "LOW"]
        assert [p.id for p in aggregated[1].projects] == ["p1", "p2"]

    def test_empty_input(self):
        assert aggregate_findings([]) == []
