"""Tests for ordering helpers"""

from functools import cmp_to_key

import pytest

from vulnissues.compare import (
    capitalize,
    compare_severity,
    compare_text,
    compare_text_array,
    compare_version,
    compare_version_array,
    normalize_four_part_version,
    parse_version,
    sort_versions,
    uniq,
)


class TestCompareText:
    """Test case-insensitive text ordering"""

    def test_equal_ignoring_case(self):
        assert compare_text("aaa", "aaa") == 0
        assert compare_text("aaa", "AAA") == 0

    def test_ascending(self):
        assert compare_text("aaa", "bbb") == -1
        assert compare_text("bbb", "aaa") == 1

    def test_text_arrays_compare_concatenation(self):
        assert compare_text_array(["a", "b", "c"], ["a", "b", "c"]) == 0
        assert compare_text_array(["c", "b", "a"], ["a", "b", "c"]) == compare_text("cba", "abc")
        assert compare_text_array(["a", "b", "c"], ["c", "b", "a"]) == compare_text("abc", "cba")
        assert compare_text_array(["aaa"], ["AAA"]) == 0


class TestCompareSeverity:
    """Test severity ordering"""

    LEVELS = ["critical", "high", "medium", "low"]

    @pytest.mark.parametrize("index_a", range(4))
    @pytest.mark.parametrize("index_b", range(4))
    def test_known_levels(self, index_a, index_b):
        expected = (index_a > index_b) - (index_a < index_b)
        assert compare_severity(self.LEVELS[index_a], self.LEVELS[index_b]) == expected

    def test_two_unknown_levels_are_equal(self):
        assert compare_severity("unknown", "bogus") == 0

    def test_unknown_sorts_after_known(self):
        assert compare_severity("unknown", "low") == 1
        assert compare_severity("critical", "unknown") == -1

    def test_sorting_puts_critical_first(self):
        ordered = sorted(["low", "critical", "bogus", "medium", "high"], key=cmp_to_key(compare_severity))
        assert ordered == ["critical", "high", "medium", "low", "bogus"]


class TestCompareVersion:
    """Test semantic version ordering, highest first"""

    def test_basic_ordering(self):
        assert compare_version("1.2.3", "1.2.3") == 0
        assert compare_version("1.2.3", "1.2.4") == 1
        assert compare_version("1.2.4", "1.2.3") == -1

    def test_numeric_not_lexical(self):
        assert compare_version("1.10.0", "1.9.0") == -1

    def test_four_part_version_is_prerelease(self):
        assert normalize_four_part_version("1.2.3.4") == "1.2.3-4"
        assert normalize_four_part_version("1.2.3") == "1.2.3"
        # 1.2.3.4 reads as 1.2.3-4, which is lower than 1.2.3
        assert compare_version("1.2.3", "1.2.3.4") == -1
        assert compare_version("1.2.3.4", "1.2.3.5") == 1

    def test_loose_versions_are_coerced(self):
        assert str(parse_version("v1.2.3")) == "1.2.3"
        assert str(parse_version("1.2")) == "1.2.0"
        assert compare_version("1.2", "1.2.0") == 0

    def test_unparseable_versions_fall_back_to_text(self):
        assert parse_version("latest") is None
        assert compare_version("latest", "latest") == 0
        assert compare_version("latest", "next") == -compare_version("next", "latest")
        assert compare_version("latest", "next") != 0

    def test_sort_versions_highest_first(self):
        assert sort_versions(["1.0.0", "2.0.0", "1.10.0"]) == ["2.0.0", "1.10.0", "1.0.0"]


class TestCompareVersionArray:
    """Test version list ordering"""

    def test_single_versions(self):
        assert compare_version_array(["1.2.3"], ["1.2.3"]) == 0
        assert compare_version_array(["1.2.3"], ["1.2.4"]) == compare_version("1.2.3", "1.2.4")
        assert compare_version_array(["1.2.4"], ["1.2.3"]) == compare_version("1.2.4", "1.2.3")

    def test_lists_are_sorted_before_comparing(self):
        assert compare_version_array(["1.2.3", "2.0.0"], ["1.2.3"]) == compare_version("2.0.0", "1.2.3")
        assert compare_version_array(["2.0.0", "1.2.3"], ["1.2.3"]) == compare_version("2.0.0", "1.2.3")
        assert compare_version_array(["1.2.3"], ["1.2.3", "2.0.0"]) == compare_version("1.2.3", "2.0.0")
        assert compare_version_array(["1.2.3"], ["2.0.0", "1.2.3"]) == compare_version("1.2.3", "2.0.0")

    def test_only_shared_prefix_is_compared(self):
        assert compare_version_array(["1.2.3"], ["1.2.3", "1.0.0"]) == 0
        assert compare_version_array([], ["1.0.0"]) == 0


class TestHelpers:
    """Test capitalize and uniq"""

    @pytest.mark.parametrize("value", [None, 42, {}, []])
    def test_capitalize_non_string(self, value):
        assert capitalize(value) == ""

    def test_capitalize_string(self):
        assert capitalize("peter pan") == "Peter pan"
        assert capitalize("") == ""

    def test_uniq_keeps_first_seen_order(self):
        assert uniq([]) == []
        assert uniq([1, 2, 3, 2]) == [1, 2, 3]
        assert uniq(["b", "a", "b"]) == ["b", "a"]
