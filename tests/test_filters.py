"""Tests for the filter-expression parser."""

import pytest

from core.filters import KNOWN_OPERATORS, parse_filters


class TestParseFilters:

    def test_chained_segments(self):
        assert parse_filters("a(eq)=1&b(like)=x") == {"a(eq)": "1", "b(like)": "x"}

    @pytest.mark.parametrize("text", ["", None, "garbage", "a(eq)", "(eq)=1", "a1(eq)=1", "a(e q)=1"])
    def test_unparseable_input_yields_nothing(self, text):
        assert parse_filters(text) == {}

    def test_bad_segments_are_dropped_good_ones_kept(self):
        assert parse_filters("nonsense&description(eq)=Marketing&=x") == {"description(eq)": "Marketing"}

    def test_value_keeps_equals_signs_and_spaces(self):
        assert parse_filters("description(like)=a = b") == {"description(like)": "a = b"}

    def test_operator_is_not_checked(self):
        assert "between" not in KNOWN_OPERATORS
        assert parse_filters("id(between)=1") == {"id(between)": "1"}

    def test_later_duplicate_wins(self):
        assert parse_filters("id(gt)=1&id(gt)=5") == {"id(gt)": "5"}

    def test_surrounding_whitespace_is_ignored(self):
        assert parse_filters(" id(gt)=1 & label(ne)=x") == {"id(gt)": "1", "label(ne)": "x"}
