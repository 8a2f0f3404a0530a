"""Tests for tolerance-class designation parsing."""

import pytest

from fitcalc.core.errors import InvalidDesignation, KindMismatch
from fitcalc.core.knowledge.tolerance.designation import Designation, expect_kind, parse_designation
from fitcalc.core.knowledge.tolerance.grades import grade_sort_key, normalize_grade, sort_grades
from fitcalc.core.knowledge.tolerance.zones import Kind


class TestParseDesignation:
    @pytest.mark.parametrize(
        "text, zone, grade, kind",
        [
            ("H7", "H", "7", Kind.HOLE),
            ("g6", "g", "6", Kind.SHAFT),
            ("JS11", "JS", "11", Kind.HOLE),
            ("js6", "js", "6", Kind.SHAFT),
            ("  h7 ", "h", "7", Kind.SHAFT),
            ("H01", "H", "01", Kind.HOLE),
            ("h07", "h", "7", Kind.SHAFT),
            ("zc18", "zc", "18", Kind.SHAFT),
        ],
    )
    def test_valid(self, text, zone, grade, kind):
        assert parse_designation(text) == Designation(zone=zone, grade=grade, kind=kind)

    def test_label(self):
        assert parse_designation("JS7").label == "JS7"
        assert parse_designation("H01").label == "H01"

    @pytest.mark.parametrize(
        "text",
        ["", "H", "7", "7H", "H7x", "HJS7", "H123", "Js7", "jS7", "H-7", "H 7", "H0", "h00", "H19", "H99"],
    )
    def test_invalid(self, text):
        with pytest.raises(InvalidDesignation):
            parse_designation(text)

    def test_non_string_is_invalid(self):
        with pytest.raises(InvalidDesignation):
            parse_designation(7)  # type: ignore[arg-type]


class TestExpectKind:
    def test_matching_kind_passes(self):
        designation = parse_designation("H7")
        assert expect_kind(designation, Kind.HOLE, "hole") is designation

    def test_lowercase_in_hole_field(self):
        with pytest.raises(KindMismatch) as excinfo:
            expect_kind(parse_designation("h7"), Kind.HOLE, "hole")
        assert excinfo.value.context == {"field": "hole", "value": "h7"}

    def test_uppercase_in_shaft_field(self):
        with pytest.raises(KindMismatch):
            expect_kind(parse_designation("G6"), Kind.SHAFT, "shaft")


class TestGrades:
    def test_normalize(self):
        assert normalize_grade("IT7") == "7"
        assert normalize_grade("07") == "7"
        assert normalize_grade("01") == "01"
        assert normalize_grade(0) == "0"
        assert normalize_grade(18) == "18"
        assert normalize_grade("19") is None
        assert normalize_grade("x") is None
        assert normalize_grade(True) is None

    def test_finest_grade_sorts_before_zero(self):
        assert sort_grades(["7", "0", "01", "12", "6"]) == ["01", "0", "6", "7", "12"]
        assert grade_sort_key("01") < grade_sort_key("0")
