"""Tests for fit classification and the fit calculator."""

from dataclasses import FrozenInstanceError

import pytest

from fitcalc.core.errors import (
    InvalidDesignation,
    InvalidNumber,
    KindMismatch,
    NoTableEntry,
    OutOfRange,
    UnknownZone,
)
from fitcalc.core.knowledge.tolerance.fits import (
    FORMULAS,
    BasisSystem,
    FitCalculator,
    FitRequest,
    FitType,
    ZoneSortMode,
    classify_fit,
    classify_system,
    compute_limits,
    sort_zones,
)
from fitcalc.core.knowledge.tolerance.zones import Kind


class TestClassifyFit:
    @pytest.mark.parametrize(
        "smin, smax, expected",
        [
            (7, 41, FitType.CLEARANCE),
            (0, 34, FitType.CLEARANCE_ZERO),
            (-15, 19, FitType.TRANSITION),
            (-1, 1, FitType.TRANSITION),
            (-35, -1, FitType.INTERFERENCE),
            (-22, 0, FitType.INTERFERENCE_ZERO),
        ],
    )
    def test_fit_type(self, smin, smax, expected):
        assert classify_fit(smin, smax) is expected

    def test_boundary_members_collapse_to_family(self):
        assert FitType.CLEARANCE_ZERO.family is FitType.CLEARANCE
        assert FitType.INTERFERENCE_ZERO.family is FitType.INTERFERENCE
        assert FitType.TRANSITION.family is FitType.TRANSITION

    @pytest.mark.parametrize(
        "EI, es, expected",
        [
            (0, -7, BasisSystem.HOLE_BASIS),
            (0, 0, BasisSystem.HOLE_BASIS),
            (20, 0, BasisSystem.SHAFT_BASIS),
            (7, -7, BasisSystem.NON_STANDARD),
        ],
    )
    def test_basis_system(self, EI, es, expected):
        assert classify_system(EI, es) is expected


class TestComputeLimits:
    def test_h7_g6_at_25(self):
        result = compute_limits(25000, 21, 0, -7, -20, hole="H7", shaft="g6", bucket=6)
        assert result.limits.as_um() == {"Dmax": 25021, "Dmin": 25000, "dmax": 24993, "dmin": 24980}
        assert result.clearances.as_um() == {"Smax": 41, "Smin": 7}
        assert result.interferences.as_um() == {"Nmax": -7, "Nmin": -41}
        assert result.tolerances.as_um() == {"TD": 21, "Td": 13}
        assert result.fit_tolerances.as_um() == {"Ts": 34, "TN": 34}
        assert result.means.as_um() == {"Dm": 25011, "dm": 24986, "Em": 11, "em": -14, "Sm": 25, "Nm": -25}
        assert result.fit_type is FitType.CLEARANCE
        assert result.system is BasisSystem.HOLE_BASIS

    def test_mm_rendering(self):
        result = compute_limits(25000, 21, 0, -7, -20)
        assert result.deviations.as_mm() == {"ES": "0.021", "EI": "0.000", "es": "-0.007", "ei": "-0.020"}
        assert result.limits.as_mm()["dmin"] == "24.980"

    @pytest.mark.parametrize(
        "ES, EI, es, ei",
        [(21, 0, -7, -20), (21, 0, 15, 2), (21, 0, 35, 22), (-5, -17, 6, -6), (13, 0, 13, -1)],
    )
    def test_identities(self, ES, EI, es, ei):
        result = compute_limits(50000, ES, EI, es, ei)
        q = result.quantities_um()
        assert q["Nmax"] == -q["Smin"]
        assert q["Nmin"] == -q["Smax"]
        assert q["Ts"] == q["TN"] == q["TD"] + q["Td"]
        assert q["Nm"] == -q["Sm"]
        assert q["Dmax"] - q["Dmin"] == q["TD"]

    def test_zero_interference_boundary(self):
        result = compute_limits(25000, 13, 0, 35, 13)
        assert result.clearances.Smax == 0
        assert result.fit_type is FitType.INTERFERENCE_ZERO

    def test_result_is_immutable(self):
        result = compute_limits(25000, 21, 0, -7, -20)
        with pytest.raises(FrozenInstanceError):
            result.bucket = 7  # type: ignore[misc]

    def test_to_dict_has_both_units(self):
        data = compute_limits(25000, 21, 0, -7, -20, hole="H7", shaft="g6", bucket=6).to_dict()
        assert data["input"] == {"D": "25.000", "hole": "H7", "shaft": "g6"}
        assert data["bucket"] == 6
        assert data["clearances_um"] == {"Smax": 41, "Smin": 7}
        assert data["clearances_mm"] == {"Smax": "0.041", "Smin": "0.007"}
        assert data["classification"]["fit_type"] == "clearance"
        assert data["classification"]["system"] == "hole_basis"

    def test_every_quantity_has_a_formula(self):
        result = compute_limits(25000, 21, 0, -7, -20)
        assert set(result.quantities_um()) == set(FORMULAS)


class TestFitCalculator:
    def test_compute(self, small_index):
        result = FitCalculator(small_index).compute("25", "H7", "g6")
        assert result.bucket == 6
        assert result.deviations.as_um() == {"ES": 21, "EI": 0, "es": -7, "ei": -20}
        assert result.input.D == "25.000"

    def test_compute_request(self, small_index):
        result = FitCalculator(small_index).compute_request(FitRequest(D=25, hole="H7", shaft="k6"))
        assert result.fit_type is FitType.TRANSITION

    def test_sliding_and_press(self, small_index):
        calc = FitCalculator(small_index)
        assert calc.compute("25", "H7", "h6").fit_type is FitType.CLEARANCE_ZERO
        assert calc.compute("25", "H7", "p6").fit_type is FitType.INTERFERENCE
        assert calc.compute("25", "F8", "h7").system is BasisSystem.SHAFT_BASIS

    def test_designation_whitespace_and_leading_zero(self, small_index):
        result = FitCalculator(small_index).compute(" 25 ", " H07", "g6 ")
        assert (result.input.hole, result.input.shaft) == ("H7", "g6")

    @pytest.mark.parametrize(
        "D, hole, shaft, error",
        [
            ("25.0001", "h7", "G6", InvalidNumber),
            ("25", "H7x", "G6", InvalidDesignation),
            ("2000", "h7", "g6", KindMismatch),
            ("25", "H7", "G6", KindMismatch),
            ("2000", "H7", "g6", OutOfRange),
            ("0", "H7", "g6", OutOfRange),
            ("25", "Q7", "g6", UnknownZone),
            ("2000", "Q7", "g6", OutOfRange),
            ("25", "H9", "g6", NoTableEntry),
            ("25", "H7", "g9", NoTableEntry),
            ("25", "H7", "q6", UnknownZone),
        ],
    )
    def test_error_order(self, small_index, D, hole, shaft, error):
        with pytest.raises(error):
            FitCalculator(small_index).compute(D, hole, shaft)

    def test_unknown_zone_reported_before_missing_entry(self, small_index):
        with pytest.raises(UnknownZone):
            FitCalculator(small_index).compute("25", "H9", "q6")

    def test_deviation(self, small_index):
        assert tuple(FitCalculator(small_index).deviation("25", "js6")) == (6, -6)


class TestOptions:
    def test_zone_listing(self, small_index):
        options = FitCalculator(small_index).options("25")
        assert options.bucket == 6
        assert options.size_range == "(18, 30]"
        assert options.hole_zones == ["F", "H"]
        assert options.shaft_zones == ["g", "h", "js", "k", "p"]
        assert options.zones == ["F", "H", "g", "h", "js", "k", "p"]

    def test_lexical_mode(self, small_index):
        options = FitCalculator(small_index).options("25", ZoneSortMode.LEXICAL)
        assert options.zones == ["F", "g", "H", "h", "js", "k", "p"]

    def test_default_mode_from_calculator(self, small_index):
        options = FitCalculator(small_index, zone_sort="lexical").options("25")
        assert options.zones[:2] == ["F", "g"]

    def test_sort_zones(self):
        assert sort_zones(["g", "JS", "H", "CD", "C", "js"]) == ["C", "CD", "H", "JS", "g", "js"]

    def test_empty_bucket(self, small_index):
        options = FitCalculator(small_index).options("100")
        assert options.hole_zones == [] and options.shaft_zones == []

    def test_options_out_of_range(self, small_index):
        with pytest.raises(OutOfRange):
            FitCalculator(small_index).options("1000.5")

    def test_grades(self, small_index):
        calc = FitCalculator(small_index)
        assert calc.grades("25", "hole", "H").grades == ["01", "6", "7"]
        assert calc.grades("25", Kind.SHAFT, "p").grades == ["5", "6"]
        assert calc.grades("25", 1, "g").grades == ["6"]
        assert calc.grades("25", "shaft", "a").grades == []

    def test_grades_errors(self, small_index):
        calc = FitCalculator(small_index)
        with pytest.raises(KindMismatch):
            calc.grades("25", "hole", "h")
        with pytest.raises(InvalidDesignation):
            calc.grades("25", "hole", "Js")
        with pytest.raises(InvalidDesignation):
            calc.grades("25", "bolt", "H")
        with pytest.raises(UnknownZone):
            calc.grades("25", "hole", "Q")
