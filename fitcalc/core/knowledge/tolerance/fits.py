"""
ISO Fit Computation (ISO 286-1:2010 clause 3).

Given a nominal diameter and a hole/shaft designation pair, the engine
resolves the size bucket, looks up the signed limit deviations in the
reconciled reference index and derives every limit, mean, tolerance and
clearance/interference quantity in exact integer micrometres.

Notation (all values in um unless rendered as mm strings):
- ES, EI: upper/lower deviation of the hole
- es, ei: upper/lower deviation of the shaft
- Dmax, Dmin, dmax, dmin: limit sizes of hole and shaft
- Smax, Smin / Nmax, Nmin: clearance / interference extremes
- TD, Td: hole and shaft tolerance; Ts, TN: fit tolerance

Reference:
- ISO 286-1:2010 - Basis of tolerances, deviations and fits
- GB/T 1800.1-2020 (Chinese equivalent)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from fitcalc.core.errors import InvalidDesignation, KindMismatch, NoTableEntry, UnknownZone

from .designation import Designation, expect_kind, parse_designation
from .fixed_point import NumberLike, mean_half_away_from_zero, mm_to_um, um_to_mm_str
from .reference_index import DeviationPair, ReferenceIndex
from .size_ranges import get_size_range, resolve_bucket_um
from .zones import Kind, kind_of_letter

logger = logging.getLogger(__name__)


class FitType(str, Enum):
    """Classification of fits by clearance/interference."""

    CLEARANCE = "clearance"  # Smin > 0
    CLEARANCE_ZERO = "clearance_zero"  # Smin == 0, sliding boundary
    TRANSITION = "transition"
    INTERFERENCE = "interference"  # Smax < 0
    INTERFERENCE_ZERO = "interference_zero"  # Smax == 0, light press boundary

    @property
    def family(self) -> "FitType":
        """Collapse the boundary members onto the three classic fit types."""
        if self is FitType.CLEARANCE_ZERO:
            return FitType.CLEARANCE
        if self is FitType.INTERFERENCE_ZERO:
            return FitType.INTERFERENCE
        return self

    @property
    def description(self) -> str:
        return FIT_TYPE_DESCRIPTIONS[self]


class BasisSystem(str, Enum):
    """Fit system implied by the zero-line zone."""

    HOLE_BASIS = "hole_basis"  # EI == 0 (H hole)
    SHAFT_BASIS = "shaft_basis"  # es == 0 (h shaft)
    NON_STANDARD = "non_standard"  # neither zone sits on the zero line

    @property
    def description(self) -> str:
        return BASIS_DESCRIPTIONS[self]


FIT_TYPE_DESCRIPTIONS: Dict[FitType, str] = {
    FitType.CLEARANCE: "clearance fit",
    FitType.CLEARANCE_ZERO: "sliding fit (zero minimum clearance)",
    FitType.TRANSITION: "transition fit",
    FitType.INTERFERENCE: "interference fit",
    FitType.INTERFERENCE_ZERO: "light press fit (zero maximum clearance)",
}

BASIS_DESCRIPTIONS: Dict[BasisSystem, str] = {
    BasisSystem.HOLE_BASIS: "hole-basis system (EI=0)",
    BasisSystem.SHAFT_BASIS: "shaft-basis system (es=0)",
    BasisSystem.NON_STANDARD: "non-standard (neither H nor h)",
}


class ZoneSortMode(str, Enum):
    """Ordering of zone letters in option listings."""

    UPPER_FIRST = "upper_first"  # holes before shafts, then lexical
    LEXICAL = "lexical"  # case-insensitive lexical


# Textual formula per quantity, shown next to values on request
FORMULAS: Dict[str, str] = {
    "ES": "Dmax - D",
    "EI": "Dmin - D",
    "es": "dmax - D",
    "ei": "dmin - D",
    "Dmax": "D + ES",
    "Dmin": "D + EI",
    "dmax": "D + es",
    "dmin": "D + ei",
    "Em": "(ES + EI) / 2",
    "em": "(es + ei) / 2",
    "Dm": "D + Em = (Dmax + Dmin) / 2",
    "dm": "D + em = (dmax + dmin) / 2",
    "Sm": "Dm - dm = Em - em = (Smax + Smin) / 2",
    "Nm": "dm - Dm = em - Em = (Nmax + Nmin) / 2",
    "TD": "Dmax - Dmin = ES - EI",
    "Td": "dmax - dmin = es - ei",
    "Ts": "Smax - Smin = TD + Td",
    "TN": "Nmax - Nmin = TD + Td",
    "Smax": "Dmax - dmin = ES - ei",
    "Smin": "Dmin - dmax = EI - es",
    "Nmax": "dmax - Dmin = es - EI = -Smin",
    "Nmin": "dmin - Dmax = ei - ES = -Smax",
}


def classify_fit(Smin: int, Smax: int) -> FitType:
    """
    Classify a fit from its clearance extremes.

    Example:
        >>> classify_fit(7, 41)
        <FitType.CLEARANCE: 'clearance'>
        >>> classify_fit(-15, 19)
        <FitType.TRANSITION: 'transition'>
    """
    if Smin >= 0:
        return FitType.CLEARANCE_ZERO if Smin == 0 else FitType.CLEARANCE
    if Smax <= 0:
        return FitType.INTERFERENCE_ZERO if Smax == 0 else FitType.INTERFERENCE
    return FitType.TRANSITION


def classify_system(EI: int, es: int) -> BasisSystem:
    if EI == 0:
        return BasisSystem.HOLE_BASIS
    if es == 0:
        return BasisSystem.SHAFT_BASIS
    return BasisSystem.NON_STANDARD


# ---------------------------------------------------------------------------
# Result record
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _Quantities:
    """Group of integer-micrometre quantities rendered in both units."""

    def as_um(self) -> Dict[str, int]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def as_mm(self) -> Dict[str, str]:
        return {name: um_to_mm_str(value) for name, value in self.as_um().items()}


@dataclass(frozen=True)
class Deviations(_Quantities):
    ES: int
    EI: int
    es: int
    ei: int


@dataclass(frozen=True)
class Limits(_Quantities):
    Dmax: int
    Dmin: int
    dmax: int
    dmin: int


@dataclass(frozen=True)
class Means(_Quantities):
    Dm: int
    dm: int
    Em: int
    em: int
    Sm: int
    Nm: int


@dataclass(frozen=True)
class Tolerances(_Quantities):
    TD: int
    Td: int


@dataclass(frozen=True)
class FitTolerances(_Quantities):
    Ts: int
    TN: int


@dataclass(frozen=True)
class Clearances(_Quantities):
    Smax: int
    Smin: int


@dataclass(frozen=True)
class Interferences(_Quantities):
    Nmax: int
    Nmin: int


@dataclass(frozen=True)
class Classification:
    fit_type: FitType
    system: BasisSystem

    def to_dict(self) -> Dict[str, str]:
        return {
            "fit_type": self.fit_type.value,
            "fit_type_description": self.fit_type.description,
            "system": self.system.value,
            "system_description": self.system.description,
        }


@dataclass(frozen=True)
class FitRequest:
    """One fit computation request; D is kept as given."""

    D: NumberLike
    hole: str
    shaft: str


@dataclass(frozen=True)
class FitInput:
    """Echo of a validated request."""

    diameter_um: int
    hole: str
    shaft: str

    @property
    def D(self) -> str:
        return um_to_mm_str(self.diameter_um)

    def to_dict(self) -> Dict[str, Any]:
        return {"D": self.D, "hole": self.hole, "shaft": self.shaft}


# Result groups in output order
RESULT_GROUPS = (
    "deviations",
    "limits",
    "means",
    "tolerances",
    "fit_tolerances",
    "clearances",
    "interferences",
)


@dataclass(frozen=True)
class FitResult:
    """Complete, immutable result of one fit computation."""

    input: FitInput
    bucket: int
    deviations: Deviations
    limits: Limits
    means: Means
    tolerances: Tolerances
    fit_tolerances: FitTolerances
    clearances: Clearances
    interferences: Interferences
    classification: Classification

    @property
    def fit_type(self) -> FitType:
        return self.classification.fit_type

    @property
    def system(self) -> BasisSystem:
        return self.classification.system

    def quantities_um(self) -> Dict[str, int]:
        """All numeric quantities in one flat micrometre mapping."""
        merged: Dict[str, int] = {}
        for name in RESULT_GROUPS:
            merged.update(getattr(self, name).as_um())
        return merged

    def quantities_mm(self) -> Dict[str, str]:
        return {name: um_to_mm_str(value) for name, value in self.quantities_um().items()}

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"input": self.input.to_dict(), "bucket": self.bucket}
        for name in RESULT_GROUPS:
            group = getattr(self, name)
            data[f"{name}_um"] = group.as_um()
            data[f"{name}_mm"] = group.as_mm()
        data["classification"] = self.classification.to_dict()
        return data


def compute_limits(
    diameter_um: int,
    ES: int,
    EI: int,
    es: int,
    ei: int,
    *,
    hole: str = "",
    shaft: str = "",
    bucket: int = 0,
) -> FitResult:
    """
    Derive every fit quantity from a nominal size and four deviations.

    Pure integer arithmetic; mean deviations round half away from zero.

    Example:
        >>> result = compute_limits(25000, 21, 0, -7, -20)
        >>> result.clearances.Smax, result.clearances.Smin
        (41, 7)
    """
    Dmax = diameter_um + ES
    Dmin = diameter_um + EI
    dmax = diameter_um + es
    dmin = diameter_um + ei

    Smax = Dmax - dmin
    Smin = Dmin - dmax
    Nmax = dmax - Dmin
    Nmin = dmin - Dmax

    Em = mean_half_away_from_zero(ES + EI)
    em = mean_half_away_from_zero(es + ei)
    Sm = Em - em

    return FitResult(
        input=FitInput(diameter_um=diameter_um, hole=hole, shaft=shaft),
        bucket=bucket,
        deviations=Deviations(ES=ES, EI=EI, es=es, ei=ei),
        limits=Limits(Dmax=Dmax, Dmin=Dmin, dmax=dmax, dmin=dmin),
        means=Means(Dm=diameter_um + Em, dm=diameter_um + em, Em=Em, em=em, Sm=Sm, Nm=-Sm),
        tolerances=Tolerances(TD=ES - EI, Td=es - ei),
        fit_tolerances=FitTolerances(Ts=Smax - Smin, TN=Nmax - Nmin),
        clearances=Clearances(Smax=Smax, Smin=Smin),
        interferences=Interferences(Nmax=Nmax, Nmin=Nmin),
        classification=Classification(
            fit_type=classify_fit(Smin, Smax),
            system=classify_system(EI, es),
        ),
    )


# ---------------------------------------------------------------------------
# Option listings
# ---------------------------------------------------------------------------


def sort_zones(letters: List[str], mode: Union[ZoneSortMode, str] = ZoneSortMode.UPPER_FIRST) -> List[str]:
    mode = ZoneSortMode(mode)
    if mode is ZoneSortMode.LEXICAL:
        return sorted(set(letters), key=lambda z: (z.lower(), z))
    return sorted(set(letters), key=lambda z: (not z.isupper(), z))


@dataclass(frozen=True)
class ZoneOptions:
    bucket: int
    size_range: str
    hole_zones: List[str]
    shaft_zones: List[str]
    zones: List[str]  # both kinds, in listing order

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bucket": self.bucket,
            "size_range": self.size_range,
            "hole_zones": list(self.hole_zones),
            "shaft_zones": list(self.shaft_zones),
            "zones": list(self.zones),
        }


@dataclass(frozen=True)
class GradeOptions:
    bucket: int
    kind: Kind
    zone: str
    grades: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bucket": self.bucket,
            "kind": self.kind.value,
            "zone": self.zone,
            "grades": list(self.grades),
        }


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class FitCalculator:
    """
    Fit computation engine over an injected, read-only reference index.

    Instances hold no mutable state, so one calculator may serve any number
    of concurrent callers.
    """

    def __init__(
        self,
        index: ReferenceIndex,
        zone_sort: Union[ZoneSortMode, str] = ZoneSortMode.UPPER_FIRST,
    ):
        self.index = index
        self.zone_sort = ZoneSortMode(zone_sort)

    def compute(self, D: NumberLike, hole: str, shaft: str) -> FitResult:
        """
        Compute limits and fit for one hole/shaft pair.

        Validation runs in a fixed order: diameter grammar, designation
        shape, designation case, size range, zone letters, table entries.

        Raises:
            InvalidNumber, InvalidDesignation, KindMismatch, OutOfRange,
            UnknownZone, NoTableEntry
        """
        diameter_um = mm_to_um(D)
        hole_des = parse_designation(hole)
        shaft_des = parse_designation(shaft)
        expect_kind(hole_des, Kind.HOLE, "hole")
        expect_kind(shaft_des, Kind.SHAFT, "shaft")

        bucket = resolve_bucket_um(diameter_um, self.index.size_ranges)

        hole_code = self._zone_code(hole_des)
        shaft_code = self._zone_code(shaft_des)
        hole_dev = self._lookup(hole_des, hole_code, bucket)
        shaft_dev = self._lookup(shaft_des, shaft_code, bucket)

        result = compute_limits(
            diameter_um,
            hole_dev.upper,
            hole_dev.lower,
            shaft_dev.upper,
            shaft_dev.lower,
            hole=hole_des.label,
            shaft=shaft_des.label,
            bucket=bucket,
        )
        logger.debug(
            "Computed %s/%s at D=%s",
            hole_des.label,
            shaft_des.label,
            result.input.D,
            extra={"bucket": bucket, "fit_type": result.fit_type.value},
        )
        return result

    def compute_request(self, request: FitRequest) -> FitResult:
        return self.compute(request.D, request.hole, request.shaft)

    def deviation(self, D: NumberLike, designation: str) -> DeviationPair:
        """Look up the (upper, lower) pair of a single designation at D."""
        diameter_um = mm_to_um(D)
        parsed = parse_designation(designation)
        bucket = resolve_bucket_um(diameter_um, self.index.size_ranges)
        return self._lookup(parsed, self._zone_code(parsed), bucket)

    def options(self, D: NumberLike, mode: Optional[Union[ZoneSortMode, str]] = None) -> ZoneOptions:
        """List the hole and shaft zones the index defines at D's bucket."""
        bucket = resolve_bucket_um(mm_to_um(D), self.index.size_ranges)
        sort_mode = ZoneSortMode(mode) if mode is not None else self.zone_sort
        holes = self.index.zone_letters(Kind.HOLE, bucket)
        shafts = self.index.zone_letters(Kind.SHAFT, bucket)
        return ZoneOptions(
            bucket=bucket,
            size_range=get_size_range(bucket, self.index.size_ranges).label,
            hole_zones=sort_zones(holes, sort_mode),
            shaft_zones=sort_zones(shafts, sort_mode),
            zones=sort_zones(holes + shafts, sort_mode),
        )

    def grades(self, D: NumberLike, kind: Union[Kind, str, int], zone: str) -> GradeOptions:
        """List grades defined for a zone at D's bucket, "01" first."""
        diameter_um = mm_to_um(D)
        try:
            expected = Kind.from_raw(kind)
        except (TypeError, ValueError) as exc:
            raise InvalidDesignation(f"Unknown kind {kind!r}.", {"kind": str(kind)}) from exc
        letter = str(zone).strip()
        actual = kind_of_letter(letter)
        if actual is None or len(letter) > 2:
            raise InvalidDesignation(f'Invalid zone "{zone}".', {"zone": str(zone)})
        if actual is not expected:
            case = "uppercase" if expected is Kind.HOLE else "lowercase"
            raise KindMismatch(
                f'"{letter}" must be a {expected.value} zone ({case}).',
                {"field": "zone", "value": letter},
            )
        bucket = resolve_bucket_um(diameter_um, self.index.size_ranges)
        code = self.index.zones.code(letter)
        if code is None:
            raise UnknownZone(f'Unknown {expected.value} zone "{letter}".', {"zone": letter})
        return GradeOptions(
            bucket=bucket,
            kind=expected,
            zone=letter,
            grades=self.index.grades_for(expected, bucket, code),
        )

    def _zone_code(self, designation: Designation) -> int:
        code = self.index.zones.code(designation.zone)
        if code is None:
            raise UnknownZone(
                f'Unknown {designation.kind.value} zone "{designation.zone}".',
                {"zone": designation.zone, "kind": designation.kind.value},
            )
        return code

    def _lookup(self, designation: Designation, zone_code: int, bucket: int) -> DeviationPair:
        pair = self.index.lookup(designation.kind, bucket, designation.grade, zone_code)
        if pair is None:
            raise NoTableEntry(
                f"No table entry for {designation.kind.value} {designation.label} at bucket {bucket}.",
                {
                    "kind": designation.kind.value,
                    "designation": designation.label,
                    "bucket": bucket,
                },
            )
        return pair


__all__ = [
    "FitType",
    "BasisSystem",
    "ZoneSortMode",
    "FORMULAS",
    "FIT_TYPE_DESCRIPTIONS",
    "BASIS_DESCRIPTIONS",
    "RESULT_GROUPS",
    "classify_fit",
    "classify_system",
    "Deviations",
    "Limits",
    "Means",
    "Tolerances",
    "FitTolerances",
    "Clearances",
    "Interferences",
    "Classification",
    "FitRequest",
    "FitInput",
    "FitResult",
    "compute_limits",
    "sort_zones",
    "ZoneOptions",
    "GradeOptions",
    "FitCalculator",
]
