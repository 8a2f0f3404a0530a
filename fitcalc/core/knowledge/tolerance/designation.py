"""Tolerance-class designations such as ``H7``, ``g6``, ``JS01`` or ``js6``."""

import re
from dataclasses import dataclass

from fitcalc.core.errors import InvalidDesignation, KindMismatch

from .grades import normalize_grade
from .zones import Kind, kind_of_letter

_DESIGNATION_PATTERN = re.compile(r"^([A-Za-z]{1,2})(\d{1,2})$")


@dataclass(frozen=True)
class Designation:
    zone: str  # e.g. "H", "g", "JS"
    grade: str  # grade label, e.g. "7" or "01"
    kind: Kind

    @property
    def label(self) -> str:
        return f"{self.zone}{self.grade}"


def parse_designation(text: str) -> Designation:
    """
    Split a designation into zone letters, grade label and kind.

    Upper-case letters denote a hole, lower-case a shaft; mixed case ("Js7")
    and a zero grade are rejected. The special grade "01" is kept as is.

    Example:
        >>> parse_designation("H7")
        Designation(zone='H', grade='7', kind=<Kind.HOLE: 'hole'>)
    """
    if not isinstance(text, str):
        raise InvalidDesignation(
            "Designation must be a string like H7 or g6.", {"value": repr(text)}
        )
    match = _DESIGNATION_PATTERN.match(text.strip())
    if match is None:
        raise InvalidDesignation(
            f'Invalid designation: "{text}". Expected e.g. H7, g6, JS7, js6',
            {"value": text},
        )
    zone, digits = match.group(1), match.group(2)
    kind = kind_of_letter(zone)
    if kind is None:
        raise InvalidDesignation(
            f'Invalid designation: "{text}". Zone letters must share one case.',
            {"value": text},
        )
    grade = normalize_grade(digits)
    if grade is None or grade == "0":
        raise InvalidDesignation(f'Invalid grade in "{text}".', {"value": text})
    return Designation(zone=zone, grade=grade, kind=kind)


def expect_kind(designation: Designation, kind: Kind, field: str) -> Designation:
    """Reject a designation whose case does not match the field it came from."""
    if designation.kind is not kind:
        case = "uppercase" if kind is Kind.HOLE else "lowercase"
        raise KindMismatch(
            f'"{designation.label}" must be a {kind.value} designation ({case}).',
            {"field": field, "value": designation.label},
        )
    return designation


__all__ = ["Designation", "parse_designation", "expect_kind"]
