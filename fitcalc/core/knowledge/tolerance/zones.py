"""
Tolerance-Zone Letters and Codes (ISO 286-1:2010, fundamental deviations).

The reference dataset identifies zones by integer code. The authoritative
list of ``(code, letter)`` pairs is turned into two one-directional maps,
so a code is never confused with a letter.

Each zone also has an expected sign pattern for its (upper, lower)
deviations, used to score candidate rows during reconciliation.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from fitcalc.core.errors import MalformedReferenceDataset


class Kind(str, Enum):
    """Feature kind; case of the zone letter encodes it."""

    HOLE = "hole"
    SHAFT = "shaft"

    @property
    def raw_code(self) -> int:
        """Encoding used by the raw dataset (0 = hole, 1 = shaft)."""
        return 0 if self is Kind.HOLE else 1

    @classmethod
    def from_raw(cls, value: object) -> "Kind":
        if isinstance(value, Kind):
            return value
        if isinstance(value, str) and value.strip().lower() in ("hole", "shaft"):
            return cls(value.strip().lower())
        code = int(value)  # type: ignore[call-overload]
        if code == 0:
            return cls.HOLE
        if code == 1:
            return cls.SHAFT
        raise ValueError(f"unknown kind {value!r}")


HOLE_LETTERS: Tuple[str, ...] = (
    "A", "B", "C", "CD", "D", "E", "EF", "F", "FG", "G", "H",
    "J", "JS", "K", "M", "N", "P", "R", "S", "T", "U", "V",
    "X", "Y", "Z", "ZA", "ZB", "ZC",
)
SHAFT_LETTERS: Tuple[str, ...] = tuple(letter.lower() for letter in HOLE_LETTERS)

# Authoritative code list: holes 1..28, shafts 31..58
ZONE_CODES: Tuple[Tuple[int, str], ...] = tuple(
    [(i + 1, letter) for i, letter in enumerate(HOLE_LETTERS)]
    + [(i + 31, letter) for i, letter in enumerate(SHAFT_LETTERS)]
)


def kind_of_letter(letter: str) -> Optional[Kind]:
    """Upper-case letters are holes, lower-case are shafts, mixed is neither."""
    if not letter or not letter.isalpha():
        return None
    if letter.isupper():
        return Kind.HOLE
    if letter.islower():
        return Kind.SHAFT
    return None


@dataclass(frozen=True)
class ZoneTable:
    """Two one-way maps built from one ``(code, letter)`` source list."""

    letter_by_code: Mapping[int, str]
    code_by_letter: Mapping[str, int]

    @classmethod
    def from_pairs(cls, pairs: Iterable[Sequence[object]]) -> "ZoneTable":
        letter_by_code: Dict[int, str] = {}
        code_by_letter: Dict[str, int] = {}
        for idx, pair in enumerate(pairs):
            if not isinstance(pair, (list, tuple)) or len(pair) != 2:
                raise MalformedReferenceDataset(
                    f"zones[{idx}]: expected [code, letter], got {pair!r}"
                )
            raw_code, raw_letter = pair
            if isinstance(raw_code, bool) or not isinstance(raw_code, int):
                raise MalformedReferenceDataset(
                    f"zones[{idx}]: code must be an integer, got {raw_code!r}"
                )
            letter = str(raw_letter).strip()
            if kind_of_letter(letter) is None:
                raise MalformedReferenceDataset(
                    f"zones[{idx}]: letter must be all upper or all lower case, got {raw_letter!r}"
                )
            if raw_code in letter_by_code or letter in code_by_letter:
                raise MalformedReferenceDataset(
                    f"zones[{idx}]: duplicate code or letter ({raw_code}, {letter})"
                )
            letter_by_code[raw_code] = letter
            code_by_letter[letter] = raw_code
        return cls(
            letter_by_code=MappingProxyType(letter_by_code),
            code_by_letter=MappingProxyType(code_by_letter),
        )

    def letter(self, code: int) -> Optional[str]:
        return self.letter_by_code.get(code)

    def code(self, letter: str) -> Optional[int]:
        return self.code_by_letter.get(letter)

    def to_pairs(self) -> List[List[object]]:
        return [[code, letter] for code, letter in sorted(self.letter_by_code.items())]


DEFAULT_ZONE_TABLE = ZoneTable.from_pairs(ZONE_CODES)


# ---------------------------------------------------------------------------
# Expected sign patterns
# ---------------------------------------------------------------------------


class Sign(str, Enum):
    """Expected sign of a single deviation."""

    ANY = "any"
    ZERO = "zero"
    NON_NEGATIVE = "pos0"
    NON_POSITIVE = "neg0"

    def matches(self, value: Optional[int]) -> bool:
        if value is None:
            return False
        if self is Sign.ANY:
            return True
        if self is Sign.ZERO:
            return value == 0
        if self is Sign.NON_NEGATIVE:
            return value >= 0
        return value <= 0


@dataclass(frozen=True)
class SignPattern:
    upper: Sign
    lower: Sign
    # Which deviation the zero-basis zone pins at 0 ("upper" / "lower")
    pinned: Optional[str] = None


ANY_PATTERN = SignPattern(Sign.ANY, Sign.ANY)
_BOTH_NEG = SignPattern(Sign.NON_POSITIVE, Sign.NON_POSITIVE)
_BOTH_POS = SignPattern(Sign.NON_NEGATIVE, Sign.NON_NEGATIVE)
_STRADDLE = SignPattern(Sign.NON_NEGATIVE, Sign.NON_POSITIVE)
_HOLE_BASIS = SignPattern(Sign.NON_NEGATIVE, Sign.ZERO, pinned="lower")
_SHAFT_BASIS = SignPattern(Sign.ZERO, Sign.NON_POSITIVE, pinned="upper")


def _build_sign_patterns() -> Dict[Tuple[Kind, str], SignPattern]:
    """Convention the raw reference table was compiled with."""
    patterns: Dict[Tuple[Kind, str], SignPattern] = {}
    for letter in ("A", "B", "C", "D", "E", "F", "G"):
        patterns[(Kind.HOLE, letter)] = _BOTH_NEG
        patterns[(Kind.SHAFT, letter.lower())] = _BOTH_NEG
    for letter in ("K", "M", "N", "P", "R", "S", "T", "U"):
        patterns[(Kind.HOLE, letter)] = _BOTH_POS
    for letter in ("k", "m", "n", "p", "r", "s", "t", "u", "x", "y", "z"):
        patterns[(Kind.SHAFT, letter)] = _BOTH_POS
    patterns[(Kind.HOLE, "H")] = _HOLE_BASIS
    patterns[(Kind.SHAFT, "h")] = _SHAFT_BASIS
    patterns[(Kind.HOLE, "JS")] = _STRADDLE
    patterns[(Kind.SHAFT, "js")] = _STRADDLE
    # CD, EF, FG, J/j, V and ZA-ZC are left to ANY_PATTERN
    return patterns


def _build_iso_sign_patterns() -> Dict[Tuple[Kind, str], SignPattern]:
    """ISO 286-1 placement: holes A-G above the zero line, shafts a-g below."""
    patterns: Dict[Tuple[Kind, str], SignPattern] = {}
    for letter in ("A", "B", "C", "CD", "D", "E", "EF", "F", "FG", "G"):
        patterns[(Kind.HOLE, letter)] = _BOTH_POS
        patterns[(Kind.SHAFT, letter.lower())] = _BOTH_NEG
    patterns[(Kind.HOLE, "H")] = _HOLE_BASIS
    patterns[(Kind.SHAFT, "h")] = _SHAFT_BASIS
    for kind, letter in ((Kind.HOLE, "JS"), (Kind.SHAFT, "js"), (Kind.HOLE, "J"), (Kind.SHAFT, "j")):
        patterns[(kind, letter)] = _STRADDLE
    # K and M holes may reach above the line for fine grades
    patterns[(Kind.HOLE, "K")] = SignPattern(Sign.ANY, Sign.NON_POSITIVE)
    patterns[(Kind.HOLE, "M")] = SignPattern(Sign.ANY, Sign.NON_POSITIVE)
    for letter in ("N", "P", "R", "S", "T", "U", "V", "X", "Y", "Z", "ZA", "ZB", "ZC"):
        patterns[(Kind.HOLE, letter)] = _BOTH_NEG
    for letter in ("k", "m", "n", "p", "r", "s", "t", "u", "v", "x", "y", "z", "za", "zb", "zc"):
        patterns[(Kind.SHAFT, letter)] = _BOTH_POS
    return patterns


SIGN_PATTERNS: Mapping[Tuple[Kind, str], SignPattern] = MappingProxyType(_build_sign_patterns())
ISO_SIGN_PATTERNS: Mapping[Tuple[Kind, str], SignPattern] = MappingProxyType(_build_iso_sign_patterns())

# Selectable by name from settings and the offline reconcile script
SIGN_PATTERN_TABLES: Mapping[str, Mapping[Tuple[Kind, str], SignPattern]] = MappingProxyType(
    {"reference": SIGN_PATTERNS, "iso": ISO_SIGN_PATTERNS}
)


def expected_pattern(
    kind: Kind,
    letter: Optional[str],
    patterns: Mapping[Tuple[Kind, str], SignPattern] = SIGN_PATTERNS,
) -> SignPattern:
    """Expected sign pattern for a zone; unknown letters accept any sign."""
    if not letter:
        return ANY_PATTERN
    return patterns.get((kind, letter), ANY_PATTERN)


__all__ = [
    "Kind",
    "HOLE_LETTERS",
    "SHAFT_LETTERS",
    "ZONE_CODES",
    "ZoneTable",
    "DEFAULT_ZONE_TABLE",
    "kind_of_letter",
    "Sign",
    "SignPattern",
    "SIGN_PATTERNS",
    "ISO_SIGN_PATTERNS",
    "SIGN_PATTERN_TABLES",
    "expected_pattern",
]
