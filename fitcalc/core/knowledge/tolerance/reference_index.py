"""
Reconciled ISO 286 limit-deviation table.

The index maps ``kind -> bucket -> grade -> zone code -> (upper, lower)`` in
integer micrometres. It is built once (by reconciliation or by loading a
persisted artifact) and is read-only afterwards, so any number of engine
calls may share it without locking.

Persisted form (JSON):
    {
        "format": "fitcalc.reference-index/1",
        "units": "um",
        "size_ranges": [["0.000", "1.000", 1], ...],
        "grades": ["01", "0", "1", ...],
        "zones": [[1, "A"], ...],
        "rows": [[kind, bucket, grade, zone_code, [upper, lower]], ...],
        "index": {"hole": {"6": {"7": {"11": [21, 0]}}}, ...}
    }
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from fitcalc.core.errors import MalformedReferenceDataset

from .grades import GRADE_LABELS, grade_sort_key, normalize_grade, sort_grades
from .size_ranges import SIZE_RANGES, SizeRange, ranges_from_rows
from .zones import DEFAULT_ZONE_TABLE, Kind, ZoneTable

logger = logging.getLogger(__name__)

INDEX_FORMAT = "fitcalc.reference-index/1"


class DeviationPair(NamedTuple):
    upper: int
    lower: int

    @property
    def tolerance(self) -> int:
        return self.upper - self.lower


@dataclass(frozen=True)
class ReferenceRow:
    """One reconciled row; deviations are None only for kept empty rows."""

    kind: Kind
    bucket: int
    grade: str
    zone_code: int
    upper: Optional[int]
    lower: Optional[int]

    @property
    def key(self) -> Tuple[Kind, int, str, int]:
        return (self.kind, self.bucket, self.grade, self.zone_code)

    @property
    def is_empty(self) -> bool:
        return self.upper is None or self.lower is None

    def to_list(self) -> List[Any]:
        return [
            self.kind.raw_code,
            self.bucket,
            self.grade,
            self.zone_code,
            [self.upper, self.lower],
        ]

    @classmethod
    def from_list(cls, row: Sequence[Any]) -> "ReferenceRow":
        try:
            kind, bucket, grade, zone_code, dev = row
            grade_label = normalize_grade(grade)
            if grade_label is None:
                raise ValueError(f"unknown grade {grade!r}")
            upper, lower = dev
            return cls(
                kind=Kind.from_raw(kind),
                bucket=int(bucket),
                grade=grade_label,
                zone_code=int(zone_code),
                upper=None if upper is None else int(upper),
                lower=None if lower is None else int(lower),
            )
        except (TypeError, ValueError) as exc:
            raise MalformedReferenceDataset(f"invalid index row {row!r}: {exc}") from exc


def _freeze(value: Any) -> Any:
    if isinstance(value, dict):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    return value


def _row_sort_key(row: ReferenceRow) -> Tuple[int, int, float, int]:
    return (row.kind.raw_code, row.bucket, grade_sort_key(row.grade), row.zone_code)


class ReferenceIndex:
    """Immutable lookup table of signed limit deviations."""

    __slots__ = ("_rows", "_index", "_grades_by_zone", "_size_ranges", "_zones", "_grades")

    def __init__(
        self,
        rows: Iterable[ReferenceRow],
        size_ranges: Sequence[SizeRange] = SIZE_RANGES,
        zones: ZoneTable = DEFAULT_ZONE_TABLE,
        grades: Sequence[str] = GRADE_LABELS,
    ):
        self._size_ranges: Tuple[SizeRange, ...] = tuple(size_ranges)
        self._zones = zones
        self._grades: Tuple[str, ...] = tuple(grades)

        ordered = sorted(rows, key=_row_sort_key)
        index: Dict[Kind, Dict[int, Dict[str, Dict[int, DeviationPair]]]] = {}
        grades_by_zone: Dict[Tuple[Kind, int, int], List[str]] = {}
        seen = set()
        for row in ordered:
            if row.key in seen:
                raise MalformedReferenceDataset(
                    f"duplicate index key {row.kind.value}/{row.bucket}/{row.grade}/{row.zone_code}"
                )
            seen.add(row.key)
            if row.is_empty:
                continue
            by_bucket = index.setdefault(row.kind, {})
            by_grade = by_bucket.setdefault(row.bucket, {})
            by_zone = by_grade.setdefault(row.grade, {})
            by_zone[row.zone_code] = DeviationPair(row.upper, row.lower)  # type: ignore[arg-type]
            grades_by_zone.setdefault((row.kind, row.bucket, row.zone_code), []).append(row.grade)

        self._rows: Tuple[ReferenceRow, ...] = tuple(ordered)
        self._index: Mapping[Kind, Mapping[int, Mapping[str, Mapping[int, DeviationPair]]]] = _freeze(index)
        self._grades_by_zone: Mapping[Tuple[Kind, int, int], Tuple[str, ...]] = MappingProxyType(
            {key: tuple(sort_grades(values)) for key, values in grades_by_zone.items()}
        )

    @property
    def size_ranges(self) -> Tuple[SizeRange, ...]:
        return self._size_ranges

    @property
    def zones(self) -> ZoneTable:
        return self._zones

    @property
    def grades(self) -> Tuple[str, ...]:
        return self._grades

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def lookup(self, kind: Kind, bucket: int, grade: str, zone_code: int) -> Optional[DeviationPair]:
        """Return the (upper, lower) pair for an exact key, or None."""
        return (
            self._index.get(kind, {})
            .get(bucket, {})
            .get(grade, {})
            .get(zone_code)
        )

    def zone_codes(self, kind: Kind, bucket: int) -> List[int]:
        """Zone codes having at least one grade at this bucket."""
        return sorted(
            code
            for (k, b, code) in self._grades_by_zone
            if k is kind and b == bucket
        )

    def zone_letters(self, kind: Kind, bucket: int) -> List[str]:
        letters = []
        for code in self.zone_codes(kind, bucket):
            letter = self.zones.letter(code)
            if letter:
                letters.append(letter)
        return letters

    def grades_for(self, kind: Kind, bucket: int, zone_code: int) -> List[str]:
        return list(self._grades_by_zone.get((kind, bucket, zone_code), ()))

    @property
    def rows(self) -> Tuple[ReferenceRow, ...]:
        return self._rows

    def entries(self) -> Iterator[Tuple[Kind, int, str, int, DeviationPair]]:
        for kind, by_bucket in self._index.items():
            for bucket, by_grade in by_bucket.items():
                for grade, by_zone in by_grade.items():
                    for zone_code, pair in by_zone.items():
                        yield kind, bucket, grade, zone_code, pair

    def __len__(self) -> int:
        return sum(1 for _ in self.entries())

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def nested(self) -> Dict[str, Dict[str, Dict[str, Dict[str, List[int]]]]]:
        """Plain nested dict with string keys (JSON form of the index)."""
        result: Dict[str, Dict[str, Dict[str, Dict[str, List[int]]]]] = {}
        for kind, bucket, grade, zone_code, pair in self.entries():
            (
                result.setdefault(kind.value, {})
                .setdefault(str(bucket), {})
                .setdefault(grade, {})
            )[str(zone_code)] = [pair.upper, pair.lower]
        return result

    def to_dict(self) -> Dict[str, Any]:
        return {
            "format": INDEX_FORMAT,
            "units": "um",
            "size_ranges": [r.to_list() for r in self.size_ranges],
            "grades": list(self.grades),
            "zones": self.zones.to_pairs(),
            "rows": [row.to_list() for row in self._rows],
            "index": self.nested(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReferenceIndex":
        if not isinstance(data, dict):
            raise MalformedReferenceDataset("reference index root must be a JSON object")
        size_ranges = ranges_from_rows(data["size_ranges"]) if data.get("size_ranges") else SIZE_RANGES
        zones = ZoneTable.from_pairs(data["zones"]) if data.get("zones") else DEFAULT_ZONE_TABLE
        grades = data.get("grades") or GRADE_LABELS
        if "rows" in data:
            rows = [ReferenceRow.from_list(row) for row in data["rows"]]
        elif "index" in data:
            rows = list(_rows_from_nested(data["index"]))
        else:
            raise MalformedReferenceDataset("reference index has neither 'rows' nor 'index'")
        return cls(rows, size_ranges=size_ranges, zones=zones, grades=grades)

    def save(self, path: Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_dict(), ensure_ascii=False), encoding="utf-8")
        logger.info("Reference index written to %s", path, extra={"rows": len(self._rows)})

    @classmethod
    def load(cls, path: Path) -> "ReferenceIndex":
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise MalformedReferenceDataset(f"cannot read reference index {path}: {exc}") from exc
        index = cls.from_dict(data)
        logger.info("Reference index loaded from %s", path, extra={"rows": len(index.rows)})
        return index


def _rows_from_nested(nested: Dict[str, Any]) -> Iterator[ReferenceRow]:
    for kind_key, by_bucket in nested.items():
        for bucket, by_grade in by_bucket.items():
            for grade, by_zone in by_grade.items():
                for zone_code, dev in by_zone.items():
                    yield ReferenceRow.from_list([kind_key, bucket, grade, zone_code, dev])


__all__ = [
    "INDEX_FORMAT",
    "DeviationPair",
    "ReferenceRow",
    "ReferenceIndex",
]
