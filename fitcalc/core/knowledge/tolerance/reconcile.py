"""
Reference-table reconciliation.

Turns the raw ISO 286 limit-deviation dataset into a :class:`ReferenceIndex`.
The raw dataset carries four collections:

    size_ranges  [[low_mm, high_mm, code], ...]
    grades       ["01", "0", "1", ...]   or {"<id>": "<label>", ...}
    zones        [[code, letter], ...]   or {"<code>": "<letter>", ...}
    variations   [[kind, bucket, grade, zone_code, [upper, lower]], ...]

Steps, in order:
1. shape check (malformed rows are counted and dropped),
2. registered correction rules (e.g. shaft rows filed under hole letter "M"),
3. unknown zone codes dropped,
4. completeness filter (empty deviation cells, configurable),
5. consistency scoring and duplicate resolution per key,
6. inverted pairs (upper < lower) dropped,
7. index construction.

A dataset missing any collection aborts the whole run.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import asdict, dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from fitcalc.core.errors import MalformedReferenceDataset

from .grades import GRADE_LABELS, normalize_grade
from .reference_index import ReferenceIndex, ReferenceRow
from .size_ranges import ranges_from_rows
from .zones import SIGN_PATTERN_TABLES, SIGN_PATTERNS, Kind, SignPattern, ZoneTable, expected_pattern

logger = logging.getLogger(__name__)

REQUIRED_COLLECTIONS: Tuple[str, ...] = ("size_ranges", "grades", "zones", "variations")

EMPTY_SCORE = -math.inf


class TieBreak(str, Enum):
    """What to keep when two candidate rows for one key score the same."""

    FIRST = "first"  # keep the row seen first
    LAST = "last"  # keep the row seen last
    STRICT = "strict"  # abort reconciliation


@dataclass(frozen=True)
class CorrectionRule:
    """Re-file rows of one kind recorded under the wrong zone letter."""

    name: str
    kind: Kind
    from_letter: str
    to_letter: str
    description: str = ""

    def apply(self, kind: Kind, zone_code: int, zones: ZoneTable) -> Optional[int]:
        """Return the corrected zone code, or None when the rule does not apply."""
        if kind is not self.kind or zones.letter(zone_code) != self.from_letter:
            return None
        return zones.code(self.to_letter)


DEFAULT_CORRECTIONS: Tuple[CorrectionRule, ...] = (
    CorrectionRule(
        name="shaft-zone-M-as-m",
        kind=Kind.SHAFT,
        from_letter="M",
        to_letter="m",
        description="Shaft rows transcribed under the hole-only zone letter M",
    ),
)


@dataclass
class ReconcileReport:
    input_rows: int = 0
    output_rows: int = 0
    fixed: Dict[str, int] = field(default_factory=dict)
    dropped_empty: int = 0
    dropped_invalid_shape: int = 0
    dropped_unknown_zone: int = 0
    dropped_inverted: int = 0
    duplicate_groups: int = 0
    duplicates_discarded: int = 0
    ties: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ReconcileResult:
    index: ReferenceIndex
    report: ReconcileReport


def score_row(
    kind: Kind,
    letter: Optional[str],
    upper: Optional[int],
    lower: Optional[int],
    patterns: Mapping[Tuple[Kind, str], SignPattern] = SIGN_PATTERNS,
) -> float:
    """
    Consistency score of a candidate row against its zone's sign convention.

    +2 when upper has the expected sign, +2 when lower does, +1 when
    upper >= lower (-2 otherwise), +1 when a zero-basis zone's pinned
    deviation is exactly 0. Rows with a missing deviation score -inf.
    """
    if upper is None or lower is None:
        return EMPTY_SCORE
    pattern = expected_pattern(kind, letter, patterns)
    score = 0
    if pattern.upper.matches(upper):
        score += 2
    if pattern.lower.matches(lower):
        score += 2
    score += 1 if upper >= lower else -2
    if (pattern.pinned == "lower" and lower == 0) or (pattern.pinned == "upper" and upper == 0):
        score += 1
    return float(score)


def _deviation_cell(value: Any) -> Tuple[bool, Optional[int]]:
    """Parse one deviation cell -> (valid, value); empty cells are valid None."""
    if value is None or (isinstance(value, str) and value.strip() in ("", "-", "—")):
        return True, None
    if isinstance(value, bool):
        return False, None
    if isinstance(value, int):
        return True, value
    try:
        number = Decimal(str(value).strip().replace(",", "."))
    except InvalidOperation:
        return False, None
    if not number.is_finite() or number != number.to_integral_value():
        return False, None
    return True, int(number)


def _zone_table(raw: Any) -> ZoneTable:
    if isinstance(raw, Mapping):
        pairs = []
        for code, letter in raw.items():
            try:
                pairs.append([int(code), letter])
            except (TypeError, ValueError) as exc:
                raise MalformedReferenceDataset(
                    f"zones: keys must be numeric zone codes, got {code!r}"
                ) from exc
        return ZoneTable.from_pairs(pairs)
    if isinstance(raw, (list, tuple)):
        return ZoneTable.from_pairs(raw)
    raise MalformedReferenceDataset("zones: expected a list of [code, letter] pairs")


def _grade_lookup(raw: Any) -> Tuple[List[str], Optional[Dict[str, str]]]:
    """Grade labels plus, for an id->label table, the id mapping."""
    if isinstance(raw, Mapping):
        by_id: Dict[str, str] = {}
        for grade_id, label in raw.items():
            normalized = normalize_grade(label)
            if normalized is None:
                raise MalformedReferenceDataset(f"grades: unknown grade label {label!r}")
            by_id[str(grade_id).strip()] = normalized
        return list(by_id.values()), by_id
    if isinstance(raw, (list, tuple)):
        labels = []
        for label in raw:
            normalized = normalize_grade(label)
            if normalized is None:
                raise MalformedReferenceDataset(f"grades: unknown grade label {label!r}")
            labels.append(normalized)
        return labels, None
    raise MalformedReferenceDataset("grades: expected a list of grade labels")


class TableReconciler:
    """Offline pipeline producing a deduplicated, validated reference index."""

    def __init__(
        self,
        corrections: Sequence[CorrectionRule] = DEFAULT_CORRECTIONS,
        drop_empty: bool = True,
        tie_break: TieBreak = TieBreak.FIRST,
        patterns: Union[str, Mapping[Tuple[Kind, str], SignPattern]] = SIGN_PATTERNS,
    ):
        self.corrections = tuple(corrections)
        self.drop_empty = drop_empty
        self.tie_break = TieBreak(tie_break)
        if isinstance(patterns, str):
            if patterns not in SIGN_PATTERN_TABLES:
                raise ValueError(
                    f"unknown sign pattern table {patterns!r}; expected one of {sorted(SIGN_PATTERN_TABLES)}"
                )
            patterns = SIGN_PATTERN_TABLES[patterns]
        self.patterns = patterns

    def reconcile(self, dataset: Mapping[str, Any]) -> ReconcileResult:
        if not isinstance(dataset, Mapping):
            raise MalformedReferenceDataset("reference dataset must be a JSON object")
        missing = [name for name in REQUIRED_COLLECTIONS if dataset.get(name) is None]
        if missing:
            raise MalformedReferenceDataset(
                f"reference dataset is missing required collections: {', '.join(missing)}",
                {"missing": missing},
            )

        size_ranges = ranges_from_rows(dataset["size_ranges"])
        bucket_codes = {r.code for r in size_ranges}
        zones = _zone_table(dataset["zones"])
        grade_labels, grade_by_id = _grade_lookup(dataset["grades"])
        variations = dataset["variations"]
        if not isinstance(variations, (list, tuple)):
            raise MalformedReferenceDataset("variations: expected a list of rows")

        report = ReconcileReport(input_rows=len(variations))
        best: Dict[Tuple[Kind, int, str, int], Tuple[ReferenceRow, float]] = {}
        group_sizes: Dict[Tuple[Kind, int, str, int], int] = {}
        known_grades = set(grade_labels)

        for raw_row in variations:
            row = self._parse_row(raw_row, bucket_codes, grade_by_id, known_grades)
            if row is None:
                report.dropped_invalid_shape += 1
                continue

            row = self._apply_corrections(row, zones, report)

            letter = zones.letter(row.zone_code)
            if letter is None:
                report.dropped_unknown_zone += 1
                continue

            if row.is_empty and self.drop_empty:
                report.dropped_empty += 1
                continue

            score = score_row(row.kind, letter, row.upper, row.lower, self.patterns)
            key = row.key
            group_sizes[key] = group_sizes.get(key, 0) + 1
            current = best.get(key)
            if current is None:
                best[key] = (row, score)
                continue

            report.duplicates_discarded += 1
            _, current_score = current
            if score > current_score:
                best[key] = (row, score)
            elif score == current_score and not row.is_empty:
                label = f"{row.kind.value}/{row.bucket}/{row.grade}/{letter}"
                report.ties.append(label)
                if self.tie_break is TieBreak.STRICT:
                    raise MalformedReferenceDataset(
                        f"duplicate rows for {label} score equally ({score:g})",
                        {"key": label},
                    )
                if self.tie_break is TieBreak.LAST:
                    best[key] = (row, score)

        report.duplicate_groups = sum(1 for size in group_sizes.values() if size > 1)

        kept: List[ReferenceRow] = []
        for row, _ in best.values():
            if not row.is_empty and row.upper < row.lower:  # type: ignore[operator]
                report.dropped_inverted += 1
                continue
            kept.append(row)

        index = ReferenceIndex(kept, size_ranges=size_ranges, zones=zones, grades=grade_labels or GRADE_LABELS)
        report.output_rows = len(index.rows)
        logger.info(
            "Reference table reconciled: %d -> %d rows",
            report.input_rows,
            report.output_rows,
            extra={"stage": "reconcile", "report": report.to_dict()},
        )
        if report.ties:
            logger.warning(
                "Equal-score duplicates resolved by tie-break=%s: %s",
                self.tie_break.value,
                ", ".join(report.ties),
                extra={"stage": "reconcile"},
            )
        return ReconcileResult(index=index, report=report)

    @staticmethod
    def _parse_row(
        raw_row: Any,
        bucket_codes: set,
        grade_by_id: Optional[Dict[str, str]],
        grade_labels: set,
    ) -> Optional[ReferenceRow]:
        if not isinstance(raw_row, (list, tuple)) or len(raw_row) < 5:
            return None
        kind_raw, bucket_raw, grade_raw, zone_raw, dev = raw_row[:5]
        if not isinstance(dev, (list, tuple)) or len(dev) < 2:
            return None
        try:
            kind = Kind.from_raw(kind_raw)
            bucket = int(bucket_raw)
            zone_code = int(zone_raw)
        except (TypeError, ValueError):
            return None
        if bucket not in bucket_codes:
            return None
        if grade_by_id is not None:
            grade = grade_by_id.get(str(grade_raw).strip())
        else:
            grade = normalize_grade(grade_raw)
        if grade is None or grade not in grade_labels:
            return None
        ok_upper, upper = _deviation_cell(dev[0])
        ok_lower, lower = _deviation_cell(dev[1])
        if not (ok_upper and ok_lower):
            return None
        return ReferenceRow(
            kind=kind,
            bucket=bucket,
            grade=grade,
            zone_code=zone_code,
            upper=upper,
            lower=lower,
        )

    def _apply_corrections(
        self,
        row: ReferenceRow,
        zones: ZoneTable,
        report: ReconcileReport,
    ) -> ReferenceRow:
        for rule in self.corrections:
            corrected = rule.apply(row.kind, row.zone_code, zones)
            if corrected is None:
                continue
            report.fixed[rule.name] = report.fixed.get(rule.name, 0) + 1
            row = ReferenceRow(
                kind=row.kind,
                bucket=row.bucket,
                grade=row.grade,
                zone_code=corrected,
                upper=row.upper,
                lower=row.lower,
            )
        return row


def reconcile_dataset(dataset: Mapping[str, Any], **options: Any) -> ReconcileResult:
    """Reconcile a raw dataset with a default-configured :class:`TableReconciler`."""
    return TableReconciler(**options).reconcile(dataset)


def load_raw_dataset(path: Path) -> Dict[str, Any]:
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise MalformedReferenceDataset(f"cannot read reference dataset {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise MalformedReferenceDataset("reference dataset root must be a JSON object")
    return data


__all__ = [
    "REQUIRED_COLLECTIONS",
    "TieBreak",
    "CorrectionRule",
    "DEFAULT_CORRECTIONS",
    "ReconcileReport",
    "ReconcileResult",
    "TableReconciler",
    "score_row",
    "reconcile_dataset",
    "load_raw_dataset",
]
