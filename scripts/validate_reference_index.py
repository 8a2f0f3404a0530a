#!/usr/bin/env python3
"""Validate an ISO 286 reference index artifact.

This validates the JSON produced by `scripts/reconcile_reference_table.py`
and loaded by `fitcalc.core.knowledge.tolerance.ReferenceIndex`.

It is intentionally conservative:
- checks structure, size ranges and the zone table,
- checks basic invariants (lower <= upper, nested index matches rows),
- optionally runs a few spot-check computations through the engine.
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from fitcalc.core.errors import FitCalcError  # noqa: E402
from fitcalc.core.knowledge.tolerance import (  # noqa: E402
    BasisSystem,
    FitCalculator,
    FitType,
    Kind,
    ReferenceIndex,
)
from fitcalc.core.knowledge.tolerance.reference_index import INDEX_FORMAT  # noqa: E402

DEFAULT_JSON_PATH = Path("data/knowledge/iso286_reference_index.json")


@dataclass(frozen=True)
class ValidationIssue:
    severity: str  # "error" | "warning"
    message: str


def validate_index(index: ReferenceIndex) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    if len(index) == 0:
        issues.append(ValidationIssue("error", "index has no entries"))

    for kind, bucket, grade, zone_code, pair in index.entries():
        letter = index.zones.letter(zone_code) or f"#{zone_code}"
        if pair.upper < pair.lower:
            issues.append(
                ValidationIssue(
                    "error",
                    f"{kind.value}.{letter}{grade}@{bucket}: lower > upper "
                    f"(lower={pair.lower}, upper={pair.upper})",
                )
            )

    # Light sanity checks for common labels (avoid being overly strict).
    required = [(Kind.HOLE, "H", "7"), (Kind.SHAFT, "h", "6"), (Kind.SHAFT, "g", "6")]
    for size_range in index.size_ranges:
        for kind, letter, grade in required:
            code = index.zones.code(letter)
            if code is None or index.lookup(kind, size_range.code, grade, code) is None:
                issues.append(
                    ValidationIssue(
                        "warning",
                        f"bucket {size_range.code} {size_range.label} missing common label: {letter}{grade}",
                    )
                )
    return issues


def validate_json(path: Path) -> Tuple[List[ValidationIssue], Optional[ReferenceIndex]]:
    issues: List[ValidationIssue] = []
    if not path.exists():
        return [ValidationIssue("error", f"missing file: {path}")], None

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except ValueError as exc:
        return [ValidationIssue("error", f"invalid json: {exc}")], None

    if not isinstance(data, dict):
        return [ValidationIssue("error", "root must be a JSON object")], None

    fmt = data.get("format")
    if fmt != INDEX_FORMAT:
        issues.append(ValidationIssue("warning", f"unexpected format={fmt!r} (expected {INDEX_FORMAT!r})"))
    units = data.get("units")
    if units and str(units).strip().lower() != "um":
        issues.append(ValidationIssue("warning", f"unexpected units={units!r} (expected 'um')"))

    try:
        index = ReferenceIndex.from_dict(data)
    except FitCalcError as exc:
        return issues + [ValidationIssue("error", exc.message)], None
    except (KeyError, TypeError) as exc:
        return issues + [ValidationIssue("error", f"invalid structure: {exc!r}")], None

    nested: Dict[str, Any] = data.get("index") or {}
    if nested and nested != index.nested():
        issues.append(ValidationIssue("error", "nested 'index' does not match the flat 'rows'"))

    issues.extend(validate_index(index))
    return issues, index


def run_spot_checks(index: ReferenceIndex) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    calculator = FitCalculator(index)

    try:
        # H7 @ 25mm -> (+21, 0) um
        h7 = calculator.deviation("25", "H7")
        if tuple(h7) != (21, 0):
            issues.append(ValidationIssue("error", f"spot-check H7@25mm expected (21,0), got {tuple(h7)}"))

        # g6 @ 25mm -> (-7, -20) um
        g6 = calculator.deviation("25", "g6")
        if tuple(g6) != (-7, -20):
            issues.append(ValidationIssue("error", f"spot-check g6@25mm expected (-7,-20), got {tuple(g6)}"))

        fit = calculator.compute("25", "H7", "g6")
    except FitCalcError as exc:
        return issues + [ValidationIssue("error", f"spot-check failed: {exc.message}")]

    clearances = fit.clearances
    if (clearances.Smax, clearances.Smin) != (41, 7):
        issues.append(
            ValidationIssue(
                "error",
                "spot-check fit H7/g6@25mm clearances mismatch "
                f"(Smax={clearances.Smax}, Smin={clearances.Smin})",
            )
        )
    if fit.fit_type is not FitType.CLEARANCE or fit.system is not BasisSystem.HOLE_BASIS:
        issues.append(
            ValidationIssue(
                "error",
                f"spot-check fit H7/g6@25mm classified as {fit.fit_type.value}/{fit.system.value}",
            )
        )
    return issues


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--json",
        type=Path,
        default=DEFAULT_JSON_PATH,
        help="Path to the reference index artifact",
    )
    parser.add_argument(
        "--spot-check",
        action="store_true",
        help="Run a few deterministic spot-check computations",
    )
    args = parser.parse_args()

    issues, index = validate_json(args.json)
    if args.spot_check and index is not None:
        issues.extend(run_spot_checks(index))

    errors = [i for i in issues if i.severity == "error"]
    warnings = [i for i in issues if i.severity == "warning"]

    rows = len(index.rows) if index is not None else 0
    entries = len(index) if index is not None else 0
    print(f"ISO286 reference index: rows={rows} entries={entries} path={args.json}")
    if warnings:
        print(f"WARNINGS ({len(warnings)}):")
        for item in warnings[:50]:
            print(f"  - {item.message}")
        if len(warnings) > 50:
            print(f"  ... truncated ({len(warnings) - 50} more)")
    if errors:
        print(f"ERRORS ({len(errors)}):")
        for item in errors[:50]:
            print(f"  - {item.message}")
        if len(errors) > 50:
            print(f"  ... truncated ({len(errors) - 50} more)")
        return 1

    print("OK")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
