#!/usr/bin/env python3
"""Reconcile the raw ISO 286 deviation dataset into a reference index artifact.

Reads the raw dataset (size ranges, grades, zone codes, variation rows),
runs the reconciliation pipeline and writes the index consumed by
`fitcalc.core.knowledge.tolerance.ReferenceIndex.load`. The reconciliation
report is printed as JSON.

Usage:
    python scripts/reconcile_reference_table.py data/knowledge/iso286_reference_raw.json \
        --out data/knowledge/iso286_reference_index.json
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from fitcalc.core.errors import MalformedReferenceDataset  # noqa: E402
from fitcalc.core.knowledge.tolerance import (  # noqa: E402
    TableReconciler,
    SIGN_PATTERN_TABLES,
    TieBreak,
    load_raw_dataset,
)

DEFAULT_RAW_PATH = Path("data/knowledge/iso286_reference_raw.json")
DEFAULT_OUT_PATH = Path("data/knowledge/iso286_reference_index.json")


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "raw",
        type=Path,
        nargs="?",
        default=DEFAULT_RAW_PATH,
        help="Path to the raw reference dataset",
    )
    parser.add_argument(
        "--out",
        type=Path,
        default=DEFAULT_OUT_PATH,
        help="Where to write the reconciled index",
    )
    empty = parser.add_mutually_exclusive_group()
    empty.add_argument(
        "--drop-empty",
        dest="drop_empty",
        action="store_true",
        default=True,
        help="Drop rows with a missing deviation (default)",
    )
    empty.add_argument(
        "--keep-empty",
        dest="drop_empty",
        action="store_false",
        help="Keep rows with a missing deviation in the flat table",
    )
    parser.add_argument(
        "--tie-break",
        choices=[t.value for t in TieBreak],
        default=TieBreak.FIRST.value,
        help="Duplicate rows with equal scores: keep first, keep last, or abort",
    )
    parser.add_argument(
        "--sign-patterns",
        choices=sorted(SIGN_PATTERN_TABLES),
        default="reference",
        help="Expected-sign table used to score duplicate rows",
    )
    args = parser.parse_args()

    try:
        dataset = load_raw_dataset(args.raw)
        result = TableReconciler(
            drop_empty=args.drop_empty,
            tie_break=args.tie_break,
            patterns=args.sign_patterns,
        ).reconcile(dataset)
    except MalformedReferenceDataset as exc:
        print(f"ERROR: {exc.message}", file=sys.stderr)
        return 1

    result.index.save(args.out)
    print(json.dumps(result.report.to_dict(), ensure_ascii=False, indent=2))
    print(f"OK: {len(result.index.rows)} rows -> {args.out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
