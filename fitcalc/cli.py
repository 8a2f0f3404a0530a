"""Command-line fit calculator.

Single computation:
    fitcalc --D 25 --hole H7 --shaft g6 [--json] [--formulas]

Batch mode (lines ``D;hole;shaft``, ``,`` also accepted, header allowed):
    fitcalc --batch in.csv --out out.csv [--out-json out.json]
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from fitcalc.api.dependencies import build_reference_index
from fitcalc.core.config import get_settings
from fitcalc.core.errors import FitCalcError
from fitcalc.core.knowledge.tolerance import FORMULAS, FitCalculator, FitResult, ReferenceIndex, run_batch
from fitcalc.utils.logging import setup_logging

# (title, group, keys) in display order
_SECTIONS = [
    ("Deviations (mm)", "deviations", ["ES", "EI", "es", "ei"]),
    ("Limit sizes (mm)", "limits", ["Dmax", "Dmin", "dmax", "dmin"]),
    ("Mean sizes (mm)", "means", ["Em", "em", "Dm", "dm", "Sm", "Nm"]),
    ("Tolerances (mm)", "tolerances", ["TD", "Td"]),
    ("Fit tolerances (mm)", "fit_tolerances", ["Ts", "TN"]),
    ("Clearances (mm)", "clearances", ["Smax", "Smin"]),
    ("Interferences (mm)", "interferences", ["Nmax", "Nmin"]),
]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fitcalc",
        description="ISO 286 limits and fits for a hole/shaft pair.",
    )
    parser.add_argument("--D", dest="D", help="Nominal diameter in mm, e.g. 25 or 12.5")
    parser.add_argument("--hole", help="Hole designation, e.g. H7")
    parser.add_argument("--shaft", help="Shaft designation, e.g. g6")
    parser.add_argument("--json", action="store_true", help="Print the full result as JSON")
    parser.add_argument("--formulas", action="store_true", help="Show the formula next to each value")
    parser.add_argument("--batch", type=Path, help="Input file with D;hole;shaft lines")
    parser.add_argument("--out", type=Path, default=Path("out.csv"), help="Batch output table")
    parser.add_argument("--out-json", type=Path, help="Optional batch JSON output")
    parser.add_argument("--index", type=Path, help="Prebuilt reference index (JSON)")
    parser.add_argument("--log-level", default="WARNING", help="Log level for stderr output")
    return parser


def load_index(path: Optional[Path]) -> ReferenceIndex:
    if path is not None:
        return ReferenceIndex.load(path)
    return build_reference_index(get_settings())


def format_result(result: FitResult, formulas: bool = False) -> str:
    lines = [
        f"D = {result.input.D} mm",
        f"Hole: {result.input.hole} | Shaft: {result.input.shaft}",
        f"Size range: bucket {result.bucket}",
        "",
    ]
    for title, group, keys in _SECTIONS:
        values = getattr(result, group).as_mm()
        lines.append(f"{title}:")
        for key in keys:
            row = f"  {key:<5}= {values[key]:>10}"
            if formulas:
                row += f"    {FORMULAS[key]}"
            lines.append(row)
        lines.append("")
    lines.append("Classification:")
    lines.append(f"  Fit:     {result.fit_type.description} ({result.fit_type.value})")
    lines.append(f"  System:  {result.system.description} ({result.system.value})")
    return "\n".join(lines)


def _run_single(calculator: FitCalculator, args: argparse.Namespace) -> int:
    result = calculator.compute(args.D, args.hole, args.shaft)
    if args.json:
        payload = result.to_dict()
        if args.formulas:
            payload["formulas"] = FORMULAS
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        print(format_result(result, formulas=args.formulas))
    return 0


def _run_batch(calculator: FitCalculator, args: argparse.Namespace) -> int:
    text = args.batch.read_text(encoding="utf-8")
    report = run_batch(calculator, text)

    args.out.parent.mkdir(parents=True, exist_ok=True)
    args.out.write_text("\r\n".join(report.to_table()), encoding="utf-8")
    if args.out_json is not None:
        args.out_json.parent.mkdir(parents=True, exist_ok=True)
        args.out_json.write_text(
            json.dumps(report.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8"
        )

    summary = f"OK: {report.succeeded} rows -> {args.out}"
    if args.out_json is not None:
        summary += f" and {args.out_json}"
    print(summary)
    for failure in report.failures:
        print(f"  line {failure.line}: [{failure.code}] {failure.message}", file=sys.stderr)
    return 0 if report.failed == 0 else 1


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level, stream=sys.stderr)

    if args.batch is None and not (args.D and args.hole and args.shaft):
        parser.print_usage(sys.stderr)
        print("error: provide --D, --hole and --shaft, or --batch", file=sys.stderr)
        return 2

    try:
        calculator = FitCalculator(load_index(args.index), zone_sort=get_settings().ZONE_SORT_MODE)
        if args.batch is not None:
            return _run_batch(calculator, args)
        return _run_single(calculator, args)
    except FitCalcError as exc:
        print(f"ERROR: {exc.message}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
