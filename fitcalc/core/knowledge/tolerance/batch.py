"""
Batch fit computation over delimited text.

Input lines look like ``D;hole;shaft`` (``,`` is accepted when no ``;`` is
present). Blank lines, ``#`` comments and a ``D;hole;shaft`` header are
skipped. Each row is computed independently; a failing row is recorded and
never aborts the batch.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from fitcalc.core.errors import FitCalcError, InvalidDesignation

from .fits import FitCalculator, FitRequest, FitResult

logger = logging.getLogger(__name__)

BATCH_DELIMITER = ";"

BATCH_COLUMNS: List[str] = [
    "D", "hole", "shaft",
    "ES", "EI", "es", "ei",
    "Dmax", "Dmin", "dmax", "dmin",
    "Em", "em", "Dm", "dm",
    "Smax", "Smin", "Sm",
    "Nmax", "Nmin", "Nm",
    "TD", "Td", "Ts", "TN",
    "fit_type", "system",
]


@dataclass(frozen=True)
class BatchRecord:
    """One parsed input row; ``fields`` counts the cells actually present."""

    line: int
    D: str
    hole: str
    shaft: str
    fields: int = 3

    @property
    def complete(self) -> bool:
        return self.fields >= 3

    def to_request(self) -> FitRequest:
        return FitRequest(D=self.D, hole=self.hole, shaft=self.shaft)


@dataclass(frozen=True)
class BatchFailure:
    line: int
    code: str
    message: str
    D: str = ""
    hole: str = ""
    shaft: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "line": self.line,
            "code": self.code,
            "message": self.message,
            "input": {"D": self.D, "hole": self.hole, "shaft": self.shaft},
        }


@dataclass
class BatchReport:
    results: List[FitResult] = field(default_factory=list)
    failures: List[BatchFailure] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return len(self.results)

    @property
    def failed(self) -> int:
        return len(self.failures)

    def to_table(self) -> List[str]:
        """Header plus one delimited line per successful row."""
        lines = [BATCH_DELIMITER.join(BATCH_COLUMNS)]
        lines.extend(BATCH_DELIMITER.join(result_to_row(r)) for r in self.results)
        return lines

    def to_dict(self) -> Dict[str, Any]:
        return {
            "succeeded": self.succeeded,
            "failed": self.failed,
            "results": [r.to_dict() for r in self.results],
            "failures": [f.to_dict() for f in self.failures],
        }


def _is_header(d_cell: str, hole_cell: str) -> bool:
    return d_cell.lower() == "d" and "hole" in hole_cell.lower()


def parse_batch_line(line: str, line_no: int = 0) -> Optional[BatchRecord]:
    """
    Parse one input line.

    Returns None for blank lines, comments and the header. Rows with fewer
    than three cells come back with ``complete == False`` so the caller can
    report them.

    Example:
        >>> parse_batch_line("25;H7;g6", 1)
        BatchRecord(line=1, D='25', hole='H7', shaft='g6', fields=3)
    """
    text = line.strip()
    if not text or text.startswith("#"):
        return None
    delimiter = ";" if ";" in text else ","
    parts = [part.strip() for part in text.split(delimiter)]
    padded = parts + [""] * (3 - len(parts))
    d_cell, hole_cell, shaft_cell = padded[0], padded[1], padded[2]
    if _is_header(d_cell, hole_cell):
        return None
    return BatchRecord(
        line=line_no,
        D=d_cell,
        hole=hole_cell,
        shaft=shaft_cell,
        fields=min(len(parts), 3),
    )


def parse_batch_text(text: str) -> List[BatchRecord]:
    records = []
    for line_no, line in enumerate(text.splitlines(), start=1):
        record = parse_batch_line(line, line_no)
        if record is not None:
            records.append(record)
    return records


def _as_record(item: Union[BatchRecord, FitRequest, Mapping[str, Any]], position: int) -> BatchRecord:
    if isinstance(item, BatchRecord):
        return item
    if isinstance(item, FitRequest):
        return BatchRecord(line=position, D=str(item.D), hole=item.hole, shaft=item.shaft)
    present = [key for key in ("D", "hole", "shaft") if item.get(key) not in (None, "")]
    return BatchRecord(
        line=position,
        D=str(item.get("D") or ""),
        hole=str(item.get("hole") or ""),
        shaft=str(item.get("shaft") or ""),
        fields=len(present),
    )


def result_to_row(result: FitResult) -> List[str]:
    """Cells of one output row in ``BATCH_COLUMNS`` order (mm strings)."""
    values = result.quantities_mm()
    values.update(
        D=result.input.D,
        hole=result.input.hole,
        shaft=result.input.shaft,
        fit_type=result.fit_type.value,
        system=result.system.value,
    )
    return [values[column] for column in BATCH_COLUMNS]


def run_batch(
    calculator: FitCalculator,
    source: Union[str, Iterable[Union[BatchRecord, FitRequest, Mapping[str, Any]]]],
) -> BatchReport:
    """
    Compute every row of a batch.

    Args:
        calculator: Engine used for each row
        source: Delimited text, or an iterable of records / requests / dicts

    Returns:
        BatchReport with results in input order and one failure per bad row
    """
    records = parse_batch_text(source) if isinstance(source, str) else [
        _as_record(item, position) for position, item in enumerate(source, start=1)
    ]

    report = BatchReport()
    for record in records:
        try:
            if not record.complete:
                raise InvalidDesignation(
                    f"Row has {record.fields} field(s); expected D;hole;shaft.",
                    {"line": record.line},
                )
            report.results.append(calculator.compute_request(record.to_request()))
        except FitCalcError as exc:
            report.failures.append(
                BatchFailure(
                    line=record.line,
                    code=exc.code.value,
                    message=exc.message,
                    D=record.D,
                    hole=record.hole,
                    shaft=record.shaft,
                )
            )
            logger.warning(
                "Batch row %d failed: %s",
                record.line,
                exc.message,
                extra={"line": record.line, "error_code": exc.code.value},
            )

    logger.info(
        "Batch finished",
        extra={"rows": len(records), "succeeded": report.succeeded, "failed": report.failed},
    )
    return report


__all__ = [
    "BATCH_COLUMNS",
    "BATCH_DELIMITER",
    "BatchRecord",
    "BatchFailure",
    "BatchReport",
    "parse_batch_line",
    "parse_batch_text",
    "result_to_row",
    "run_batch",
]
