"""
Nominal Size Ranges (ISO 286-1:2010 Table 1).

Seventeen contiguous buckets covering (0, 1000] mm. The first bucket accepts
any size above zero up to 1 mm; every later bucket is open below and closed
above, so a size on a boundary belongs to the lower bucket.

Bounds are stored in integer micrometres so that resolution never depends on
floating-point comparisons.
"""

from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

from fitcalc.core.errors import MalformedReferenceDataset, OutOfRange

from .fixed_point import NumberLike, mm_to_um, um_to_mm_str


@dataclass(frozen=True)
class SizeRange:
    """One nominal-size bucket, bounds in micrometres."""

    code: int
    low_um: int
    high_um: int

    def contains(self, size_um: int) -> bool:
        return self.low_um < size_um <= self.high_um

    @property
    def label(self) -> str:
        low = um_to_mm_str(self.low_um).rstrip("0").rstrip(".")
        high = um_to_mm_str(self.high_um).rstrip("0").rstrip(".")
        return f"({low}, {high}]"

    def to_list(self) -> List[object]:
        return [um_to_mm_str(self.low_um), um_to_mm_str(self.high_um), self.code]


# (low_mm, high_mm) per bucket, bucket code = position + 1
_BOUNDS_MM: List[Tuple[int, int]] = [
    (0, 1),
    (1, 3),
    (3, 6),
    (6, 10),
    (10, 18),
    (18, 30),
    (30, 50),
    (50, 80),
    (80, 120),
    (120, 180),
    (180, 250),
    (250, 315),
    (315, 400),
    (400, 500),
    (500, 630),
    (630, 800),
    (800, 1000),
]

SIZE_RANGES: Tuple[SizeRange, ...] = tuple(
    SizeRange(code=i + 1, low_um=low * 1000, high_um=high * 1000)
    for i, (low, high) in enumerate(_BOUNDS_MM)
)


def resolve_bucket(
    nominal_size: NumberLike,
    ranges: Sequence[SizeRange] = SIZE_RANGES,
) -> int:
    """
    Resolve a nominal diameter to its bucket code.

    Args:
        nominal_size: Diameter in mm (string, int, Decimal or float)
        ranges: Ordered bucket table (default: the ISO 286 table)

    Returns:
        1-based bucket code

    Raises:
        InvalidNumber: when the diameter is not a 3-decimal number
        OutOfRange: when the diameter is <= 0 or beyond the last bucket

    Example:
        >>> resolve_bucket("25")
        6
        >>> resolve_bucket("30")
        6
    """
    size_um = mm_to_um(nominal_size)
    return resolve_bucket_um(size_um, ranges)


def resolve_bucket_um(size_um: int, ranges: Sequence[SizeRange] = SIZE_RANGES) -> int:
    """Same as :func:`resolve_bucket` for a size already in micrometres."""
    if size_um <= 0:
        raise OutOfRange(
            f"D={um_to_mm_str(size_um)} mm must be a positive size.",
            {"size_um": size_um},
        )
    for size_range in ranges:
        if size_range.contains(size_um):
            return size_range.code
    raise OutOfRange(
        f"D={um_to_mm_str(size_um)} mm is out of supported nominal ranges.",
        {"size_um": size_um, "max_um": ranges[-1].high_um if ranges else None},
    )


def ranges_from_rows(rows: Iterable[Sequence[object]]) -> Tuple[SizeRange, ...]:
    """Build a bucket table from ``[low_mm, high_mm, code]`` dataset rows."""
    result: List[SizeRange] = []
    for idx, row in enumerate(rows):
        if not isinstance(row, (list, tuple)) or len(row) < 3:
            raise MalformedReferenceDataset(
                f"size_ranges[{idx}]: expected [low, high, code], got {row!r}"
            )
        try:
            low_um = mm_to_um(row[0])  # type: ignore[arg-type]
            high_um = mm_to_um(row[1])  # type: ignore[arg-type]
            code = int(row[2])  # type: ignore[call-overload]
        except (TypeError, ValueError) as exc:
            raise MalformedReferenceDataset(f"size_ranges[{idx}]: {exc}") from exc
        result.append(SizeRange(code=code, low_um=low_um, high_um=high_um))
    validate_ranges(result)
    return tuple(result)


def validate_ranges(ranges: Sequence[SizeRange]) -> None:
    """Check that buckets are non-empty, contiguous and non-overlapping."""
    if not ranges:
        raise MalformedReferenceDataset("size_ranges: table is empty")
    prev = None
    for idx, size_range in enumerate(ranges):
        if size_range.high_um <= size_range.low_um:
            raise MalformedReferenceDataset(
                f"size_ranges[{idx}]: high must exceed low ({size_range.label})"
            )
        if prev is not None and size_range.low_um != prev.high_um:
            raise MalformedReferenceDataset(
                f"size_ranges[{idx}]: {size_range.label} does not continue {prev.label}"
            )
        prev = size_range
    codes = [r.code for r in ranges]
    if len(set(codes)) != len(codes):
        raise MalformedReferenceDataset("size_ranges: duplicate bucket codes")


def get_size_range(code: int, ranges: Sequence[SizeRange] = SIZE_RANGES) -> SizeRange:
    for size_range in ranges:
        if size_range.code == code:
            return size_range
    raise OutOfRange(f"Unknown bucket code {code}.", {"bucket": code})


__all__ = [
    "SizeRange",
    "SIZE_RANGES",
    "resolve_bucket",
    "resolve_bucket_um",
    "ranges_from_rows",
    "validate_ranges",
    "get_size_range",
]
