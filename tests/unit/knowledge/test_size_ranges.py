"""Tests for nominal size range resolution."""

from decimal import Decimal

import pytest

from fitcalc.core.errors import InvalidNumber, MalformedReferenceDataset, OutOfRange
from fitcalc.core.knowledge.tolerance.size_ranges import (
    SIZE_RANGES,
    SizeRange,
    get_size_range,
    ranges_from_rows,
    resolve_bucket,
    resolve_bucket_um,
    validate_ranges,
)


class TestSizeRangeTable:
    def test_seventeen_contiguous_buckets(self):
        assert len(SIZE_RANGES) == 17
        assert SIZE_RANGES[0].low_um == 0
        assert SIZE_RANGES[-1].high_um == 1_000_000
        for prev, cur in zip(SIZE_RANGES, SIZE_RANGES[1:]):
            assert cur.low_um == prev.high_um
            assert cur.code == prev.code + 1

    def test_validate_shipped_ranges(self):
        validate_ranges(SIZE_RANGES)

    def test_label(self):
        assert get_size_range(6).label == "(18, 30]"
        assert get_size_range(1).label == "(0, 1]"

    def test_to_list_uses_mm_strings(self):
        assert get_size_range(6).to_list() == ["18.000", "30.000", 6]


class TestResolveBucket:
    @pytest.mark.parametrize(
        "size, expected",
        [
            ("0.001", 1),
            ("1", 1),
            ("1.001", 2),
            ("3", 2),
            ("25", 6),
            ("30", 6),
            ("30.001", 7),
            ("999.999", 17),
            ("1000", 17),
        ],
    )
    def test_boundaries_belong_to_lower_bucket(self, size, expected):
        assert resolve_bucket(size) == expected

    def test_accepts_numbers(self):
        assert resolve_bucket(25) == 6
        assert resolve_bucket(12.5) == 5
        assert resolve_bucket(Decimal("18.000")) == 5

    @pytest.mark.parametrize("size", ["0", "-5", "1000.001", "2000"])
    def test_out_of_range(self, size):
        with pytest.raises(OutOfRange):
            resolve_bucket(size)

    def test_invalid_number_is_reported_before_range(self):
        with pytest.raises(InvalidNumber):
            resolve_bucket("25.0001")

    def test_every_micrometre_maps_to_exactly_one_bucket(self):
        # Sample every bucket edge and its neighbours
        for size_range in SIZE_RANGES:
            for size_um in (size_range.low_um + 1, size_range.high_um):
                matches = [r.code for r in SIZE_RANGES if r.contains(size_um)]
                assert matches == [size_range.code]
                assert resolve_bucket_um(size_um) == size_range.code

    def test_custom_table(self):
        ranges = (SizeRange(1, 0, 10_000), SizeRange(2, 10_000, 20_000))
        assert resolve_bucket("15", ranges) == 2
        with pytest.raises(OutOfRange):
            resolve_bucket("25", ranges)


class TestRangesFromRows:
    def test_builds_from_dataset_rows(self):
        ranges = ranges_from_rows([[0, 1, 1], ["1", "3", 2]])
        assert ranges == (SizeRange(1, 0, 1000), SizeRange(2, 1000, 3000))

    def test_gap_is_rejected(self):
        with pytest.raises(MalformedReferenceDataset):
            ranges_from_rows([[0, 1, 1], [2, 3, 2]])

    def test_overlap_is_rejected(self):
        with pytest.raises(MalformedReferenceDataset):
            ranges_from_rows([[0, 3, 1], [1, 6, 2]])

    def test_duplicate_codes_are_rejected(self):
        with pytest.raises(MalformedReferenceDataset):
            ranges_from_rows([[0, 1, 1], [1, 3, 1]])

    def test_short_row_is_rejected(self):
        with pytest.raises(MalformedReferenceDataset):
            ranges_from_rows([[0, 1]])
