"""
Unit tests for the integer range splitter.

Tests cover:
- Split count (requested, limited, capped by the value range)
- Boundary placement and predicate rendering
- Coverage and disjointness of the produced ranges
- Empty bounds and non-integer columns
"""

import re
from decimal import Decimal

import pytest

from cdc.binlog_snapshot.catalog.base import ColumnDescriptor, ColumnType
from cdc.binlog_snapshot.errors import UnsupportedSplitTypeError
from cdc.binlog_snapshot.splitter.base import ALWAYS_TRUE, BoundingValues, InputSplit
from cdc.binlog_snapshot.splitter.integer import IntegerSplitter, split_points

_PREDICATE_RE = re.compile(r"^id (>=|<) (-?\d+)$")


def matches(split: InputSplit, value: int) -> bool:
    """Evaluate a split's predicates for one id value."""
    for predicate in (split.lower_predicate, split.upper_predicate):
        if predicate == ALWAYS_TRUE:
            continue
        op, bound = _PREDICATE_RE.match(predicate).groups()
        if op == ">=" and not value >= int(bound):
            return False
        if op == "<" and not value < int(bound):
            return False
    return True


class TestIntegerSplitter:
    """Tests for IntegerSplitter."""

    @pytest.fixture
    def splitter(self):
        return IntegerSplitter()

    @pytest.fixture
    def id_column(self):
        return ColumnDescriptor("id", ColumnType.LONG, is_primary_key=True)

    def test_four_splits_over_thousand_ids(self, splitter, id_column):
        """[1, 1000] into 4 ranges uses boundaries 251, 501, 751."""
        splits = splitter.split(id_column, BoundingValues(1, 1000), 4, 10)

        assert splits == [
            InputSplit("1=1", "id < 251"),
            InputSplit("id >= 251", "id < 501"),
            InputSplit("id >= 501", "id < 751"),
            InputSplit("id >= 751", "1=1"),
        ]

    def test_split_limit_caps_count(self, splitter, id_column):
        """split_limit below num_splits caps the split count."""
        splits = splitter.split(id_column, BoundingValues(1, 1000), 8, 3)
        assert len(splits) == 3

    def test_range_caps_count(self, splitter, id_column):
        """No more splits than distinct values."""
        splits = splitter.split(id_column, BoundingValues(10, 12), 10, 10)
        assert len(splits) == 3
        assert [s.where() for s in splits] == [
            "1=1 AND id < 11",
            "id >= 11 AND id < 12",
            "id >= 12 AND 1=1",
        ]

    def test_single_value_single_unbounded_split(self, splitter, id_column):
        """lower == upper gives one split selecting everything."""
        splits = splitter.split(id_column, BoundingValues(42, 42), 4, 10)
        assert splits == [InputSplit.unbounded()]

    def test_non_positive_counts_give_one_split(self, splitter, id_column):
        """Zero or negative split counts are treated as one."""
        assert len(splitter.split(id_column, BoundingValues(1, 100), 0, 10)) == 1
        assert len(splitter.split(id_column, BoundingValues(1, 100), 5, -1)) == 1

    def test_empty_bounds_no_splits(self, splitter, id_column):
        """An empty table produces no splits."""
        assert splitter.split(id_column, BoundingValues(), 4, 10) == []
        assert splitter.split(id_column, BoundingValues(None, 5), 4, 10) == []

    def test_first_unbounded_below_last_unbounded_above(self, splitter, id_column):
        """Values outside the observed bounds still fall into a split."""
        splits = splitter.split(id_column, BoundingValues(100, 199), 5, 10)

        assert splits[0].lower_predicate == ALWAYS_TRUE
        assert splits[-1].upper_predicate == ALWAYS_TRUE
        assert matches(splits[0], -5)
        assert matches(splits[-1], 10_000)

    @pytest.mark.parametrize(
        "lower,upper,k",
        [(1, 1000, 4), (0, 4, 4), (-50, 50, 7), (1, 10, 10), (5, 1_000_003, 9)],
    )
    def test_ranges_cover_and_do_not_overlap(self, splitter, id_column, lower, upper, k):
        """Every value in [lower, upper] matches exactly one split."""
        splits = splitter.split(id_column, BoundingValues(lower, upper), k, 100)
        assert len(splits) == k

        step = max(1, (upper - lower) // 500)
        for value in list(range(lower, upper + 1, step)) + [upper]:
            assert sum(matches(s, value) for s in splits) == 1

    @pytest.mark.parametrize("k", [2, 3, 4, 6])
    def test_every_range_non_empty(self, splitter, id_column, k):
        """Uneven division still leaves no empty range."""
        splits = splitter.split(id_column, BoundingValues(0, 6), k, 100)
        for split in splits:
            assert any(matches(split, v) for v in range(0, 7))

    def test_decimal_and_string_bounds(self, splitter, id_column):
        """Driver-typed bounds are coerced to integers."""
        a = splitter.split(id_column, BoundingValues(Decimal("1"), Decimal("1000")), 4, 10)
        b = splitter.split(id_column, BoundingValues("1", b"1000"), 4, 10)
        c = splitter.split(id_column, BoundingValues(1, 1000), 4, 10)
        assert a == b == c

    def test_fractional_bound_rejected(self, splitter, id_column):
        with pytest.raises(ValueError):
            splitter.split(id_column, BoundingValues(Decimal("1.5"), 10), 2, 10)

    def test_non_integer_column_rejected(self, splitter):
        """Non-integer columns are rejected before any partitioning."""
        column = ColumnDescriptor("created_at", ColumnType.DATETIME)
        with pytest.raises(UnsupportedSplitTypeError) as exc:
            splitter.split(column, BoundingValues(1, 10), 2, 10)
        assert exc.value.column_name == "created_at"

    def test_deterministic(self, splitter, id_column):
        """Same inputs give identical splits."""
        first = splitter.split(id_column, BoundingValues(3, 9999), 7, 50)
        second = splitter.split(id_column, BoundingValues(3, 9999), 7, 50)
        assert first == second


class TestSplitPoints:
    """Tests for boundary computation."""

    def test_even_division(self):
        assert split_points(1, 1000, 4) == [1, 251, 501, 751, 1001]

    def test_uneven_division_front_loads_wider_ranges(self):
        assert split_points(0, 4, 4) == [0, 2, 3, 4, 5]

    def test_strictly_increasing(self):
        points = split_points(7, 19, 13)
        assert points == list(range(7, 21))
