"""
Integer range splitter.

Partitions the closed interval [lower, upper] of an integer column into k
contiguous ranges, k = max(1, min(num_splits, split_limit, upper - lower + 1)).

Boundaries b_0 = lower < b_1 < ... < b_k = upper + 1 are spread so every
range is non-empty: with n = upper - lower + 1 values, the first n mod k
ranges are ceil(n / k) wide and the rest floor(n / k). For n = 1000, k = 4
that gives 1, 251, 501, 751, 1001.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from ..catalog.base import ColumnDescriptor
from ..errors import UnsupportedSplitTypeError
from .base import ALWAYS_TRUE, BoundingValues, InputSplit

logger = logging.getLogger(__name__)


class IntegerSplitter:
    """Splits integer columns into equal-width ranges."""

    def split(
        self,
        column: ColumnDescriptor,
        bounds: BoundingValues[Any],
        num_splits: int,
        split_limit: int,
    ) -> list[InputSplit]:
        """Compute the splits for an integer column.

        Args:
            column: Split-by column, must be integer-typed
            bounds: Observed MIN/MAX of the column
            num_splits: Requested number of splits
            split_limit: Upper limit on the number of splits

        Returns:
            Ordered splits covering the whole column domain; empty if the
            bounds are absent

        Raises:
            UnsupportedSplitTypeError: If the column is not integer-typed
        """
        if not column.type.is_integer:
            raise UnsupportedSplitTypeError(column.name, column.type)

        if bounds.is_empty:
            return []

        lower = _to_int(bounds.lower)
        upper = _to_int(bounds.upper)
        if upper < lower:
            lower, upper = upper, lower

        values = upper - lower + 1
        k = max(1, min(num_splits, split_limit, values))
        boundaries = split_points(lower, upper, k)

        splits = []
        for i in range(k):
            lower_predicate = f"{column.name} >= {boundaries[i]}" if i > 0 else ALWAYS_TRUE
            upper_predicate = (
                f"{column.name} < {boundaries[i + 1]}" if i < k - 1 else ALWAYS_TRUE
            )
            splits.append(InputSplit(lower_predicate, upper_predicate))

        logger.info(
            f"Created {k} splits for column '{column.name}'",
            extra={
                "column": column.name,
                "lower": lower,
                "upper": upper,
                "requested": num_splits,
                "limit": split_limit,
                "splits": k,
            },
        )
        return splits


def split_points(lower: int, upper: int, k: int) -> list[int]:
    """Return the k + 1 range boundaries for [lower, upper]."""
    values = upper - lower + 1
    width, remainder = divmod(values, k)
    return [lower + i * width + min(i, remainder) for i in range(k + 1)]


def _to_int(value: Any) -> int:
    if isinstance(value, int):
        return value
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("ascii")
    if isinstance(value, (Decimal, float)) and value != int(value):
        raise ValueError(f"Bounding value {value!r} is not a whole number")
    return int(value)
