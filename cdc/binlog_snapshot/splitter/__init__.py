"""
Range splitting for binlog-snapshot.

Splits a table into contiguous, independently queryable ranges of a single
split-by column. Only integer columns are splittable; other types produce
no splits.
"""

from .base import ALWAYS_TRUE, BoundingValues, InputSplit, Splitter
from .integer import IntegerSplitter, split_points
from .ranges import (
    SPLITTERS,
    bounding_query,
    compute_splits,
    get_bounding_values,
    supports,
)

__all__ = [
    "ALWAYS_TRUE",
    "BoundingValues",
    "InputSplit",
    "Splitter",
    "IntegerSplitter",
    "SPLITTERS",
    "split_points",
    "bounding_query",
    "compute_splits",
    "get_bounding_values",
    "supports",
]
