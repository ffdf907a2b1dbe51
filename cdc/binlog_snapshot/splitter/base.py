"""
Range splitting types.

An InputSplit is a pair of SQL predicates that, ANDed together, select one
contiguous range of split-column values. An ordered list of splits covers
the whole column domain:

    split 0:    1=1         AND id < b1
    split i:    id >= b_i   AND id < b_(i+1)
    split k-1:  id >= b_k-1 AND 1=1

Invariants:
    - Adjacent splits share a boundary value with no gap and no overlap
    - The first split is unbounded below and the last unbounded above, so rows
      written after the bounding query ran are still read
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar

from ..catalog.base import ColumnDescriptor

T = TypeVar("T")

ALWAYS_TRUE = "1=1"


@dataclass(frozen=True)
class BoundingValues(Generic[T]):
    """Observed minimum and maximum of the split column.

    Both bounds are None when the table has no rows (or only NULLs in the
    split column).
    """

    lower: T | None = None
    upper: T | None = None

    @property
    def is_empty(self) -> bool:
        return self.lower is None or self.upper is None


@dataclass(frozen=True)
class InputSplit:
    """One range of the split column.

    Attributes:
        lower_predicate: Predicate bounding the range from below
        upper_predicate: Predicate bounding the range from above
    """

    lower_predicate: str
    upper_predicate: str

    @classmethod
    def unbounded(cls) -> InputSplit:
        """A split that selects every row."""
        return cls(ALWAYS_TRUE, ALWAYS_TRUE)

    def where(self) -> str:
        """Render the split as a WHERE condition."""
        return f"{self.lower_predicate} AND {self.upper_predicate}"

    def __str__(self) -> str:
        return self.where()


class Splitter(Protocol):
    """Partitioning strategy for one family of column types."""

    def split(
        self,
        column: ColumnDescriptor,
        bounds: BoundingValues[Any],
        num_splits: int,
        split_limit: int,
    ) -> list[InputSplit]:
        ...
