"""
In-memory ColumnCatalog for testing.

Tables are registered with their column descriptors; the primary key is
derived from the descriptors flagged is_primary_key unless given
explicitly (to model key order differing from column order).
"""

from __future__ import annotations

from collections.abc import Iterable

from .base import ColumnDescriptor


class InMemoryCatalog:
    """In-memory implementation of the ColumnCatalog protocol.

    Example:
        >>> catalog = InMemoryCatalog()
        >>> catalog.add_table("shop", "orders", [ColumnDescriptor("id", ColumnType.LONG, True)])
        >>> await catalog.primary_key_of("shop", "orders")
        ('id',)
    """

    def __init__(self) -> None:
        self._columns: dict[tuple[str, str], tuple[ColumnDescriptor, ...]] = {}
        self._keys: dict[tuple[str, str], tuple[str, ...] | None] = {}
        self.lookups = 0

    def add_table(
        self,
        db: str,
        table: str,
        columns: Iterable[ColumnDescriptor],
        primary_key: Iterable[str] | None = None,
    ) -> None:
        """Register a table (testing helper)."""
        columns = tuple(columns)
        self._columns[(db, table)] = columns
        if primary_key is None:
            primary_key = [c.name for c in columns if c.is_primary_key]
        self._keys[(db, table)] = tuple(primary_key) or None

    async def columns_of(self, db: str, table: str) -> tuple[ColumnDescriptor, ...]:
        self.lookups += 1
        return self._columns.get((db, table), ())

    async def primary_key_of(self, db: str, table: str) -> tuple[str, ...] | None:
        self.lookups += 1
        return self._keys.get((db, table))
