"""
Split computation for a table.

compute_splits() is the entry point: it picks the partitioning strategy for
the split column's type, runs the bounding (MIN/MAX) query and hands the
bounds to the strategy. Strategies are registered per ColumnType, so the
set of splittable types is explicit and enumerable.

Invariants:
    - Unsupported column types yield no splits and issue no queries
    - An empty table (no bounds) yields no splits
    - The bounding query runs on the caller's connection, after USE <db>
"""

from __future__ import annotations

import logging
from typing import Any

from ..catalog.base import ColumnDescriptor, ColumnType
from ..connection.base import Connection
from .base import BoundingValues, InputSplit, Splitter
from .integer import IntegerSplitter

logger = logging.getLogger(__name__)

_integer_splitter = IntegerSplitter()

SPLITTERS: dict[ColumnType, Splitter] = {
    ColumnType.TINY: _integer_splitter,
    ColumnType.SHORT: _integer_splitter,
    ColumnType.INT24: _integer_splitter,
    ColumnType.LONG: _integer_splitter,
    ColumnType.LONGLONG: _integer_splitter,
}


def supports(column_type: ColumnType) -> bool:
    """Whether a partitioning strategy exists for the column type."""
    return column_type in SPLITTERS


def bounding_query(db: str, table: str, column: ColumnDescriptor) -> str:
    """Default MIN/MAX query for the split column."""
    return f"SELECT MIN({column.name}), MAX({column.name}) FROM {db}.{table}"


async def get_bounding_values(
    connection: Connection,
    db: str,
    table: str,
    column: ColumnDescriptor,
    boundary_query: str | None = None,
) -> BoundingValues[Any]:
    """Fetch the observed minimum and maximum of the split column.

    Args:
        connection: Connection to query on
        db: Database name
        table: Table name
        column: Split-by column
        boundary_query: Optional query returning (min, max) to use instead

    Returns:
        BoundingValues; both bounds None if the table is empty

    Raises:
        QueryExecutionError: If either statement fails
    """
    query = boundary_query or bounding_query(db, table, column)
    if boundary_query:
        logger.info(f"Using user provided boundary query: {boundary_query}")

    await connection.execute(f"USE {db}")
    result = await connection.execute(query)

    if result.is_empty:
        return BoundingValues()

    row = result.rows[0]
    return BoundingValues(lower=row[0], upper=row[1] if len(row) > 1 else None)


async def compute_splits(
    connection: Connection,
    db: str,
    table: str,
    column: ColumnDescriptor,
    num_splits: int,
    split_limit: int,
    boundary_query: str | None = None,
) -> list[InputSplit]:
    """Partition a table into ranges of its split column.

    Args:
        connection: Connection to run the bounding query on
        db: Database name
        table: Table name
        column: Split-by column
        num_splits: Requested number of splits
        split_limit: Upper limit on the number of splits
        boundary_query: Optional replacement for the MIN/MAX query

    Returns:
        Ordered, contiguous splits; empty for unsupported types or empty tables

    Raises:
        QueryExecutionError: If the bounding query fails
    """
    splitter = SPLITTERS.get(column.type)
    if splitter is None:
        logger.warning(
            f"Split by column of type {column.type.value} is not supported, "
            "returning empty split list",
            extra={"db": db, "table": table, "column": column.name},
        )
        return []

    logger.info(
        f"Split by column type is {column.type.value}",
        extra={"db": db, "table": table, "column": column.name},
    )

    bounds = await get_bounding_values(connection, db, table, column, boundary_query)
    if bounds.is_empty:
        logger.info(
            "No bounding values found, table is empty",
            extra={"db": db, "table": table, "column": column.name},
        )
        return []

    return splitter.split(column, bounds, num_splits, split_limit)
