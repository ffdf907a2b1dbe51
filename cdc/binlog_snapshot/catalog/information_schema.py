"""
ColumnCatalog backed by MySQL's information_schema.

Column and key metadata are read with fully qualified information_schema
queries over the snapshot connection, so looking up metadata never changes
the session's selected schema.

Invariants:
    - Columns are returned in ORDINAL_POSITION order
    - Primary key columns are returned in key (ORDINAL_POSITION) order
    - A table without a PRIMARY constraint has no primary key (None)
"""

from __future__ import annotations

import logging

from ..connection.base import Connection, quote_literal
from .base import ColumnDescriptor, ColumnType

logger = logging.getLogger(__name__)

COLUMNS_QUERY = (
    "SELECT COLUMN_NAME, DATA_TYPE, COLUMN_KEY FROM information_schema.COLUMNS "
    "WHERE TABLE_SCHEMA = {db} AND TABLE_NAME = {table} ORDER BY ORDINAL_POSITION"
)

PRIMARY_KEY_QUERY = (
    "SELECT COLUMN_NAME FROM information_schema.KEY_COLUMN_USAGE "
    "WHERE TABLE_SCHEMA = {db} AND TABLE_NAME = {table} AND CONSTRAINT_NAME = 'PRIMARY' "
    "ORDER BY ORDINAL_POSITION"
)


class InformationSchemaCatalog:
    """Reads table metadata from information_schema.

    Attributes:
        connection: Connection the metadata queries are issued on

    Example:
        >>> catalog = InformationSchemaCatalog(conn)
        >>> [c.name for c in await catalog.columns_of("shop", "orders")]
        ['id', 'customer_id', 'total']
    """

    def __init__(self, connection: Connection) -> None:
        self.connection = connection

    async def columns_of(self, db: str, table: str) -> tuple[ColumnDescriptor, ...]:
        result = await self.connection.execute(
            COLUMNS_QUERY.format(db=quote_literal(db), table=quote_literal(table))
        )
        columns = tuple(
            ColumnDescriptor(
                name=_text(name),
                type=ColumnType.from_data_type(_text(data_type)),
                is_primary_key=_text(column_key or "") == "PRI",
            )
            for name, data_type, column_key in (row[:3] for row in result.rows)
        )
        logger.debug(
            "Found columns",
            extra={"db": db, "table": table, "columns": [str(c) for c in columns]},
        )
        return columns

    async def primary_key_of(self, db: str, table: str) -> tuple[str, ...] | None:
        result = await self.connection.execute(
            PRIMARY_KEY_QUERY.format(db=quote_literal(db), table=quote_literal(table))
        )
        if result.is_empty:
            return None
        return tuple(_text(row[0]) for row in result.rows)


def _text(value: object) -> str:
    # information_schema columns come back as bytes under some charsets
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8")
    return str(value)
