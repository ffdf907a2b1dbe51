"""
Column metadata types and the ColumnCatalog protocol.

The catalog answers two questions about a table: which columns it has
(with their semantic type and primary key membership), and which columns
make up its primary key. The snapshot core only reads from it.

Invariants:
    - ColumnDescriptor is immutable
    - Column names are compared case-sensitively
    - columns_of() returns columns in table (ordinal) order

How to change safely:
    - New MySQL types are added to ColumnType and to _DATA_TYPE_MAP together
    - Catalog implementations must not change the connection's session state
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable


class ColumnType(Enum):
    """Semantic MySQL column types."""

    TINY = "tiny"
    SHORT = "short"
    INT24 = "int24"
    LONG = "long"
    LONGLONG = "longlong"
    FLOAT = "float"
    DOUBLE = "double"
    NEWDECIMAL = "newdecimal"
    VARCHAR = "varchar"
    STRING = "string"
    BLOB = "blob"
    DATE = "date"
    DATETIME = "datetime"
    TIMESTAMP = "timestamp"
    TIME = "time"
    YEAR = "year"
    BIT = "bit"
    JSON = "json"
    ENUM = "enum"
    SET = "set"
    GEOMETRY = "geometry"
    UNKNOWN = "unknown"

    @property
    def is_integer(self) -> bool:
        """Whether values of this type are whole numbers."""
        return self in _INTEGER_TYPES

    @classmethod
    def from_data_type(cls, data_type: str) -> ColumnType:
        """Map an information_schema DATA_TYPE string to a ColumnType.

        Unrecognized strings map to UNKNOWN.
        """
        return _DATA_TYPE_MAP.get(data_type.strip().lower(), cls.UNKNOWN)


_INTEGER_TYPES = frozenset(
    {ColumnType.TINY, ColumnType.SHORT, ColumnType.INT24, ColumnType.LONG, ColumnType.LONGLONG}
)

_DATA_TYPE_MAP = {
    "tinyint": ColumnType.TINY,
    "smallint": ColumnType.SHORT,
    "mediumint": ColumnType.INT24,
    "int": ColumnType.LONG,
    "integer": ColumnType.LONG,
    "bigint": ColumnType.LONGLONG,
    "float": ColumnType.FLOAT,
    "double": ColumnType.DOUBLE,
    "real": ColumnType.DOUBLE,
    "decimal": ColumnType.NEWDECIMAL,
    "numeric": ColumnType.NEWDECIMAL,
    "varchar": ColumnType.VARCHAR,
    "char": ColumnType.STRING,
    "binary": ColumnType.STRING,
    "varbinary": ColumnType.VARCHAR,
    "tinytext": ColumnType.BLOB,
    "text": ColumnType.BLOB,
    "mediumtext": ColumnType.BLOB,
    "longtext": ColumnType.BLOB,
    "tinyblob": ColumnType.BLOB,
    "blob": ColumnType.BLOB,
    "mediumblob": ColumnType.BLOB,
    "longblob": ColumnType.BLOB,
    "date": ColumnType.DATE,
    "datetime": ColumnType.DATETIME,
    "timestamp": ColumnType.TIMESTAMP,
    "time": ColumnType.TIME,
    "year": ColumnType.YEAR,
    "bit": ColumnType.BIT,
    "json": ColumnType.JSON,
    "enum": ColumnType.ENUM,
    "set": ColumnType.SET,
    "geometry": ColumnType.GEOMETRY,
    "point": ColumnType.GEOMETRY,
    "linestring": ColumnType.GEOMETRY,
    "polygon": ColumnType.GEOMETRY,
}


@dataclass(frozen=True)
class ColumnDescriptor:
    """A single table column as seen by the snapshotter.

    Attributes:
        name: Column name (case-sensitive)
        type: Semantic column type
        is_primary_key: Whether the column is part of the primary key
    """

    name: str
    type: ColumnType
    is_primary_key: bool = False

    def __str__(self) -> str:
        pk = ", pk" if self.is_primary_key else ""
        return f"{self.name} ({self.type.value}{pk})"


@runtime_checkable
class ColumnCatalog(Protocol):
    """Protocol for table metadata lookups.

    Example:
        >>> catalog = InformationSchemaCatalog(connection)
        >>> columns = await catalog.columns_of("shop", "orders")
        >>> pk = await catalog.primary_key_of("shop", "orders")
        >>> print(pk)
        ('id',)
    """

    async def columns_of(self, db: str, table: str) -> tuple[ColumnDescriptor, ...]:
        """Return the table's columns in ordinal order.

        An unknown table yields an empty tuple.
        """
        ...

    async def primary_key_of(self, db: str, table: str) -> tuple[str, ...] | None:
        """Return the primary key column names in key order, or None."""
        ...
