"""
Unit tests for table metadata.

Tests cover:
- DATA_TYPE mapping and integer classification
- InformationSchemaCatalog over scripted results
- InMemoryCatalog primary key derivation
"""

import pytest

from cdc.binlog_snapshot.catalog import (
    ColumnCatalog,
    ColumnDescriptor,
    ColumnType,
    InformationSchemaCatalog,
    InMemoryCatalog,
)
from cdc.binlog_snapshot.connection.base import QueryResult
from cdc.binlog_snapshot.connection.memory import InMemoryConnection


class TestColumnType:
    @pytest.mark.parametrize(
        "data_type,expected",
        [
            ("tinyint", ColumnType.TINY),
            ("smallint", ColumnType.SHORT),
            ("mediumint", ColumnType.INT24),
            ("int", ColumnType.LONG),
            ("BIGINT", ColumnType.LONGLONG),
            ("varchar", ColumnType.VARCHAR),
            ("decimal", ColumnType.NEWDECIMAL),
            (" datetime ", ColumnType.DATETIME),
            ("vector", ColumnType.UNKNOWN),
        ],
    )
    def test_from_data_type(self, data_type, expected):
        assert ColumnType.from_data_type(data_type) is expected

    def test_integer_types(self):
        integers = {t for t in ColumnType if t.is_integer}
        assert integers == {
            ColumnType.TINY,
            ColumnType.SHORT,
            ColumnType.INT24,
            ColumnType.LONG,
            ColumnType.LONGLONG,
        }

    def test_descriptor_str(self):
        assert str(ColumnDescriptor("id", ColumnType.LONG, True)) == "id (long, pk)"
        assert str(ColumnDescriptor("note", ColumnType.BLOB)) == "note (blob)"


class TestInformationSchemaCatalog:
    """Tests for InformationSchemaCatalog."""

    @pytest.fixture
    async def conn(self):
        conn = InMemoryConnection()
        conn.script(
            r"information_schema\.COLUMNS .*'orders'",
            QueryResult(
                ("COLUMN_NAME", "DATA_TYPE", "COLUMN_KEY"),
                [
                    ("id", "int", "PRI"),
                    (b"customer_id", b"bigint", b"MUL"),
                    ("note", "text", ""),
                ],
            ),
        )
        conn.script(
            r"KEY_COLUMN_USAGE .*'orders'",
            QueryResult(("COLUMN_NAME",), [("id",)]),
        )
        conn.script(
            r"KEY_COLUMN_USAGE .*'order_items'",
            QueryResult(("COLUMN_NAME",), [("order_id",), (b"line_no",)]),
        )
        conn.script(r"KEY_COLUMN_USAGE", QueryResult(("COLUMN_NAME",), []))
        conn.script(r"information_schema\.COLUMNS", QueryResult(("COLUMN_NAME",), []))
        await conn.connect()
        return conn

    @pytest.fixture
    def catalog(self, conn):
        return InformationSchemaCatalog(conn)

    def test_satisfies_protocol(self, catalog):
        assert isinstance(catalog, ColumnCatalog)

    @pytest.mark.asyncio
    async def test_columns_of(self, catalog):
        columns = await catalog.columns_of("shop", "orders")

        assert columns == (
            ColumnDescriptor("id", ColumnType.LONG, is_primary_key=True),
            ColumnDescriptor("customer_id", ColumnType.LONGLONG),
            ColumnDescriptor("note", ColumnType.BLOB),
        )

    @pytest.mark.asyncio
    async def test_queries_are_qualified(self, catalog, conn):
        """Metadata lookups never issue USE."""
        await catalog.columns_of("shop", "orders")
        await catalog.primary_key_of("shop", "orders")

        assert len(conn.statements) == 2
        assert all("information_schema." in s for s in conn.statements)
        assert "TABLE_SCHEMA = 'shop'" in conn.statements[0]
        assert conn.current_db is None

    @pytest.mark.asyncio
    async def test_primary_key_in_key_order(self, catalog):
        assert await catalog.primary_key_of("shop", "order_items") == ("order_id", "line_no")

    @pytest.mark.asyncio
    async def test_no_primary_key(self, catalog):
        assert await catalog.primary_key_of("shop", "log") is None

    @pytest.mark.asyncio
    async def test_unknown_table(self, catalog):
        assert await catalog.columns_of("shop", "missing") == ()

    @pytest.mark.asyncio
    async def test_names_are_escaped(self, catalog, conn):
        await catalog.columns_of("shop", "o'brien")
        assert "'o''brien'" in conn.statements[-1]


class TestInMemoryCatalog:
    @pytest.mark.asyncio
    async def test_primary_key_from_descriptors(self):
        catalog = InMemoryCatalog()
        catalog.add_table(
            "shop",
            "orders",
            [ColumnDescriptor("id", ColumnType.LONG, True), ColumnDescriptor("x", ColumnType.LONG)],
        )
        assert await catalog.primary_key_of("shop", "orders") == ("id",)
        assert catalog.lookups == 1

    @pytest.mark.asyncio
    async def test_explicit_key_order(self):
        catalog = InMemoryCatalog()
        catalog.add_table(
            "shop",
            "items",
            [ColumnDescriptor("a", ColumnType.LONG, True), ColumnDescriptor("b", ColumnType.LONG, True)],
            primary_key=["b", "a"],
        )
        assert await catalog.primary_key_of("shop", "items") == ("b", "a")

    @pytest.mark.asyncio
    async def test_no_key_is_none(self):
        catalog = InMemoryCatalog()
        catalog.add_table("shop", "log", [ColumnDescriptor("msg", ColumnType.BLOB)])
        assert await catalog.primary_key_of("shop", "log") is None
