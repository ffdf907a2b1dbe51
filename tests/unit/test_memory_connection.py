"""
Unit tests for the in-memory connection.

Tests cover:
- Session state (USE, autocommit, read lock)
- The bounding and range SELECT dialect
- Statement log, scripted results and injected failures
"""

import pytest

from cdc.binlog_snapshot.connection.base import Connection, QueryResult, quote_literal
from cdc.binlog_snapshot.connection.memory import InMemoryConnection
from cdc.binlog_snapshot.errors import QueryExecutionError


class TestInMemoryConnection:
    """Tests for InMemoryConnection."""

    @pytest.fixture
    async def conn(self):
        conn = InMemoryConnection(binlog_file="mysql-bin.000002", binlog_offset=120)
        conn.add_table(
            "shop",
            "orders",
            ["id", "status"],
            [(1, "paid"), (2, "new"), (3, "paid"), (4, None)],
        )
        await conn.connect()
        yield conn
        await conn.close()

    def test_satisfies_protocol(self):
        assert isinstance(InMemoryConnection(), Connection)

    @pytest.mark.asyncio
    async def test_not_connected_fails(self):
        conn = InMemoryConnection()
        with pytest.raises(QueryExecutionError, match="Not connected"):
            await conn.execute("SHOW MASTER STATUS")

    @pytest.mark.asyncio
    async def test_use_selects_schema(self, conn):
        await conn.execute("USE shop")
        result = await conn.execute("SELECT * FROM orders")
        assert len(result) == 4
        assert result.column_names == ("id", "status")

    @pytest.mark.asyncio
    async def test_unknown_database(self, conn):
        with pytest.raises(QueryExecutionError, match="Unknown database"):
            await conn.execute("USE nope")

    @pytest.mark.asyncio
    async def test_unqualified_without_use(self, conn):
        with pytest.raises(QueryExecutionError, match="No database selected"):
            await conn.execute("SELECT * FROM orders")

    @pytest.mark.asyncio
    async def test_master_status(self, conn):
        result = await conn.execute("SHOW MASTER STATUS")
        assert result.rows[0][:2] == ("mysql-bin.000002", 120)
        assert result.column_names[:2] == ("File", "Position")

    @pytest.mark.asyncio
    async def test_master_status_binlog_disabled(self):
        conn = InMemoryConnection(binlog_file=None)
        await conn.connect()
        assert (await conn.execute("SHOW MASTER STATUS")).is_empty

    @pytest.mark.asyncio
    async def test_bounds(self, conn):
        result = await conn.execute("SELECT MIN(id), MAX(id) FROM shop.orders")
        assert result.rows == [(1, 4)]

    @pytest.mark.asyncio
    async def test_bounds_empty_table(self, conn):
        conn.add_table("shop", "empty", ["id"])
        result = await conn.execute("SELECT MIN(id), MAX(id) FROM shop.empty")
        assert result.rows == [(None, None)]

    @pytest.mark.asyncio
    async def test_range_predicates(self, conn):
        await conn.execute("USE shop")
        result = await conn.execute("SELECT * FROM orders WHERE id >= 2 AND id < 4")
        assert result.rows == [(2, "new"), (3, "paid")]

    @pytest.mark.asyncio
    async def test_always_true_and_parenthesized(self, conn):
        await conn.execute("USE shop")
        result = await conn.execute("SELECT * FROM orders WHERE 1=1 AND id < 4 AND (status = 'paid')")
        assert result.rows == [(1, "paid"), (3, "paid")]

    @pytest.mark.asyncio
    async def test_null_never_matches(self, conn):
        result = await conn.execute("SELECT * FROM shop.orders WHERE status != 'x'")
        assert [r[0] for r in result.rows] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_unsupported_statement(self, conn):
        with pytest.raises(QueryExecutionError, match="Unsupported statement"):
            await conn.execute("DELETE FROM shop.orders")

    @pytest.mark.asyncio
    async def test_control_statements_track_session(self, conn):
        await conn.execute("SET autocommit=0")
        await conn.execute("FLUSH TABLES WITH READ LOCK")
        assert conn.autocommit is False
        assert conn.read_locked is True

        await conn.execute("UNLOCK TABLES")
        await conn.execute("COMMIT")
        assert conn.read_locked is False

    @pytest.mark.asyncio
    async def test_close_resets_session(self, conn):
        await conn.execute("USE shop")
        await conn.execute("FLUSH TABLES WITH READ LOCK")
        await conn.close()
        assert conn.current_db is None
        assert conn.read_locked is False

    @pytest.mark.asyncio
    async def test_statement_log(self, conn):
        await conn.execute("USE shop")
        with pytest.raises(QueryExecutionError):
            await conn.execute("SELECT * FROM missing")
        assert conn.statements == ["USE shop", "SELECT * FROM missing"]

        conn.clear_statements()
        assert conn.statements == []

    @pytest.mark.asyncio
    async def test_script_and_fail_on(self, conn):
        conn.script(r"^SELECT 42$", QueryResult(("x",), [(42,)]))
        conn.fail_on(r"status = 'void'", "Deadlock found")

        assert (await conn.execute("SELECT 42")).rows == [(42,)]
        with pytest.raises(QueryExecutionError, match="Deadlock"):
            await conn.execute("SELECT * FROM shop.orders WHERE status = 'void'")

    @pytest.mark.asyncio
    async def test_before_execute_hook(self, conn):
        conn.before_execute(lambda sql: conn.insert("shop", "orders", [(5, "new")]) if "MAX" in sql else None)
        result = await conn.execute("SELECT MIN(id), MAX(id) FROM shop.orders")
        assert result.rows == [(1, 5)]


def test_quote_literal():
    assert quote_literal("shop") == "'shop'"
    assert quote_literal("o'brien") == "'o''brien'"
