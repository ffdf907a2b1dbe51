"""
In-memory connection implementation for testing.

This module provides a Connection that evaluates the small statement
dialect the snapshotter emits against tables held in memory:
- USE <db>
- SHOW MASTER STATUS
- SELECT MIN(<col>), MAX(<col>) FROM [<db>.]<table>
- SELECT * FROM [<db>.]<table> [WHERE <conjunction>]
- SET / FLUSH / UNLOCK / COMMIT control statements

Invariants:
    - Session state (current schema, autocommit, read lock) persists across calls
    - Unqualified table names resolve against the schema selected by USE
    - Every statement is recorded in execution order, including failed ones

How to change safely:
    - This is test-only code, changes don't affect production
    - Keep interface compatible with the Connection protocol
    - Add features to help with testing scenarios
"""

from __future__ import annotations

import logging
import operator
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from ..errors import QueryExecutionError
from .base import QueryResult

logger = logging.getLogger(__name__)

MASTER_STATUS_COLUMNS = (
    "File",
    "Position",
    "Binlog_Do_DB",
    "Binlog_Ignore_DB",
    "Executed_Gtid_Set",
)

_USE_RE = re.compile(r"^USE\s+`?(\w+)`?$", re.IGNORECASE)
_BOUNDS_RE = re.compile(
    r"^SELECT\s+MIN\(`?(\w+)`?\)\s*,\s*MAX\(`?(\w+)`?\)\s+FROM\s+([\w.`]+)$",
    re.IGNORECASE,
)
_SELECT_RE = re.compile(
    r"^SELECT\s+\*\s+FROM\s+([\w.`]+)(?:\s+WHERE\s+(.+))?$",
    re.IGNORECASE | re.DOTALL,
)
_COMPARISON_RE = re.compile(r"^`?(\w+)`?\s*(>=|<=|!=|<>|=|<|>)\s*(-?\d+|'(?:[^']|'')*')$")
_CONTROL_PREFIXES = ("SET ", "FLUSH ", "UNLOCK ", "COMMIT", "ROLLBACK", "START ", "BEGIN")

_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    ">=": operator.ge,
    "<=": operator.le,
    ">": operator.gt,
    "<": operator.lt,
    "=": operator.eq,
    "!=": operator.ne,
    "<>": operator.ne,
}


@dataclass
class InMemoryTable:
    """In-memory table storage."""

    columns: list[str]
    rows: list[tuple[Any, ...]] = field(default_factory=list)


class InMemoryConnection:
    """In-memory implementation of the Connection protocol for testing.

    Attributes:
        binlog_file: File name reported by SHOW MASTER STATUS
        binlog_offset: Offset reported by SHOW MASTER STATUS
        current_db: Schema selected by the last USE statement
        autocommit: Session autocommit flag
        read_locked: Whether FLUSH TABLES WITH READ LOCK is in effect

    Example:
        >>> conn = InMemoryConnection()
        >>> conn.add_table("shop", "orders", ["id", "qty"], [(1, 5), (2, 7)])
        >>> await conn.connect()
        >>> await conn.execute("USE shop")
        >>> result = await conn.execute("SELECT * FROM orders WHERE id >= 2")
        >>> result.rows
        [(2, 7)]
    """

    def __init__(
        self,
        binlog_file: str | None = "mysql-bin.000001",
        binlog_offset: int = 4,
    ) -> None:
        """Initialize an empty in-memory server.

        Args:
            binlog_file: Binlog file to report; None simulates binary logging disabled
            binlog_offset: Binlog offset to report
        """
        self.binlog_file = binlog_file
        self.binlog_offset = binlog_offset
        self.current_db: str | None = None
        self.autocommit = True
        self.read_locked = False

        self._tables: dict[tuple[str, str], InMemoryTable] = {}
        self._connected = False
        self._statements: list[str] = []
        self._scripted: list[tuple[re.Pattern[str], QueryResult]] = []
        self._failures: list[tuple[re.Pattern[str], str]] = []
        self._before_execute: list[Callable[[str], None]] = []

    @property
    def is_connected(self) -> bool:
        """Whether connected (always true after connect())."""
        return self._connected

    async def connect(self) -> None:
        """Connect (no-op for in-memory)."""
        self._connected = True
        logger.debug("InMemoryConnection connected")

    async def close(self) -> None:
        """Close the session and reset session state."""
        self._connected = False
        self.current_db = None
        self.autocommit = True
        self.read_locked = False
        logger.debug("InMemoryConnection closed")

    async def execute(self, sql: str) -> QueryResult:
        """Execute one statement against the in-memory tables.

        Args:
            sql: Statement text

        Returns:
            QueryResult

        Raises:
            QueryExecutionError: If not connected, on injected failures,
                or for statements outside the supported dialect
        """
        self._statements.append(sql)

        if not self._connected:
            raise QueryExecutionError("Not connected", sql=sql)

        for hook in list(self._before_execute):
            hook(sql)

        for pattern, message in self._failures:
            if pattern.search(sql):
                raise QueryExecutionError(message, sql=sql)

        for pattern, result in self._scripted:
            if pattern.search(sql):
                return QueryResult(result.column_names, list(result.rows))

        statement = sql.strip().rstrip(";").strip()
        upper = statement.upper()

        match = _USE_RE.match(statement)
        if match:
            return self._use(match.group(1), sql)

        if upper == "SHOW MASTER STATUS":
            return self._master_status()

        match = _BOUNDS_RE.match(statement)
        if match:
            return self._bounds(match.group(1), match.group(2), match.group(3), sql)

        match = _SELECT_RE.match(statement)
        if match:
            return self._select(match.group(1), match.group(2), sql)

        if upper.startswith(_CONTROL_PREFIXES):
            return self._control(upper)

        raise QueryExecutionError(f"Unsupported statement: {statement}", sql=sql)

    # Statement handlers

    def _use(self, db: str, sql: str) -> QueryResult:
        if db.lower() != "information_schema" and db not in self.databases:
            raise QueryExecutionError(f"Unknown database '{db}'", sql=sql)
        self.current_db = db
        return QueryResult()

    def _master_status(self) -> QueryResult:
        if self.binlog_file is None:
            return QueryResult(column_names=MASTER_STATUS_COLUMNS)
        return QueryResult(
            column_names=MASTER_STATUS_COLUMNS,
            rows=[(self.binlog_file, self.binlog_offset, "", "", "")],
        )

    def _bounds(self, min_col: str, max_col: str, name: str, sql: str) -> QueryResult:
        table = self._resolve(name, sql)
        lo = [row[self._column_index(table, min_col, sql)] for row in table.rows]
        hi = [row[self._column_index(table, max_col, sql)] for row in table.rows]
        lo = [v for v in lo if v is not None]
        hi = [v for v in hi if v is not None]
        return QueryResult(
            column_names=(f"MIN({min_col})", f"MAX({max_col})"),
            rows=[(min(lo) if lo else None, max(hi) if hi else None)],
        )

    def _select(self, name: str, where: str | None, sql: str) -> QueryResult:
        table = self._resolve(name, sql)
        predicates = self._parse_conjunction(where, table, sql) if where else []
        try:
            rows = [row for row in table.rows if all(p(row) for p in predicates)]
        except TypeError as e:
            raise QueryExecutionError(f"Type mismatch in WHERE clause: {e}", sql=sql) from e
        return QueryResult(column_names=tuple(table.columns), rows=rows)

    def _control(self, upper: str) -> QueryResult:
        normalized = " ".join(upper.split())
        if normalized.startswith("SET AUTOCOMMIT"):
            self.autocommit = normalized.endswith("1")
        elif normalized == "FLUSH TABLES WITH READ LOCK":
            self.read_locked = True
        elif normalized == "UNLOCK TABLES":
            self.read_locked = False
        return QueryResult()

    # Helpers

    def _resolve(self, name: str, sql: str) -> InMemoryTable:
        name = name.replace("`", "")
        if "." in name:
            db, table = name.split(".", 1)
        elif self.current_db is None:
            raise QueryExecutionError("No database selected", sql=sql)
        else:
            db, table = self.current_db, name

        if (db, table) not in self._tables:
            raise QueryExecutionError(f"Table '{db}.{table}' doesn't exist", sql=sql)
        return self._tables[(db, table)]

    def _column_index(self, table: InMemoryTable, column: str, sql: str) -> int:
        try:
            return table.columns.index(column)
        except ValueError:
            raise QueryExecutionError(f"Unknown column '{column}'", sql=sql) from None

    def _parse_conjunction(
        self, where: str, table: InMemoryTable, sql: str
    ) -> list[Callable[[tuple[Any, ...]], bool]]:
        predicates = []
        for term in _split_top_level_and(where.strip()):
            term = term.strip()
            if term.startswith("(") and term.endswith(")"):
                predicates.extend(self._parse_conjunction(term[1:-1], table, sql))
                continue
            if term.replace(" ", "").upper() in ("1=1", "TRUE"):
                continue
            match = _COMPARISON_RE.match(term)
            if not match:
                raise QueryExecutionError(f"Unsupported WHERE term: {term}", sql=sql)
            column, op, literal = match.groups()
            index = self._column_index(table, column, sql)
            value: Any = (
                literal[1:-1].replace("''", "'") if literal.startswith("'") else int(literal)
            )
            compare = _OPERATORS[op]
            predicates.append(
                lambda row, i=index, v=value, cmp=compare: row[i] is not None and cmp(row[i], v)
            )
        return predicates

    # Testing helpers

    @property
    def databases(self) -> set[str]:
        """Names of all databases holding at least one table."""
        return {db for db, _ in self._tables}

    @property
    def statements(self) -> list[str]:
        """All statements received, in order (testing helper)."""
        return list(self._statements)

    def add_table(
        self,
        db: str,
        table: str,
        columns: list[str],
        rows: list[tuple[Any, ...]] | None = None,
    ) -> None:
        """Create or replace a table (testing helper)."""
        self._tables[(db, table)] = InMemoryTable(columns=list(columns), rows=list(rows or []))

    def insert(self, db: str, table: str, rows: list[tuple[Any, ...]]) -> None:
        """Append rows to an existing table (testing helper)."""
        self._tables[(db, table)].rows.extend(rows)

    def script(self, pattern: str, result: QueryResult) -> None:
        """Answer statements matching a regex with a fixed result (testing helper)."""
        self._scripted.append((re.compile(pattern, re.IGNORECASE), result))

    def fail_on(self, pattern: str, message: str = "Injected failure") -> None:
        """Fail statements matching a regex (testing helper)."""
        self._failures.append((re.compile(pattern, re.IGNORECASE), message))

    def before_execute(self, hook: Callable[[str], None]) -> None:
        """Run a hook before each statement, e.g. to simulate concurrent writes."""
        self._before_execute.append(hook)

    def clear_statements(self) -> None:
        """Forget recorded statements (testing helper)."""
        self._statements.clear()


def _split_top_level_and(clause: str) -> list[str]:
    """Split a clause on AND keywords outside parentheses and quotes."""
    terms = []
    depth = 0
    in_quote = False
    start = 0
    i = 0
    upper = clause.upper()
    while i < len(clause):
        ch = clause[i]
        if ch == "'":
            in_quote = not in_quote
        elif not in_quote and ch == "(":
            depth += 1
        elif not in_quote and ch == ")":
            depth -= 1
        elif (
            not in_quote
            and depth == 0
            and upper.startswith("AND", i)
            and (i == 0 or clause[i - 1].isspace())
            and (i + 3 < len(clause) and clause[i + 3].isspace())
        ):
            terms.append(clause[start:i])
            start = i + 3
            i += 3
            continue
        i += 1
    terms.append(clause[start:])
    return [t for t in terms if t.strip()]
