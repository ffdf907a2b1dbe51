"""
Base protocol and types for database connections.

A Connection is a single server session. Session state (current schema,
transaction isolation, autocommit, table locks) set by one statement is
visible to every later statement on the same instance, which is why a
snapshot run never shares its connection.

Invariants:
    - execute() runs one statement and returns only after the full result is read
    - Failures surface as QueryExecutionError, never as driver exceptions
    - A Connection is used by one coroutine at a time

How to change safely:
    - Protocol changes require updating all implementations
    - Keep QueryResult free of driver-specific types
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..config import MySQLConfig


@dataclass
class QueryResult:
    """Raw result of a single statement.

    Attributes:
        column_names: Result column names, empty for statements without a result set
        rows: Result rows in server order, each a tuple in column order
    """

    column_names: tuple[str, ...] = ()
    rows: list[tuple[Any, ...]] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """Whether the statement returned no rows."""
        return not self.rows

    def __len__(self) -> int:
        return len(self.rows)


@runtime_checkable
class Connection(Protocol):
    """Protocol for a session-scoped, asynchronous database connection.

    Example:
        >>> conn = MySQLConnection(config)
        >>> await conn.connect()
        >>> result = await conn.execute("SHOW MASTER STATUS")
        >>> print(result.rows[0][:2])
        ('mysql-bin.000003', 154)
    """

    async def connect(self) -> None:
        """Open the session.

        Raises:
            ConnectionFailedError: If the server cannot be reached
        """
        ...

    async def close(self) -> None:
        """Close the session and release its resources."""
        ...

    async def execute(self, sql: str) -> QueryResult:
        """Execute one statement.

        Args:
            sql: Statement text

        Returns:
            QueryResult with all rows read

        Raises:
            QueryExecutionError: If the statement fails or the session is gone
        """
        ...

    @property
    def is_connected(self) -> bool:
        """Whether the session is open."""
        ...


def quote_literal(value: str) -> str:
    """Render a string as a single-quoted SQL literal."""
    return "'" + value.replace("\\", "\\\\").replace("'", "''") + "'"


def create_connection(config: MySQLConfig) -> Connection:
    """Factory function to create a connection from configuration.

    Args:
        config: MySQL connection configuration

    Returns:
        An unopened Connection
    """
    from .mysql import MySQLConnection

    return MySQLConnection(config)
