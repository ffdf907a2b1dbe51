"""
MySQL connection implementation.

This module provides the production Connection backed by aiomysql. It works
with any server speaking the MySQL protocol that exposes SHOW MASTER STATUS
(MySQL, Percona Server, MariaDB).

Invariants:
    - One MySQLConnection is one server session
    - Statements are sent one at a time; results are fully fetched before returning
    - Driver errors are wrapped into QueryExecutionError / ConnectionFailedError

How to change safely:
    - Test against a real server before changing cursor handling
    - Keep autocommit configurable; the locked plan relies on switching it off
"""

from __future__ import annotations

import logging
import time
from typing import Any

from ..errors import ConnectionFailedError, QueryExecutionError
from .base import QueryResult

logger = logging.getLogger(__name__)

# Try to import aiomysql, provide helpful message if not installed
try:
    import aiomysql

    AIOMYSQL_AVAILABLE = True
except ImportError:
    AIOMYSQL_AVAILABLE = False
    aiomysql = None


class MySQLConnection:
    """aiomysql implementation of the Connection protocol.

    Attributes:
        config: MySQL connection configuration

    Example:
        >>> config = MySQLConfig(host="localhost", user="repl")
        >>> conn = MySQLConnection(config)
        >>> await conn.connect()
        >>> result = await conn.execute("SELECT 1")
    """

    def __init__(self, config: Any) -> None:
        """Initialize the connection.

        Args:
            config: MySQLConfig instance with connection settings

        Raises:
            ImportError: If aiomysql is not installed
        """
        if not AIOMYSQL_AVAILABLE:
            raise ImportError(
                "aiomysql is required for MySQL connections. Install with: pip install aiomysql"
            )

        self.config = config
        self._conn: Any = None

    @property
    def is_connected(self) -> bool:
        """Whether the session is open."""
        return self._conn is not None and not self._conn.closed

    @property
    def address(self) -> str:
        return f"{self.config.host}:{self.config.port}"

    async def connect(self) -> None:
        """Open a session to the server.

        Raises:
            ConnectionFailedError: If the connection cannot be established
        """
        if self.is_connected:
            return

        try:
            self._conn = await aiomysql.connect(
                host=self.config.host,
                port=self.config.port,
                user=self.config.user,
                password=self.config.password or "",
                charset=self.config.charset,
                autocommit=self.config.autocommit,
                connect_timeout=self.config.connect_timeout,
            )
        except Exception as e:
            self._conn = None
            raise ConnectionFailedError(
                f"Failed to connect to MySQL at {self.address}: {e}",
                address=self.address,
            ) from e

        logger.info(
            "Connected to MySQL",
            extra={"address": self.address, "user": self.config.user},
        )

    async def close(self) -> None:
        """Close the session."""
        if self._conn is not None:
            try:
                self._conn.close()
            except Exception as e:
                logger.warning(f"Error closing MySQL connection: {e}")
            self._conn = None
            logger.info("MySQL connection closed", extra={"address": self.address})

    async def execute(self, sql: str) -> QueryResult:
        """Execute one statement and fetch its full result.

        Args:
            sql: Statement text

        Returns:
            QueryResult with column names and all rows

        Raises:
            QueryExecutionError: If not connected or the statement fails
        """
        if not self.is_connected:
            raise QueryExecutionError("Not connected", sql=sql)

        start = time.monotonic()
        try:
            async with self._conn.cursor() as cursor:
                await cursor.execute(sql)
                if cursor.description is None:
                    result = QueryResult()
                else:
                    rows = await cursor.fetchall()
                    result = QueryResult(
                        column_names=tuple(d[0] for d in cursor.description),
                        rows=[tuple(row) for row in rows],
                    )
        except aiomysql.Error as e:
            raise QueryExecutionError(f"Statement failed: {e}", sql=sql) from e

        logger.debug(
            "Statement executed",
            extra={
                "sql": sql,
                "rows": len(result.rows),
                "duration_ms": int((time.monotonic() - start) * 1000),
            },
        )
        return result
