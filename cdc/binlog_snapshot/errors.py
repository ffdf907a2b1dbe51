"""
Error types for binlog-snapshot.

This module defines the exception types raised while preparing and running
a table snapshot:
- SnapshotError: Base exception
- ConnectionFailedError: Could not open a database connection
- QueryExecutionError: A statement failed on the connection
- ColumnResolutionError: No usable split-by column
- UnsupportedSplitTypeError: Split-by column type cannot be partitioned
- HandlerRejectedError: The event handler declined a batch

Invariants:
    - All errors inherit from SnapshotError
    - Driver exceptions are wrapped, never leaked, at the connection seam
    - Errors include context for debugging
"""

from __future__ import annotations

from typing import Any


class SnapshotError(Exception):
    """Base exception for all snapshot errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "SNAPSHOT_ERROR"
        self.details = details or {}


class ConnectionFailedError(SnapshotError):
    """Failed to connect to the database server."""

    def __init__(self, message: str, address: str | None = None) -> None:
        super().__init__(
            message,
            code="CONNECTION_FAILED",
            details={"address": address},
        )
        self.address = address


class QueryExecutionError(SnapshotError):
    """A statement failed at the connection.

    Raised when:
    - The connection is closed or lost
    - The server rejects the statement
    - The statement times out in the driver
    """

    def __init__(self, message: str, sql: str | None = None) -> None:
        super().__init__(
            message,
            code="QUERY_EXECUTION",
            details={"sql": sql},
        )
        self.sql = sql


class ColumnResolutionError(SnapshotError):
    """No usable split-by column could be found for a table."""

    def __init__(
        self,
        message: str,
        db: str | None = None,
        table: str | None = None,
        column: str | None = None,
    ) -> None:
        super().__init__(
            message,
            code="COLUMN_RESOLUTION",
            details={"db": db, "table": table, "column": column},
        )
        self.db = db
        self.table = table
        self.column = column


class UnsupportedSplitTypeError(SnapshotError):
    """The split-by column's type has no partitioning strategy."""

    def __init__(self, column_name: str, column_type: Any) -> None:
        super().__init__(
            f"Split by column '{column_name}' of type {column_type} is not supported",
            code="UNSUPPORTED_SPLIT_TYPE",
            details={"column": column_name, "column_type": str(column_type)},
        )
        self.column_name = column_name
        self.column_type = column_type


class HandlerRejectedError(SnapshotError):
    """The event handler declined a batch of events."""

    def __init__(self, message: str, remaining_statements: int = 0) -> None:
        super().__init__(
            message,
            code="HANDLER_REJECTED",
            details={"remaining_statements": remaining_statements},
        )
        self.remaining_statements = remaining_statements
