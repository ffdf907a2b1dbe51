"""
Database connection abstraction for binlog-snapshot.

This module provides a pluggable Connection interface supporting:
- MySQL via aiomysql (production)
- In-memory (for testing)

A snapshot run owns one connection for its whole duration; statements are
issued strictly one after another on it.
"""

from .base import Connection, QueryResult, create_connection, quote_literal
from .memory import InMemoryConnection
from .mysql import MySQLConnection

__all__ = [
    # Protocol and types
    "Connection",
    "QueryResult",
    "quote_literal",
    # Factory
    "create_connection",
    # Implementations
    "MySQLConnection",
    "InMemoryConnection",
]
