"""
Table metadata for binlog-snapshot.

This module provides column descriptors and the ColumnCatalog protocol,
with two implementations:
- information_schema (production)
- In-memory (for testing)
"""

from .base import ColumnCatalog, ColumnDescriptor, ColumnType
from .information_schema import InformationSchemaCatalog
from .memory import InMemoryCatalog

__all__ = [
    "ColumnCatalog",
    "ColumnDescriptor",
    "ColumnType",
    "InformationSchemaCatalog",
    "InMemoryCatalog",
]
