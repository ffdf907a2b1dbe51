"""
binlog-snapshot Test Suite.

This package contains:
- unit/: Unit tests (no external dependencies)
- integration/: Integration tests (in-memory connection and catalog)
"""
