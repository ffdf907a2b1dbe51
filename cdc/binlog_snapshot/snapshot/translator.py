"""
Translation of raw query results into snapshot events.

Pure functions: no I/O, no logging, no state. The scope tag attached to each
plan entry decides what (if anything) its result turns into.
"""

from __future__ import annotations

from collections.abc import Iterable

from ..connection.base import QueryResult
from .events import LogPosition, LogPositionEvent, SelectEvent, SnapshotterEvent

SHOW_MASTER_STATUS_TAG = "showMasterStatus"
CONTROL_TAG = ""


def table_tag(db: str, table: str) -> str:
    """Scope tag for data statements of a table."""
    return f"{db}.{table}"


def parse_table_tag(scope_tag: str) -> tuple[str, str] | None:
    """Split a "<db>.<table>" tag, or return None if it is not one."""
    db, sep, table = scope_tag.partition(".")
    if not sep or not db or not table or "." in table:
        return None
    return db, table


def translate(scope_tag: str, result: QueryResult) -> SnapshotterEvent | None:
    """Turn one tagged result into at most one event.

    Args:
        scope_tag: Tag of the plan entry that produced the result
        result: Raw result set

    Returns:
        SelectEvent for non-empty data results, LogPositionEvent for the
        master status capture, otherwise None
    """
    if result.is_empty:
        return None

    names = parse_table_tag(scope_tag)
    if names is not None:
        db, table = names
        return SelectEvent(db=db, table=table, rows=tuple(tuple(row) for row in result.rows))

    if scope_tag == SHOW_MASTER_STATUS_TAG:
        row = result.rows[0]
        file = row[0].decode("utf-8") if isinstance(row[0], (bytes, bytearray)) else str(row[0])
        return LogPositionEvent(LogPosition(file=file, offset=int(row[1])))

    return None


def translate_all(results: Iterable[tuple[str, QueryResult]]) -> list[SnapshotterEvent]:
    """Translate tagged results in order, dropping those that yield no event."""
    events = []
    for scope_tag, result in results:
        event = translate(scope_tag, result)
        if event is not None:
            events.append(event)
    return events
