"""
JSON wire format for snapshot events.

Each event is written as one JSON object per line:

    {"type": "log_position", "file": "mysql-bin.000003", "offset": 154}
    {"type": "select", "db": "shop", "table": "orders", "rows": [[1, "new"], ...]}

Column values are serialized the way pydantic renders them in JSON mode:
decimals as strings, temporal values as ISO 8601, binary as base64.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from .snapshot.events import (
    LogPosition,
    LogPositionEvent,
    SelectEvent,
    SnapshotterEvent,
)


class SelectRecord(BaseModel):
    """Wire form of a SelectEvent."""

    model_config = ConfigDict(ser_json_bytes="base64")

    type: Literal["select"] = "select"
    db: str = Field(..., description="Database name")
    table: str = Field(..., description="Table name")
    rows: list[list[Any]] = Field(default_factory=list, description="Rows in column order")


class LogPositionRecord(BaseModel):
    """Wire form of a LogPositionEvent."""

    type: Literal["log_position"] = "log_position"
    file: str = Field(..., description="Binlog file name")
    offset: int = Field(..., ge=0, description="Byte offset within the binlog file")


EventRecord = Annotated[Union[SelectRecord, LogPositionRecord], Field(discriminator="type")]

_record_adapter: TypeAdapter[Any] = TypeAdapter(EventRecord)


def to_record(event: SnapshotterEvent) -> SelectRecord | LogPositionRecord:
    """Convert an event to its wire model."""
    if isinstance(event, SelectEvent):
        return SelectRecord(db=event.db, table=event.table, rows=[list(r) for r in event.rows])
    return LogPositionRecord(file=event.position.file, offset=event.position.offset)


def encode_event(event: SnapshotterEvent) -> str:
    """Serialize an event as a single JSON line (without newline)."""
    return to_record(event).model_dump_json()


def decode_event(line: str | bytes) -> SnapshotterEvent:
    """Parse a JSON line back into an event.

    Raises:
        pydantic.ValidationError: If the line is not a valid event record
    """
    record = _record_adapter.validate_json(line)
    if isinstance(record, SelectRecord):
        return SelectEvent(
            db=record.db,
            table=record.table,
            rows=tuple(tuple(row) for row in record.rows),
        )
    return LogPositionEvent(LogPosition(file=record.file, offset=record.offset))
