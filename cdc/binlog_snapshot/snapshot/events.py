"""
Events emitted by a snapshot run.

SelectEvent carries the rows of one data statement; LogPositionEvent carries
the binlog coordinate the snapshot is correlated with. Together they are the
contract toward downstream consumers.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class LogPosition:
    """Position in the binary log.

    Attributes:
        file: Binlog file name
        offset: Byte offset within the file
    """

    file: str
    offset: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"file": self.file, "offset": self.offset}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LogPosition:
        """Create from dictionary."""
        return cls(file=data["file"], offset=int(data["offset"]))

    def __str__(self) -> str:
        return f"{self.file}:{self.offset}"


@dataclass(frozen=True)
class SelectEvent:
    """Rows read from one table range.

    Attributes:
        db: Database name
        table: Table name
        rows: Rows in query order, each in column order
    """

    db: str
    table: str
    rows: tuple[tuple[Any, ...], ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "select",
            "db": self.db,
            "table": self.table,
            "rows": [list(row) for row in self.rows],
        }


@dataclass(frozen=True)
class LogPositionEvent:
    """The binlog coordinate captured at the start of the snapshot."""

    position: LogPosition

    def to_dict(self) -> dict[str, Any]:
        return {"type": "log_position", **self.position.to_dict()}


SnapshotterEvent = Union[SelectEvent, LogPositionEvent]

EventHandler = Callable[[Sequence[SnapshotterEvent]], bool]
