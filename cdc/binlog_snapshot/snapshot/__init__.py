"""
Snapshot orchestration for binlog-snapshot.

This module turns a table into an ordered stream of events:
- SplitColumnSelector picks the split-by column
- QueryPlanBuilder sequences the capture and per-range SELECTs
- SnapshotOrchestrator runs the plan and feeds the event handler
- TableSnapshotter composes them for one table

Invariants:
    - The binlog coordinate is captured before any table data is read
    - Events reach the handler in plan order
"""

from .events import (
    EventHandler,
    LogPosition,
    LogPositionEvent,
    SelectEvent,
    SnapshotterEvent,
)
from .orchestrator import RunState, SnapshotOrchestrator
from .plan import ConsistencyMode, QueryPlanBuilder, QueryPlanEntry
from .selector import SplitColumnSelector
from .snapshotter import SnapshotFailure, SnapshotRequest, SnapshotResult, TableSnapshotter
from .translator import SHOW_MASTER_STATUS_TAG, translate, translate_all

__all__ = [
    # Events
    "EventHandler",
    "LogPosition",
    "LogPositionEvent",
    "SelectEvent",
    "SnapshotterEvent",
    # Components
    "SplitColumnSelector",
    "QueryPlanBuilder",
    "QueryPlanEntry",
    "ConsistencyMode",
    "SnapshotOrchestrator",
    "RunState",
    "translate",
    "translate_all",
    "SHOW_MASTER_STATUS_TAG",
    # Entry point
    "TableSnapshotter",
    "SnapshotRequest",
    "SnapshotResult",
    "SnapshotFailure",
]
