"""
Table snapshotter for binlog-snapshot.

The TableSnapshotter takes one table's initial copy:
1. Determine the split-by column (given column, or single-column primary key)
2. Based on the column's type, compute value ranges for the table
3. Build the plan: binlog coordinate capture, then one SELECT per range
4. Run the plan, pushing each result as events into the event handler

Failures to find a usable split column, or a split column of a type that
cannot be partitioned, still run the capture-only plan (so a coordinate is
recorded) and then report the snapshot as unsuccessful.

Invariants:
    - One snapshot() call uses one connection, strictly sequentially
    - A coordinate capture is attempted whenever the connection is usable
    - Rows are delivered in split order, each split in query order

How to change safely:
    - Keep the SnapshotResult fields additive; callers log and persist them
    - Test new failure causes for both their log message and their outcome
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from ..catalog.base import ColumnCatalog, ColumnDescriptor
from ..catalog.information_schema import InformationSchemaCatalog
from ..connection.base import Connection
from ..errors import ColumnResolutionError, QueryExecutionError, UnsupportedSplitTypeError
from ..splitter.base import InputSplit
from ..splitter.ranges import compute_splits, supports
from .events import EventHandler, LogPosition
from .orchestrator import RunState, SnapshotOrchestrator
from .plan import ConsistencyMode, QueryPlanBuilder
from .selector import SplitColumnSelector

logger = logging.getLogger(__name__)


class SnapshotFailure(Enum):
    """Why a snapshot did not succeed."""

    COLUMN_RESOLUTION = "column_resolution"
    UNSUPPORTED_SPLIT_TYPE = "unsupported_split_type"
    QUERY_EXECUTION = "query_execution"
    HANDLER_REJECTED = "handler_rejected"


@dataclass(frozen=True)
class SnapshotRequest:
    """What to snapshot and how.

    Attributes:
        db: Database name
        table: Table name
        num_splits: Requested number of ranges
        split_limit: Upper limit on the number of ranges
        split_by_column: Column to split on (default: primary key)
        select_query: SELECT to use instead of SELECT * FROM <table>
        where_clause: Additional filter ANDed onto every range
        boundary_query: Query returning (min, max) to use instead of the default
    """

    db: str
    table: str
    num_splits: int = 10
    split_limit: int = 100
    split_by_column: str | None = None
    select_query: str | None = None
    where_clause: str | None = None
    boundary_query: str | None = None

    @property
    def qualified_name(self) -> str:
        return f"{self.db}.{self.table}"


@dataclass
class SnapshotResult:
    """Result of a snapshot.

    Attributes:
        success: Whether the table was fully copied and every batch accepted
        state: Terminal state of the plan run
        split_column: Column the table was split on, if any
        split_count: Number of ranges read
        log_position: Captured binlog coordinate, if any
        statements_executed: Statements that completed
        events_delivered: Events accepted by the handler
        duration_ms: Plan run duration
        failure: Why the snapshot did not succeed
        error: Error message if failed
    """

    success: bool
    state: RunState
    split_column: str | None
    split_count: int
    log_position: LogPosition | None
    statements_executed: int
    events_delivered: int
    duration_ms: int
    failure: SnapshotFailure | None = None
    error: str | None = None


class TableSnapshotter:
    """Takes consistent initial snapshots of single tables.

    Attributes:
        connection: Connection owned by this snapshotter
        catalog: Table metadata source (information_schema by default)
        consistency: Statement sequence around the data reads

    Example:
        >>> snapshotter = TableSnapshotter(conn)
        >>> result = await snapshotter.snapshot(
        ...     SnapshotRequest(db="shop", table="orders", num_splits=4),
        ...     handler=lambda batch: publish(batch),
        ... )
        >>> print(result.log_position)
        mysql-bin.000003:154
    """

    def __init__(
        self,
        connection: Connection,
        catalog: ColumnCatalog | None = None,
        consistency: ConsistencyMode = ConsistencyMode.UNLOCKED,
    ) -> None:
        self.connection = connection
        self.catalog = catalog or InformationSchemaCatalog(connection)
        self.consistency = consistency

        self._selector = SplitColumnSelector(self.catalog)
        self._planner = QueryPlanBuilder(consistency)
        self._snapshot_count = 0
        self._failure_count = 0

    @property
    def stats(self) -> dict[str, int]:
        return {"snapshots": self._snapshot_count, "failures": self._failure_count}

    async def snapshot(self, request: SnapshotRequest, handler: EventHandler) -> SnapshotResult:
        """Snapshot one table.

        Args:
            request: Table and split parameters
            handler: Receives event batches; returning False stops the snapshot

        Returns:
            SnapshotResult describing the outcome
        """
        logger.info(
            f"Starting snapshot of {request.qualified_name}",
            extra={
                "db": request.db,
                "table": request.table,
                "num_splits": request.num_splits,
                "split_limit": request.split_limit,
                "consistency": self.consistency.value,
            },
        )
        self._snapshot_count += 1

        failure: SnapshotFailure | None = None
        error: str | None = None
        column: ColumnDescriptor | None = None
        splits: list[InputSplit] = []

        try:
            column = await self._selector.require(
                request.db, request.table, request.split_by_column
            )
            splits = await self._splits_for(request, column)
        except (ColumnResolutionError, UnsupportedSplitTypeError) as e:
            failure = (
                SnapshotFailure.COLUMN_RESOLUTION
                if isinstance(e, ColumnResolutionError)
                else SnapshotFailure.UNSUPPORTED_SPLIT_TYPE
            )
            error = e.message
            logger.error(
                f"{e.message}, snapshot will only capture the binlog position",
                extra={"db": request.db, "table": request.table, "code": e.code},
            )
        except QueryExecutionError as e:
            # Connection unusable before planning; nothing was captured
            self._failure_count += 1
            logger.error(f"Failed to compute splits: {e}", extra={"sql": e.sql})
            return SnapshotResult(
                success=False,
                state=RunState.FAILED,
                split_column=column.name if column else None,
                split_count=0,
                log_position=None,
                statements_executed=0,
                events_delivered=0,
                duration_ms=0,
                failure=SnapshotFailure.QUERY_EXECUTION,
                error=e.message,
            )

        plan = self._planner.build(
            request.db,
            request.table,
            splits,
            base_query=request.select_query,
            extra_where=request.where_clause,
        )

        orchestrator = SnapshotOrchestrator()
        completed = await orchestrator.run(plan, self.connection, handler)

        if orchestrator.state is RunState.FAILED:
            failure = SnapshotFailure.QUERY_EXECUTION
        elif orchestrator.state is RunState.ABORTED:
            failure = SnapshotFailure.HANDLER_REJECTED
        if orchestrator.error is not None:
            error = orchestrator.error.message

        success = completed and failure is None
        if not success:
            self._failure_count += 1

        result = SnapshotResult(
            success=success,
            state=orchestrator.state,
            split_column=column.name if column else None,
            split_count=len(splits),
            log_position=orchestrator.log_position,
            statements_executed=orchestrator.statements_executed,
            events_delivered=orchestrator.events_delivered,
            duration_ms=orchestrator.duration_ms,
            failure=failure,
            error=error,
        )

        logger.info(
            f"Snapshot of {request.qualified_name} finished",
            extra={
                "success": result.success,
                "state": result.state.value,
                "failure": failure.value if failure else None,
                "log_position": str(result.log_position) if result.log_position else None,
                "splits": result.split_count,
                "events": result.events_delivered,
                "duration_ms": result.duration_ms,
            },
        )
        return result

    async def _splits_for(
        self, request: SnapshotRequest, column: ColumnDescriptor
    ) -> list[InputSplit]:
        logger.info(
            f"Trying to use column '{column.name}' as split-by column",
            extra={"is_primary_key": column.is_primary_key, "column_type": column.type.value},
        )
        if not supports(column.type):
            raise UnsupportedSplitTypeError(column.name, column.type.value)

        splits = await compute_splits(
            self.connection,
            request.db,
            request.table,
            column,
            request.num_splits,
            request.split_limit,
            boundary_query=request.boundary_query,
        )
        if not splits:
            # Empty table: read it whole so rows written after the bounding query are kept
            logger.info(f"No ranges for {request.qualified_name}, reading it unsplit")
            splits = [InputSplit.unbounded()]
        return splits
