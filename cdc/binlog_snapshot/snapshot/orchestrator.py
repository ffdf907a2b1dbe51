"""
Snapshot plan execution.

The orchestrator walks a query plan on one connection, one statement at a
time, turns tagged results into events and hands each batch to the event
handler. It is a small state machine:

    PENDING -> RUNNING -> DONE      every statement ran, handler accepted all batches
                       -> ABORTED   handler returned False
                       -> FAILED    a statement failed on the connection

Invariants:
    - Statements are issued strictly in plan order, never concurrently
    - A statement is only issued after the previous one's batch was accepted
    - After ABORTED or FAILED no further statement is issued, and nothing is
      undone (held locks are released by whoever planned them, or by closing
      the connection)
    - Failed statements are never retried

How to change safely:
    - Keep handler invocation synchronous; it is the backpressure signal
    - Test abort paths with the in-memory connection's statement log
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from enum import Enum

from ..connection.base import Connection, QueryResult
from ..errors import HandlerRejectedError, QueryExecutionError, SnapshotError
from .events import EventHandler, LogPosition, LogPositionEvent, SnapshotterEvent
from .plan import QueryPlanEntry
from .translator import SHOW_MASTER_STATUS_TAG, translate

logger = logging.getLogger(__name__)


class RunState(Enum):
    """Lifecycle state of an orchestrator run."""

    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"
    ABORTED = "aborted"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (RunState.DONE, RunState.ABORTED, RunState.FAILED)


class SnapshotOrchestrator:
    """Executes a query plan and delivers the resulting events.

    Attributes:
        state: Current run state
        statements_executed: Statements that completed successfully
        events_delivered: Events accepted by the handler
        log_position: Binlog coordinate captured during the run, if any
        error: Why the run ended ABORTED or FAILED

    Example:
        >>> orchestrator = SnapshotOrchestrator()
        >>> ok = await orchestrator.run(plan, conn, lambda batch: sink.send(batch))
        >>> orchestrator.state
        <RunState.DONE: 'done'>
    """

    def __init__(self) -> None:
        self.state = RunState.PENDING
        self.statements_executed = 0
        self.events_delivered = 0
        self.log_position: LogPosition | None = None
        self.error: SnapshotError | None = None
        self.duration_ms = 0

    async def run(
        self,
        plan: Sequence[QueryPlanEntry],
        connection: Connection,
        handler: EventHandler,
    ) -> bool:
        """Execute the plan.

        Args:
            plan: Ordered plan entries
            connection: Connection owned by this run
            handler: Receives each non-empty event batch; False aborts the run

        Returns:
            True if every statement ran and every batch was accepted

        Raises:
            RuntimeError: If this orchestrator is already running
        """
        if self.state is RunState.RUNNING:
            raise RuntimeError("Orchestrator is already running a plan")

        self._reset()
        self.state = RunState.RUNNING
        start = time.monotonic()

        try:
            for index, entry in enumerate(plan):
                logger.info(f"Running query: {entry.sql}")

                try:
                    result = await connection.execute(entry.sql)
                except QueryExecutionError as e:
                    self.error = e
                    self.state = RunState.FAILED
                    logger.error(
                        f"Query failed, aborting snapshot: {e}",
                        extra={"sql": entry.sql, "remaining": len(plan) - index - 1},
                    )
                    return False

                self.statements_executed += 1

                if entry.is_control:
                    continue

                batch = self._translate(entry, result)
                if not batch:
                    continue

                if not handler(batch):
                    remaining = [e.sql for e in plan[index + 1 :]]
                    self.error = HandlerRejectedError(
                        "Event handler rejected a batch",
                        remaining_statements=len(remaining),
                    )
                    self.state = RunState.ABORTED
                    logger.error(
                        "Failed while handling events, aborting",
                        extra={"scope": entry.scope_tag, "left_over_queries": remaining},
                    )
                    return False

                self.events_delivered += len(batch)

            self.state = RunState.DONE
            logger.info(
                "Successfully finished running queries",
                extra={
                    "statements": self.statements_executed,
                    "events": self.events_delivered,
                },
            )
            return True

        finally:
            self.duration_ms = int((time.monotonic() - start) * 1000)
            if not self.state.is_terminal:
                # Handler raised; leave a terminal state behind for inspection
                self.state = RunState.FAILED

    def _translate(self, entry: QueryPlanEntry, result: QueryResult) -> list[SnapshotterEvent]:
        event = translate(entry.scope_tag, result)
        if event is None:
            if entry.scope_tag == SHOW_MASTER_STATUS_TAG:
                logger.warning("SHOW MASTER STATUS returned no rows, is binary logging enabled?")
            return []

        if isinstance(event, LogPositionEvent):
            self.log_position = event.position
            logger.info(f"Captured binlog position {event.position}")

        return [event]

    def _reset(self) -> None:
        self.statements_executed = 0
        self.events_delivered = 0
        self.log_position = None
        self.error = None
        self.duration_ms = 0
