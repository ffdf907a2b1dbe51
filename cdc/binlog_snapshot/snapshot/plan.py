"""
Query plan construction.

A plan is the ordered list of statements one snapshot run executes, each
tagged with what its result means:

    ""                  control statement, result ignored
    "showMasterStatus"  binlog coordinate capture
    "<db>.<table>"      table data

Two statement sequences exist. UNLOCKED only captures the coordinate and
reads the data; it does not guarantee the data and coordinate agree under
concurrent writes. LOCKED takes a global read lock around the capture and
reads inside a REPEATABLE READ transaction.

Invariants:
    - The coordinate capture precedes every data statement
    - The capture is present even when there are no splits
    - Each data statement is preceded by USE <db>
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from ..splitter.base import InputSplit
from .translator import CONTROL_TAG, SHOW_MASTER_STATUS_TAG, table_tag

logger = logging.getLogger(__name__)

TRX_ISOLATION_LEVEL = "SET TRANSACTION ISOLATION LEVEL REPEATABLE READ"
AUTOCOMMIT_OFF = "SET autocommit=0"
FLUSH_TABLES = "FLUSH TABLES"
READ_LOCK = "FLUSH TABLES WITH READ LOCK"
SHOW_MASTER_STATUS = "SHOW MASTER STATUS"
UNLOCK_TABLES = "UNLOCK TABLES"
COMMIT = "COMMIT"


class ConsistencyMode(Enum):
    """Statement sequence used around the data reads."""

    UNLOCKED = "unlocked"
    LOCKED = "locked"


@dataclass(frozen=True)
class QueryPlanEntry:
    """One statement of a plan.

    Attributes:
        scope_tag: Meaning of the statement's result
        sql: Statement text
    """

    scope_tag: str
    sql: str

    @property
    def is_control(self) -> bool:
        return self.scope_tag == CONTROL_TAG


class QueryPlanBuilder:
    """Builds the statement sequence for one table.

    Example:
        >>> builder = QueryPlanBuilder()
        >>> plan = builder.build("shop", "orders", splits)
        >>> plan[0]
        QueryPlanEntry(scope_tag='showMasterStatus', sql='SHOW MASTER STATUS')
    """

    def __init__(self, consistency: ConsistencyMode = ConsistencyMode.UNLOCKED) -> None:
        self.consistency = consistency

    def build(
        self,
        db: str,
        table: str,
        splits: Sequence[InputSplit],
        base_query: str | None = None,
        extra_where: str | None = None,
    ) -> list[QueryPlanEntry]:
        """Build the plan.

        Args:
            db: Database name
            table: Table name
            splits: Ordered splits; empty means no data is read
            base_query: SELECT to use instead of SELECT * FROM <table>
            extra_where: Additional filter ANDed onto every range

        Returns:
            Ordered plan entries
        """
        data = self.data_entries(db, table, splits, base_query, extra_where)

        if self.consistency is ConsistencyMode.LOCKED:
            return [
                QueryPlanEntry(CONTROL_TAG, TRX_ISOLATION_LEVEL),
                QueryPlanEntry(CONTROL_TAG, AUTOCOMMIT_OFF),
                QueryPlanEntry(CONTROL_TAG, FLUSH_TABLES),
                QueryPlanEntry(CONTROL_TAG, READ_LOCK),
                QueryPlanEntry(SHOW_MASTER_STATUS_TAG, SHOW_MASTER_STATUS),
                QueryPlanEntry(CONTROL_TAG, UNLOCK_TABLES),
                *data,
                QueryPlanEntry(CONTROL_TAG, COMMIT),
            ]

        return [QueryPlanEntry(SHOW_MASTER_STATUS_TAG, SHOW_MASTER_STATUS), *data]

    def data_entries(
        self,
        db: str,
        table: str,
        splits: Sequence[InputSplit],
        base_query: str | None = None,
        extra_where: str | None = None,
    ) -> list[QueryPlanEntry]:
        """Build the USE / SELECT pairs for each split."""
        if not splits:
            return []

        query = select_query(table, base_query)
        extra = f" AND ({extra_where.strip()})" if extra_where and extra_where.strip() else ""
        tag = table_tag(db, table)

        entries = []
        for split in splits:
            entries.append(QueryPlanEntry(CONTROL_TAG, f"USE {db}"))
            entries.append(QueryPlanEntry(tag, f"{query} WHERE {split.where()}{extra}"))
        return entries


def select_query(table: str, base_query: str | None = None) -> str:
    """The SELECT each range is appended to."""
    if base_query:
        logger.info(f"Using user provided select query: {base_query}")
        return base_query
    query = f"SELECT * FROM {table}"
    logger.info(f"Using built in select query: {query}")
    return query
