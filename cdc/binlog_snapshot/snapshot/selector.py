"""
Split-by column selection.

A table is split on either a caller-named column or its primary key. Only a
single-column primary key qualifies; composite and missing keys leave the
table without a split column.
"""

from __future__ import annotations

import logging

from ..catalog.base import ColumnCatalog, ColumnDescriptor
from ..errors import ColumnResolutionError

logger = logging.getLogger(__name__)


class SplitColumnSelector:
    """Chooses the column a table is partitioned on.

    Attributes:
        catalog: Source of column and primary key metadata
    """

    def __init__(self, catalog: ColumnCatalog) -> None:
        self.catalog = catalog

    async def select(
        self,
        db: str,
        table: str,
        explicit_column_name: str | None = None,
    ) -> ColumnDescriptor | None:
        """Find the split-by column.

        Args:
            db: Database name
            table: Table name
            explicit_column_name: Caller-chosen column (matched case-sensitively)

        Returns:
            The column descriptor, or None if no usable column exists
        """
        if explicit_column_name is not None:
            logger.info(f"Using user provided split by column '{explicit_column_name}'")
            columns = await self.catalog.columns_of(db, table)
            for column in columns:
                if column.name == explicit_column_name:
                    return column
            logger.error(
                f"Could not use user provided column '{explicit_column_name}' as a split-by column",
                extra={"db": db, "table": table, "available": [c.name for c in columns]},
            )
            return None

        logger.info("Searching for primary key to use as split by column")
        key = await self.catalog.primary_key_of(db, table)
        logger.info(f"Found primary key: {key}", extra={"db": db, "table": table})

        if not key:
            logger.error(
                "Table has no primary key to use as a split-by column",
                extra={"db": db, "table": table},
            )
            return None
        if len(key) > 1:
            logger.error(
                f"Composite primary key {key} cannot be used as a split-by column",
                extra={"db": db, "table": table},
            )
            return None

        columns = await self.catalog.columns_of(db, table)
        for column in columns:
            if column.name == key[0]:
                return column

        logger.error(
            f"Primary key column '{key[0]}' missing from column list",
            extra={"db": db, "table": table},
        )
        return None

    async def require(
        self,
        db: str,
        table: str,
        explicit_column_name: str | None = None,
    ) -> ColumnDescriptor:
        """Like select(), but raise when no column is usable.

        Raises:
            ColumnResolutionError: If no usable split-by column exists
        """
        column = await self.select(db, table, explicit_column_name)
        if column is None:
            if explicit_column_name is not None:
                message = f"Column '{explicit_column_name}' not found in {db}.{table}"
            else:
                message = f"No single-column primary key on {db}.{table}"
            raise ColumnResolutionError(
                message, db=db, table=table, column=explicit_column_name
            )
        return column
