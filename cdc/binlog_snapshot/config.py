"""
Configuration management for binlog-snapshot.

Configuration comes from environment variables, optionally overlaid by a
YAML job file for the snapshot section, and finally by command line flags.
This module provides typed configuration classes with validation.

Invariants:
    - All settings have sensible defaults for local development, except the
      table to snapshot, which must always be given
    - Secrets are never logged or exposed in error messages

How to change safely:
    - Add new settings with defaults that maintain backward compatibility
    - Keep environment variable names and YAML keys in sync
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import yaml

from .snapshot.plan import ConsistencyMode
from .snapshot.snapshotter import SnapshotRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MySQLConfig:
    """MySQL connection configuration.

    Attributes:
        host: Server host name
        port: Server port
        user: User name (needs SELECT, RELOAD and REPLICATION CLIENT)
        password: Password
        charset: Connection character set
        connect_timeout: Connect timeout in seconds
        autocommit: Session autocommit at connect time
    """

    host: str = "localhost"
    port: int = 3306
    user: str = "root"
    password: str | None = None
    charset: str = "utf8mb4"
    connect_timeout: int = 10
    autocommit: bool = True

    @classmethod
    def from_env(cls) -> MySQLConfig:
        """Load configuration from environment variables."""
        return cls(
            host=os.getenv("MYSQL_HOST", "localhost"),
            port=int(os.getenv("MYSQL_PORT", "3306")),
            user=os.getenv("MYSQL_USER", "root"),
            password=os.getenv("MYSQL_PASSWORD"),
            charset=os.getenv("MYSQL_CHARSET", "utf8mb4"),
            connect_timeout=int(os.getenv("MYSQL_CONNECT_TIMEOUT", "10")),
            autocommit=os.getenv("MYSQL_AUTOCOMMIT", "true").lower() == "true",
        )


@dataclass(frozen=True)
class SnapshotConfig:
    """Snapshot job configuration.

    Attributes:
        db: Database to snapshot
        table: Table to snapshot
        num_splits: Requested number of ranges
        split_limit: Upper limit on the number of ranges
        split_by: Split-by column (default: single-column primary key)
        select_query: SELECT to use instead of SELECT * FROM <table>
        where_clause: Additional filter ANDed onto every range
        boundary_query: Query returning (min, max) to use instead of the default
        consistency: Statement sequence, "unlocked" or "locked"
    """

    db: str = ""
    table: str = ""
    num_splits: int = 10
    split_limit: int = 100
    split_by: str | None = None
    select_query: str | None = None
    where_clause: str | None = None
    boundary_query: str | None = None
    consistency: str = ConsistencyMode.UNLOCKED.value

    @classmethod
    def from_env(cls) -> SnapshotConfig:
        """Load configuration from environment variables."""
        return cls(
            db=os.getenv("SNAPSHOT_DB", ""),
            table=os.getenv("SNAPSHOT_TABLE", ""),
            num_splits=int(os.getenv("SNAPSHOT_NUM_SPLITS", "10")),
            split_limit=int(os.getenv("SNAPSHOT_SPLIT_LIMIT", "100")),
            split_by=os.getenv("SNAPSHOT_SPLIT_BY") or None,
            select_query=os.getenv("SNAPSHOT_SELECT_QUERY") or None,
            where_clause=os.getenv("SNAPSHOT_WHERE") or None,
            boundary_query=os.getenv("SNAPSHOT_BOUNDARY_QUERY") or None,
            consistency=os.getenv("SNAPSHOT_CONSISTENCY", ConsistencyMode.UNLOCKED.value).lower(),
        )

    def merged(self, overrides: dict[str, Any]) -> SnapshotConfig:
        """Return a copy with the given (non-None) fields replaced.

        Raises:
            ValueError: If an override names an unknown field
        """
        known = {f.name for f in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ValueError(f"Unknown snapshot settings: {', '.join(unknown)}")
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def with_job_file(self, path: str | Path) -> SnapshotConfig:
        """Overlay settings from a YAML job file.

        The file holds a mapping of SnapshotConfig field names, either at the
        top level or under a "snapshot" key.

        Raises:
            ValueError: If the file is not a mapping or names unknown fields
        """
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Job file {path} must contain a mapping")
        data = data.get("snapshot", data)
        if not isinstance(data, dict):
            raise ValueError(f"'snapshot' section of {path} must be a mapping")

        return self.merged({str(k).replace("-", "_"): v for k, v in data.items()})

    @property
    def consistency_mode(self) -> ConsistencyMode:
        return ConsistencyMode(self.consistency)

    def to_request(self) -> SnapshotRequest:
        """Build the SnapshotRequest for this job."""
        return SnapshotRequest(
            db=self.db,
            table=self.table,
            num_splits=self.num_splits,
            split_limit=self.split_limit,
            split_by_column=self.split_by,
            select_query=self.select_query,
            where_clause=self.where_clause,
            boundary_query=self.boundary_query,
        )


@dataclass(frozen=True)
class ObservabilityConfig:
    """Logging configuration.

    Attributes:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Log format (json, text)
    """

    log_level: str = "INFO"
    log_format: str = "json"

    @classmethod
    def from_env(cls) -> ObservabilityConfig:
        """Load configuration from environment variables."""
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "json"),
        )


@dataclass
class SnapshotServerConfig:
    """Complete configuration.

    Attributes:
        mysql: Connection configuration
        snapshot: Snapshot job configuration
        observability: Logging configuration
    """

    mysql: MySQLConfig = field(default_factory=MySQLConfig)
    snapshot: SnapshotConfig = field(default_factory=SnapshotConfig)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)

    @classmethod
    def from_env(cls) -> SnapshotServerConfig:
        """Load complete configuration from environment variables.

        Validation is left to the caller, since the job file and command line
        may still fill in required settings.
        """
        return cls(
            mysql=MySQLConfig.from_env(),
            snapshot=SnapshotConfig.from_env(),
            observability=ObservabilityConfig.from_env(),
        )

    def validate(self) -> None:
        """Validate configuration consistency.

        Raises:
            ValueError: If configuration is invalid.
        """
        if not self.snapshot.db:
            raise ValueError("SNAPSHOT_DB is required")
        if not self.snapshot.table:
            raise ValueError("SNAPSHOT_TABLE is required")
        if self.snapshot.num_splits < 1:
            raise ValueError("SNAPSHOT_NUM_SPLITS must be at least 1")
        if self.snapshot.split_limit < 1:
            raise ValueError("SNAPSHOT_SPLIT_LIMIT must be at least 1")

        try:
            ConsistencyMode(self.snapshot.consistency)
        except ValueError:
            raise ValueError(
                f"Invalid SNAPSHOT_CONSISTENCY '{self.snapshot.consistency}'. "
                "Must be one of: unlocked, locked"
            )

        if self.observability.log_format not in ("json", "text"):
            raise ValueError(
                f"Invalid LOG_FORMAT '{self.observability.log_format}'. Must be one of: json, text"
            )

        if self.snapshot.consistency == ConsistencyMode.UNLOCKED.value:
            logger.warning(
                "Unlocked snapshot: rows and binlog position may disagree under concurrent writes"
            )

    def log_config(self) -> None:
        """Log configuration (redacting secrets)."""
        logger.info(
            "Snapshot configuration loaded",
            extra={
                "mysql_address": f"{self.mysql.host}:{self.mysql.port}",
                "mysql_user": self.mysql.user,
                "mysql_password_set": self.mysql.password is not None,
                "db": self.snapshot.db,
                "table": self.snapshot.table,
                "num_splits": self.snapshot.num_splits,
                "split_limit": self.snapshot.split_limit,
                "split_by": self.snapshot.split_by,
                "consistency": self.snapshot.consistency,
                "log_level": self.observability.log_level,
            },
        )
