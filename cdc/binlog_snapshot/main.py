"""
binlog-snapshot - Main entry point.

Takes the initial snapshot of one MySQL table and writes it to stdout as
JSON lines: first the binlog position, then the table rows range by range.
A binlog replicator started from that position completes the picture.

Usage:
    binlog-snapshot --db shop --table orders [options]
    python -m cdc.binlog_snapshot.main --job-file orders.yaml

Configuration is read from environment variables (see config.py), then an
optional YAML job file, then command line flags.

Exit codes:
    0  snapshot complete
    1  snapshot failed or was stopped by the consumer
    2  invalid configuration

How to change safely:
    - Keep stdout reserved for event lines; logs go to stderr
    - Keep exit codes stable, schedulers key retries off them
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence
from typing import TextIO

import json_log_formatter

from .config import SnapshotServerConfig
from .connection import create_connection
from .errors import ConnectionFailedError
from .snapshot import SnapshotterEvent, TableSnapshotter
from .snapshot.snapshotter import SnapshotResult
from .wire import encode_event

logger = logging.getLogger(__name__)


def setup_logging(config: SnapshotServerConfig, verbose: bool = False) -> None:
    """Configure logging based on configuration.

    Args:
        config: Snapshot configuration
        verbose: Force DEBUG level
    """
    level = logging.DEBUG if verbose else getattr(
        logging, config.observability.log_level.upper(), logging.INFO
    )

    if config.observability.log_format == "json":
        formatter: logging.Formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    # Reduce noise from libraries
    logging.getLogger("aiomysql").setLevel(logging.WARNING)


class JsonLinesWriter:
    """Event handler writing each event as one JSON line.

    Returns False (stopping the snapshot) once the output is gone.
    """

    def __init__(self, out: TextIO) -> None:
        self.out = out
        self.lines = 0

    def __call__(self, batch: Sequence[SnapshotterEvent]) -> bool:
        try:
            for event in batch:
                self.out.write(encode_event(event))
                self.out.write("\n")
                self.lines += 1
            self.out.flush()
        except BrokenPipeError:
            logger.error("Output closed by consumer, stopping snapshot")
            return False
        return True


def build_config(args: argparse.Namespace) -> SnapshotServerConfig:
    """Merge environment, job file and command line into one configuration."""
    config = SnapshotServerConfig.from_env()

    snapshot = config.snapshot
    if args.job_file:
        snapshot = snapshot.with_job_file(args.job_file)
    snapshot = snapshot.merged(
        {
            "db": args.db,
            "table": args.table,
            "num_splits": args.num_splits,
            "split_limit": args.split_limit,
            "split_by": args.split_by,
            "select_query": args.select_query,
            "where_clause": args.where,
            "boundary_query": args.boundary_query,
            "consistency": args.consistency,
        }
    )
    config.snapshot = snapshot
    return config


async def run_snapshot(config: SnapshotServerConfig, out: TextIO) -> SnapshotResult:
    """Connect, snapshot the configured table and disconnect.

    Raises:
        ConnectionFailedError: If the server cannot be reached
    """
    connection = create_connection(config.mysql)
    await connection.connect()
    try:
        snapshotter = TableSnapshotter(
            connection, consistency=config.snapshot.consistency_mode
        )
        return await snapshotter.snapshot(config.snapshot.to_request(), JsonLinesWriter(out))
    finally:
        # Closing the session also releases any lock an aborted plan left behind
        await connection.close()


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Snapshot a MySQL table as JSON lines, correlated with a binlog position"
    )
    parser.add_argument("--db", help="Database name (SNAPSHOT_DB)")
    parser.add_argument("--table", help="Table name (SNAPSHOT_TABLE)")
    parser.add_argument("--job-file", help="YAML file with snapshot settings")
    parser.add_argument("--num-splits", type=int, help="Requested number of ranges")
    parser.add_argument("--split-limit", type=int, help="Upper limit on the number of ranges")
    parser.add_argument("--split-by", help="Split-by column (default: primary key)")
    parser.add_argument("--select-query", help="SELECT to use instead of SELECT * FROM <table>")
    parser.add_argument("--where", help="Additional filter for every range")
    parser.add_argument("--boundary-query", help="Query returning (min, max) of the split column")
    parser.add_argument(
        "--consistency",
        choices=["unlocked", "locked"],
        help="Take a global read lock around the binlog position capture",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point."""
    args = parse_args(argv)

    try:
        config = build_config(args)
        setup_logging(config, verbose=args.verbose)
        config.validate()
    except (ValueError, OSError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(2)

    config.log_config()

    try:
        result = asyncio.run(run_snapshot(config, sys.stdout))
    except ConnectionFailedError as e:
        logger.error(str(e))
        sys.exit(1)

    if result.success:
        logger.info(f"Snapshot complete at binlog position {result.log_position}")
        sys.exit(0)

    logger.error(f"Snapshot failed: {result.error}")
    sys.exit(1)


if __name__ == "__main__":
    main()
