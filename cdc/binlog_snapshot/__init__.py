"""
binlog-snapshot - Initial table snapshots for binlog-based change data capture.

Before a binlog replicator starts following a MySQL server, every table it
replicates needs an initial copy of its existing rows, correlated with the
binlog coordinate the copy was taken at. Replaying changes after that
coordinate on top of the copy yields a complete view of the table.

Architecture:
    ┌───────────────┐     ┌──────────────┐     ┌──────────────────┐
    │ ColumnCatalog │────▶│ SplitColumn  │────▶│  RangeSplitter   │
    │ (info schema) │     │  Selector    │     │ (MIN/MAX, ranges)│
    └───────────────┘     └──────────────┘     └────────┬─────────┘
                                                        │
                                                        ▼
    ┌───────────────┐     ┌──────────────┐     ┌──────────────────┐
    │ EventHandler  │◀────│  Snapshot    │◀────│ QueryPlanBuilder │
    │  (consumer)   │     │ Orchestrator │     │ (tagged SQL)     │
    └───────────────┘     └──────────────┘     └──────────────────┘

Invariants:
    - One snapshot run uses exactly one connection, statements strictly in order
    - The binlog coordinate is captured before any table data is read
    - Split ranges are contiguous, non-overlapping and open at both ends
    - The event handler's return value is the only backpressure signal

How to change safely:
    - New split column types get their own splitter strategy in splitter/
    - Keep the event wire format (wire.py) backward compatible
    - Test plan ordering changes against a real server before release
"""

from ._version import __version__

__all__ = ["__version__"]
