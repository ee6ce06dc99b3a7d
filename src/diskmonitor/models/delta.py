"""
Per-interval delta models.

A DeltaCapture is what the monitor keeps in memory and persists: for one
completed interval, the normalized latency, IOPS and throughput of every
file that was present at both ends of the interval, plus the raw counter
deltas needed to re-weight latency when rows are grouped.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Tuple


@dataclass(frozen=True)
class DeltaRow:
    """Normalized metrics of one database file over one interval."""

    database_name: str
    file_id: int
    drive: str
    path: str
    type_desc: str
    # Derived metrics, already rounded for display.
    read_latency_ms: float = 0.0
    write_latency_ms: float = 0.0
    read_iops: float = 0.0
    write_iops: float = 0.0
    read_mbps: float = 0.0
    write_mbps: float = 0.0
    # Raw counter deltas over the interval.
    delta_reads: int = 0
    delta_read_stall: int = 0
    delta_writes: int = 0
    delta_write_stall: int = 0

    @property
    def has_io(self) -> bool:
        """True if the file saw any read or write during the interval."""
        return self.delta_reads != 0 or self.delta_writes != 0


@dataclass(frozen=True)
class DeltaCapture:
    """All delta rows for one completed interval."""

    timestamp: datetime
    elapsed_seconds: float
    rows: Tuple[DeltaRow, ...] = ()

    @property
    def active_files(self) -> int:
        return sum(1 for row in self.rows if row.has_io)

    @property
    def total_delta_reads(self) -> int:
        return sum(row.delta_reads for row in self.rows)

    @property
    def total_delta_writes(self) -> int:
        return sum(row.delta_writes for row in self.rows)
