"""
Raw counter snapshot models.

A snapshot is one instantaneous reading of the cumulative I/O counters of
every monitored database file. Snapshots are immutable and short lived: the
sampler keeps only the latest one to compare against the next reading.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Tuple


@dataclass(frozen=True)
class SnapshotRow:
    """
    Cumulative I/O counters for a single database file.

    Counters grow monotonically while the file stays attached. A detach and
    re-attach, or a server restart, may reset them to zero.
    """

    database_id: int
    database_name: str
    file_id: int
    drive: str
    path: str
    type_desc: str
    reads: int
    read_stall_ms: int
    writes: int
    write_stall_ms: int
    bytes_read: int
    bytes_written: int

    @property
    def identity(self) -> Tuple[int, int]:
        """Key used to match a file across consecutive snapshots."""
        return (self.database_id, self.file_id)


@dataclass(frozen=True)
class Snapshot:
    """All rows read at one sampling instant."""

    timestamp: datetime
    rows: Tuple[SnapshotRow, ...] = ()

    def by_identity(self) -> Dict[Tuple[int, int], SnapshotRow]:
        """Index rows by ``(database_id, file_id)``; a later duplicate wins."""
        return {row.identity: row for row in self.rows}
