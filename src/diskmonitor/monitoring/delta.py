"""
Delta computation between two consecutive snapshots.

Cumulative counters only become meaningful as rates: this module matches the
rows of two snapshots by file identity and turns the counter differences into
latency, IOPS and throughput for the elapsed interval.

All numeric edge cases are absorbed locally:
- a non-positive elapsed time is replaced by one second,
- a counter that went backwards (restart, detach/re-attach) yields a zero delta,
- a file without a previous reading is left out until the next interval,
- zero reads or writes yield zero latency.
"""

import logging

from ..models.delta import DeltaCapture, DeltaRow
from ..models.snapshot import Snapshot, SnapshotRow

logger = logging.getLogger(__name__)

BYTES_PER_MB = 1024 * 1024


def _counter_delta(current: int, previous: int) -> int:
    return max(0, current - previous)


def _ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator > 0 else 0.0


def elapsed_between(previous: Snapshot, current: Snapshot) -> float:
    """Seconds between two snapshots, or 1.0 when the clock did not advance."""
    elapsed = (current.timestamp - previous.timestamp).total_seconds()
    if elapsed <= 0:
        logger.debug(f"Non-positive elapsed time {elapsed}s between snapshots, using 1s")
        return 1.0
    return elapsed


def compute_row_delta(previous: SnapshotRow, current: SnapshotRow, elapsed: float) -> DeltaRow:
    """
    Compute the normalized metrics of one file over one interval.

    Args:
        previous: Reading at the start of the interval
        current: Reading at the end of the interval
        elapsed: Interval length in seconds, already clamped to > 0

    Returns:
        DeltaRow carrying identity from ``current``
    """
    d_reads = _counter_delta(current.reads, previous.reads)
    d_read_stall = _counter_delta(current.read_stall_ms, previous.read_stall_ms)
    d_writes = _counter_delta(current.writes, previous.writes)
    d_write_stall = _counter_delta(current.write_stall_ms, previous.write_stall_ms)
    d_bytes_read = _counter_delta(current.bytes_read, previous.bytes_read)
    d_bytes_written = _counter_delta(current.bytes_written, previous.bytes_written)

    return DeltaRow(
        database_name=current.database_name,
        file_id=current.file_id,
        drive=current.drive,
        path=current.path,
        type_desc=current.type_desc,
        read_latency_ms=round(_ratio(d_read_stall, d_reads), 2),
        write_latency_ms=round(_ratio(d_write_stall, d_writes), 2),
        read_iops=round(d_reads / elapsed, 1),
        write_iops=round(d_writes / elapsed, 1),
        read_mbps=round(d_bytes_read / BYTES_PER_MB / elapsed, 2),
        write_mbps=round(d_bytes_written / BYTES_PER_MB / elapsed, 2),
        delta_reads=d_reads,
        delta_read_stall=d_read_stall,
        delta_writes=d_writes,
        delta_write_stall=d_write_stall,
    )


def compute_delta(previous: Snapshot, current: Snapshot) -> DeltaCapture:
    """
    Compute the DeltaCapture for the interval between two snapshots.

    Rows are matched on ``(database_id, file_id)`` and emitted in the order
    of ``current``. Rows with no match in ``previous`` are dropped.

    Args:
        previous: Snapshot at the start of the interval
        current: Snapshot at the end of the interval

    Returns:
        DeltaCapture stamped with the current snapshot's timestamp
    """
    elapsed = elapsed_between(previous, current)
    lookup = previous.by_identity()

    rows = []
    unmatched = 0
    for row in current.rows:
        prior = lookup.get(row.identity)
        if prior is None:
            unmatched += 1
            continue
        rows.append(compute_row_delta(prior, row, elapsed))

    if unmatched:
        logger.debug(f"{unmatched} file(s) had no previous reading and were skipped")

    return DeltaCapture(
        timestamp=current.timestamp,
        elapsed_seconds=elapsed,
        rows=tuple(rows),
    )
