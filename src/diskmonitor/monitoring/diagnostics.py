"""
Two-snapshot diagnostic dump.

Used to answer "is the server doing any physical I/O at all?": two readings
taken a moment apart are compared file by file, without any normalization,
and the raw counter movement is written out as a pipe-separated table.
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union

from ..collectors.base import AbstractCounterSource
from ..models.snapshot import Snapshot
from ..validation import handle_file_error

logger = logging.getLogger(__name__)

DIAGNOSTIC_PAUSE_SECONDS = 1.1
NO_IO_HINT = "No physical IO. Try DBCC DROPCLEANBUFFERS"
HEADER = "Database|FileId|Drive|S1_Reads|S2_Reads|ΔR|S1_Writes|S2_Writes|ΔW"


@dataclass(frozen=True)
class DiagnosticLine:
    """Raw read/write counters of one file in both snapshots."""

    database_name: str
    file_id: int
    drive: str
    first_reads: int
    second_reads: int
    first_writes: int
    second_writes: int

    @property
    def delta_reads(self) -> int:
        return self.second_reads - self.first_reads

    @property
    def delta_writes(self) -> int:
        return self.second_writes - self.first_writes

    @property
    def changed(self) -> bool:
        return self.delta_reads != 0 or self.delta_writes != 0

    def format(self) -> str:
        line = (
            f"{self.database_name}|{self.file_id}|{self.drive}|"
            f"{self.first_reads}|{self.second_reads}|{self.delta_reads}|"
            f"{self.first_writes}|{self.second_writes}|{self.delta_writes}"
        )
        return line + " ***" if self.changed else line


@dataclass(frozen=True)
class DiagnosticReport:
    """Comparison of two snapshots of the same server."""

    server: str
    generated_at: datetime
    first: Snapshot
    second: Snapshot
    lines: Tuple[DiagnosticLine, ...]

    @property
    def changed_count(self) -> int:
        return sum(1 for line in self.lines if line.changed)

    @property
    def elapsed_seconds(self) -> float:
        return (self.second.timestamp - self.first.timestamp).total_seconds()

    def summary(self) -> str:
        """Short result line: active count and a hint when nothing moved."""
        changed = self.changed_count
        verdict = NO_IO_HINT if changed == 0 else f"{changed} files had IO"
        return f"Active: {changed}/{len(self.second.rows)}\n{verdict}"

    def to_text(self) -> str:
        out: List[str] = [
            f"=== Diagnostic @ {self.generated_at:%Y-%m-%d %H:%M:%S} ===",
            f"Server: {self.server}",
            f"Snap1: {self.first.timestamp:%H:%M:%S}.{self.first.timestamp.microsecond // 1000:03d} "
            f"Rows:{len(self.first.rows)}  "
            f"Snap2: {self.second.timestamp:%H:%M:%S}.{self.second.timestamp.microsecond // 1000:03d} "
            f"Rows:{len(self.second.rows)}",
            f"Elapsed: {self.elapsed_seconds:.3f}s",
            "",
            HEADER,
        ]
        out.extend(line.format() for line in self.lines)
        return "\n".join(out) + "\n"

    def default_filename(self) -> str:
        return f"DiskMonitorDiag_{self.generated_at:%Y%m%d_%H%M%S}.txt"


def compare_snapshots(
    first: Snapshot,
    second: Snapshot,
    server: str = "",
    generated_at: Optional[datetime] = None,
) -> DiagnosticReport:
    """
    Compare two snapshots row by row.

    Rows of ``second`` without a match in ``first`` are skipped. Deltas are
    reported as-is, including negative ones after a counter reset.
    """
    lookup = first.by_identity()
    lines = []
    for row in second.rows:
        prior = lookup.get(row.identity)
        if prior is None:
            continue
        lines.append(
            DiagnosticLine(
                database_name=row.database_name,
                file_id=row.file_id,
                drive=row.drive,
                first_reads=prior.reads,
                second_reads=row.reads,
                first_writes=prior.writes,
                second_writes=row.writes,
            )
        )
    return DiagnosticReport(
        server=server,
        generated_at=generated_at or second.timestamp,
        first=first,
        second=second,
        lines=tuple(lines),
    )


def run_diagnostic(
    source: AbstractCounterSource,
    pause_seconds: float = DIAGNOSTIC_PAUSE_SECONDS,
    clock: Callable[[], datetime] = datetime.now,
    sleep: Callable[[float], None] = time.sleep,
) -> DiagnosticReport:
    """
    Read the source twice, ``pause_seconds`` apart, and compare.

    Raises:
        TransportError: If either reading fails
    """
    first = Snapshot(timestamp=clock(), rows=tuple(source.fetch_rows()))
    sleep(pause_seconds)
    second = Snapshot(timestamp=clock(), rows=tuple(source.fetch_rows()))
    report = compare_snapshots(first, second, server=source.server, generated_at=clock())
    logger.info(f"Diagnostic: {report.changed_count}/{len(second.rows)} file(s) changed")
    return report


def write_report(report: DiagnosticReport, output: Union[str, Path]) -> Path:
    """
    Write the report as text.

    Args:
        report: Report to write
        output: Target file, or a directory to place the default file name in

    Returns:
        Path of the written file
    """
    path = Path(output)
    if path.is_dir():
        path = path / report.default_filename()
    try:
        path.write_text(report.to_text(), encoding="utf-8")
    except OSError as e:
        handle_file_error(e, f"writing diagnostic report {path}", logger=logger)
    logger.info(f"Diagnostic report written to {path}")
    return path
