"""
Flatten capture history into a table and write it out.

Each DeltaRow of each capture becomes one table row. The CSV layout keeps
the column names spreadsheet users already rely on; Parquet output carries
the raw counter deltas as well.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence, Union

import polars as pl

from ..models.delta import DeltaCapture
from .base import DataStorage
from .factory import create_storage

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = (
    "Timestamp", "Database", "FileId", "Drive", "Path", "Type",
    "ReadLat_ms", "WriteLat_ms", "ReadIOPS", "WriteIOPS", "ReadMBps", "WriteMBps",
)
RAW_DELTA_COLUMNS = ("DeltaReads", "DeltaReadStall", "DeltaWrites", "DeltaWriteStall")

EXPORT_SCHEMA = {
    "Timestamp": pl.Datetime,
    "Database": pl.Utf8,
    "FileId": pl.Int64,
    "Drive": pl.Utf8,
    "Path": pl.Utf8,
    "Type": pl.Utf8,
    "ReadLat_ms": pl.Float64,
    "WriteLat_ms": pl.Float64,
    "ReadIOPS": pl.Float64,
    "WriteIOPS": pl.Float64,
    "ReadMBps": pl.Float64,
    "WriteMBps": pl.Float64,
    "DeltaReads": pl.Int64,
    "DeltaReadStall": pl.Int64,
    "DeltaWrites": pl.Int64,
    "DeltaWriteStall": pl.Int64,
}


def captures_to_frame(captures: Sequence[DeltaCapture], include_raw: bool = False) -> pl.DataFrame:
    """
    One row per file per capture, in capture order.

    Args:
        captures: Oldest-first capture history
        include_raw: Also include the raw counter delta columns

    Returns:
        DataFrame with EXPORT_COLUMNS (plus RAW_DELTA_COLUMNS)
    """
    columns = EXPORT_COLUMNS + (RAW_DELTA_COLUMNS if include_raw else ())
    data = {name: [] for name in columns}

    for capture in captures:
        for row in capture.rows:
            data["Timestamp"].append(capture.timestamp)
            data["Database"].append(row.database_name)
            data["FileId"].append(row.file_id)
            data["Drive"].append(row.drive)
            data["Path"].append(row.path)
            data["Type"].append(row.type_desc)
            data["ReadLat_ms"].append(row.read_latency_ms)
            data["WriteLat_ms"].append(row.write_latency_ms)
            data["ReadIOPS"].append(row.read_iops)
            data["WriteIOPS"].append(row.write_iops)
            data["ReadMBps"].append(row.read_mbps)
            data["WriteMBps"].append(row.write_mbps)
            if include_raw:
                data["DeltaReads"].append(row.delta_reads)
                data["DeltaReadStall"].append(row.delta_read_stall)
                data["DeltaWrites"].append(row.delta_writes)
                data["DeltaWriteStall"].append(row.delta_write_stall)

    return pl.DataFrame(data, schema={name: EXPORT_SCHEMA[name] for name in columns})


def default_export_filename(extension: str = "csv", now: Optional[datetime] = None) -> str:
    return f"DiskMonitorData_{(now or datetime.now()):%Y%m%d_%H%M%S}.{extension}"


def export_captures(
    captures: Sequence[DeltaCapture],
    path: Union[str, Path],
    format_type: str = "csv",
    compression: str = "snappy",
    storage: Optional[DataStorage] = None,
) -> Path:
    """
    Write capture history as CSV or Parquet.

    Args:
        captures: Oldest-first capture history
        path: Target file, or an existing directory to place a default name in
        format_type: 'csv' or 'parquet'; ignored when ``storage`` is given
        compression: Parquet compression
        storage: Backend to use instead of one built from ``format_type``

    Returns:
        Path of the written file

    Raises:
        ValueError: If there is nothing to export
    """
    if not captures:
        raise ValueError("No captures to export")

    backend = storage or create_storage(format_type, compression=compression, quoted_columns=("Path",))
    target = Path(path)
    if target.is_dir():
        target = target / default_export_filename(backend.extension)

    frame = captures_to_frame(captures, include_raw=backend.extension == "parquet")
    backend.save_dataframe(frame, str(target))
    logger.info(f"Exported {len(captures)} capture(s), {len(frame)} row(s) to {target}")
    return target
