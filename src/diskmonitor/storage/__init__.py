"""
Persistence for the disk monitor.

This module provides:
- Versioned JSON session files holding full capture history, with
  time-range filtering on load
- Tabular export of captures through Polars, as CSV for spreadsheets or
  compressed Parquet for analysis, behind a common DataStorage interface
"""

from .base import DataStorage
from .csv_storage import CsvStorage
from .parquet_storage import ParquetStorage
from .factory import create_storage
from .export import (
    EXPORT_COLUMNS,
    captures_to_frame,
    default_export_filename,
    export_captures,
)
from .session_codec import (
    default_session_filename,
    deserialize,
    filter_by_time_range,
    load_session,
    save_session,
    serialize,
)

__all__ = [
    "DataStorage",
    "CsvStorage",
    "ParquetStorage",
    "create_storage",
    "EXPORT_COLUMNS",
    "captures_to_frame",
    "default_export_filename",
    "export_captures",
    "default_session_filename",
    "deserialize",
    "filter_by_time_range",
    "load_session",
    "save_session",
    "serialize",
]
