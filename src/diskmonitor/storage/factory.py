"""
Backend selection for tabular export.
"""

import logging
from typing import Iterable, Literal

from .base import DataStorage
from .csv_storage import CsvStorage
from .parquet_storage import ParquetStorage

logger = logging.getLogger(__name__)


def create_storage(
    format_type: Literal["csv", "parquet"] = "csv",
    compression: Literal["snappy", "gzip", "brotli", "lz4", "zstd"] = "snappy",
    quoted_columns: Iterable[str] = (),
) -> DataStorage:
    """
    Return the export backend for ``format_type``.

    ``compression`` only affects Parquet and ``quoted_columns`` only affects
    CSV; each is ignored by the other backend.

    Raises:
        ValueError: If ``format_type`` is neither 'csv' nor 'parquet'
    """
    if format_type == "csv":
        return CsvStorage(quoted_columns=quoted_columns)
    if format_type == "parquet":
        return ParquetStorage(compression=compression)
    logger.error(f"Unknown export format requested: {format_type!r}")
    raise ValueError(f"Unsupported storage format: {format_type}")
