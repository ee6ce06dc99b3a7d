"""
Parquet export backend using Polars.
"""

import logging
from pathlib import Path
from typing import Literal

import polars as pl

from .base import DataStorage

logger = logging.getLogger(__name__)


class ParquetStorage(DataStorage):
    """
    Columnar, compressed export of capture history.

    Parquet keeps column types (the timestamp stays a datetime, the raw
    counter deltas stay integers), which makes it the better choice for
    loading captures into an analysis notebook.
    """

    extension = "parquet"

    def __init__(self, compression: Literal["snappy", "gzip", "brotli", "lz4", "zstd"] = "snappy"):
        self.compression = compression

    def save_dataframe(self, df: pl.DataFrame, path: str) -> None:
        target = Path(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            df.write_parquet(target, compression=self.compression)
        except Exception as e:
            logger.error(f"Failed to write {len(df)} capture rows to {target}: {e}")
            raise
        logger.debug(f"Wrote {len(df)} capture rows to {target} ({self.compression})")
