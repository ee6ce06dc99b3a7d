"""
CSV export backend using Polars.

The CSV layout is meant to open directly in a spreadsheet: timestamps are
written as ``YYYY-MM-DD HH:MM:SS`` and only the columns listed in
``quoted_columns`` are wrapped in double quotes (file paths may contain
commas). Other text columns are written bare.
"""

import logging
from pathlib import Path
from typing import Iterable

import polars as pl

from .base import DataStorage

logger = logging.getLogger(__name__)

CSV_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


class CsvStorage(DataStorage):
    """Plain-text export of capture history."""

    extension = "csv"

    def __init__(self, quoted_columns: Iterable[str] = (), datetime_format: str = CSV_DATETIME_FORMAT):
        self.quoted_columns = tuple(quoted_columns)
        self.datetime_format = datetime_format

    def _prepare(self, df: pl.DataFrame) -> pl.DataFrame:
        quoted = [name for name in self.quoted_columns if name in df.columns]
        if not quoted:
            return df
        return df.with_columns(
            [
                (pl.lit('"') + pl.col(name).cast(pl.Utf8).str.replace_all('"', '""', literal=True) + pl.lit('"')).alias(name)
                for name in quoted
            ]
        )

    def save_dataframe(self, df: pl.DataFrame, path: str) -> None:
        try:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            self._prepare(df).write_csv(
                path,
                quote_style="never",
                datetime_format=self.datetime_format,
            )
        except Exception as e:
            logger.error(f"Failed to write {len(df)} capture rows to {path}: {e}")
            raise
        logger.debug(f"Wrote {len(df)} capture rows to {path}")
