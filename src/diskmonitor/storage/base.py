"""
Abstract base class for tabular export backends.

Capture history is flattened into a Polars DataFrame by the export layer
and handed to whichever backend the configuration selects, so the rest of
the monitor never depends on a file format.
"""

from abc import ABC, abstractmethod

import polars as pl


class DataStorage(ABC):
    """A file format that capture frames are written to."""

    #: File extension, without the dot, written by this backend.
    extension: str = ""

    @abstractmethod
    def save_dataframe(self, df: pl.DataFrame, path: str) -> None:
        """Write ``df`` to ``path``, replacing any existing file and creating parent directories."""
