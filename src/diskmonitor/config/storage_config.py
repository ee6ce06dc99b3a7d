"""
Storage configuration model and validation.

This module defines the StorageConfig dataclass which groups the settings for
where sessions are written, which tabular export format is produced and how
Parquet output is compressed.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Literal

EXPORT_FORMATS = ("csv", "parquet")
COMPRESSIONS = ("snappy", "gzip", "brotli", "lz4", "zstd")


@dataclass
class StorageConfig:
    """
    Configuration model for session and export storage.

    Attributes:
        session_dir: Directory where session and export files are written
            when the caller does not name a file explicitly.
        export_format: Tabular export format
            - 'csv': one row per file per capture, spreadsheet friendly
            - 'parquet': same rows plus raw deltas, columnar and compressed
        compression: Compression algorithm for Parquet export
        session_indent: JSON indentation for saved sessions; 0 writes a
            compact single line

    Note:
        Compression only applies to Parquet export. Sessions are always JSON.
    """

    session_dir: Path = Path("sessions")
    export_format: Literal["csv", "parquet"] = "csv"
    compression: Literal["snappy", "gzip", "brotli", "lz4", "zstd"] = "snappy"
    session_indent: int = 2

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "StorageConfig":
        """
        Create a StorageConfig instance from a dictionary.

        Raises:
            ValueError: If invalid configuration values are provided
        """
        session_dir = Path(config_dict.get("session_dir", "sessions"))
        export_format = config_dict.get("export_format", "csv")
        compression = config_dict.get("compression", "snappy")
        session_indent = config_dict.get("session_indent", 2)

        if export_format not in EXPORT_FORMATS:
            raise ValueError(f"Unsupported export format: {export_format}")

        if compression not in COMPRESSIONS:
            raise ValueError(f"Unsupported compression algorithm: {compression}")

        if (
            isinstance(session_indent, bool)
            or not isinstance(session_indent, int)
            or session_indent < 0
        ):
            raise ValueError(f"session_indent must be a non-negative integer, got {session_indent}")

        return cls(
            session_dir=session_dir,
            export_format=export_format,
            compression=compression,
            session_indent=session_indent,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert the StorageConfig to a dictionary."""
        return {
            "session_dir": str(self.session_dir),
            "export_format": self.export_format,
            "compression": self.compression,
            "session_indent": self.session_indent,
        }
