"""
Defines the counter source interface and the record-to-row mapping.

This module provides:
- AbstractCounterSource: the boundary to the transport that talks to the
  monitored server. The monitor never issues queries itself; it asks a
  source for the current rows.
- CallableCounterSource: adapts any zero-argument callable into a source.
- records_to_rows: maps result records that use the server's virtual file
  stats column names onto SnapshotRow objects.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, List, Mapping, Optional

from ..models.snapshot import SnapshotRow
from ..validation import TransportError

logger = logging.getLogger(__name__)

# Column names of one virtual file stats result row, in result order.
SNAPSHOT_COLUMNS = (
    "database_id",
    "database_name",
    "file_id",
    "drive_letter",
    "physical_name",
    "type_desc",
    "num_of_reads",
    "io_stall_read_ms",
    "num_of_writes",
    "io_stall_write_ms",
    "num_of_bytes_read",
    "num_of_bytes_written",
)


class AbstractCounterSource(ABC):
    """
    Abstract base class for counter sources.

    Implementations own the connection to the monitored server. fetch_rows()
    may block; the sampler runs it off the event loop with a timeout.
    """

    @property
    def server(self) -> str:
        """Address or display name of the monitored server."""
        return ""

    @abstractmethod
    def fetch_rows(self) -> List[SnapshotRow]:
        """
        Read the cumulative counters of every monitored file.

        Returns:
            The full current set of rows.

        Raises:
            TransportError: If the rows cannot be retrieved.
        """
        pass

    def is_connected(self) -> bool:
        """Whether the underlying connection is still usable."""
        return True

    def close(self) -> None:
        """Release the underlying connection, if any."""
        pass


class CallableCounterSource(AbstractCounterSource):
    """
    Counter source backed by a plain callable.

    The callable may return SnapshotRow objects or mappings keyed by
    SNAPSHOT_COLUMNS; mappings are converted with records_to_rows().
    """

    def __init__(
        self,
        fetch: Callable[[], Iterable[Any]],
        server: str = "",
        is_connected: Optional[Callable[[], bool]] = None,
    ):
        self._fetch = fetch
        self._server = server
        self._is_connected = is_connected

    @property
    def server(self) -> str:
        return self._server

    def fetch_rows(self) -> List[SnapshotRow]:
        """
        Call the wrapped callable and map its records.

        Raises:
            TransportError: If the callable fails or returns rows that cannot
                be mapped; the original error is chained.
        """
        try:
            result = list(self._fetch())
            if result and not isinstance(result[0], SnapshotRow):
                return records_to_rows(result)
            return result
        except TransportError:
            raise
        except Exception as e:
            raise TransportError(f"Counter fetch from '{self._server or 'source'}' failed: {e}") from e

    def is_connected(self) -> bool:
        if self._is_connected is None:
            return True
        return bool(self._is_connected())


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _number(value: Any) -> int:
    return 0 if value is None else int(value)


def records_to_rows(records: Iterable[Mapping[str, Any]]) -> List[SnapshotRow]:
    """
    Convert virtual file stats records into SnapshotRows.

    Missing text columns become empty strings and missing counters zero.

    Args:
        records: Mappings keyed by SNAPSHOT_COLUMNS

    Returns:
        One SnapshotRow per record, in input order
    """
    rows = []
    for record in records:
        rows.append(
            SnapshotRow(
                database_id=_number(record.get("database_id")),
                database_name=_text(record.get("database_name")),
                file_id=_number(record.get("file_id")),
                drive=_text(record.get("drive_letter")),
                path=_text(record.get("physical_name")),
                type_desc=_text(record.get("type_desc")),
                reads=_number(record.get("num_of_reads")),
                read_stall_ms=_number(record.get("io_stall_read_ms")),
                writes=_number(record.get("num_of_writes")),
                write_stall_ms=_number(record.get("io_stall_write_ms")),
                bytes_read=_number(record.get("num_of_bytes_read")),
                bytes_written=_number(record.get("num_of_bytes_written")),
            )
        )
    logger.debug(f"Mapped {len(rows)} counter record(s) to snapshot rows")
    return rows
