"""
Counter sources: the boundary between the monitor and the server transport.
"""

from .base import (
    SNAPSHOT_COLUMNS,
    AbstractCounterSource,
    CallableCounterSource,
    records_to_rows,
)
from .factory import create_source

__all__ = [
    "SNAPSHOT_COLUMNS",
    "AbstractCounterSource",
    "CallableCounterSource",
    "records_to_rows",
    "create_source",
]
