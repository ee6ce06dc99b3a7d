"""
Data models for the disk monitor.

Snapshot models hold raw cumulative counters, delta models hold the
normalized per-interval metrics kept in memory and persisted, session models
describe saved capture history, and series models describe the aggregation
output handed to a rendering collaborator.
"""

# Configuration models
from .config import AppConfig, MonitorConfig

# Capture models
from .snapshot import Snapshot, SnapshotRow
from .delta import DeltaCapture, DeltaRow
from .session import (
    APPLICATION_NAME,
    SESSION_FORMAT_VERSION,
    EmptyResult,
    SessionData,
)

# Aggregation output models
from .series import (
    ALL_FILTER,
    METRIC_NAMES,
    METRICS,
    GroupBy,
    GroupInfo,
    MetricSpec,
    SeriesOutput,
)

__all__ = [
    "AppConfig",
    "MonitorConfig",
    "Snapshot",
    "SnapshotRow",
    "DeltaCapture",
    "DeltaRow",
    "APPLICATION_NAME",
    "SESSION_FORMAT_VERSION",
    "EmptyResult",
    "SessionData",
    "ALL_FILTER",
    "METRIC_NAMES",
    "METRICS",
    "GroupBy",
    "GroupInfo",
    "MetricSpec",
    "SeriesOutput",
]
