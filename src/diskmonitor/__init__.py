"""
DiskMonitor: per-database-file I/O metrics capture and analysis.

This package samples the cumulative I/O counters of every database file on a
monitored server, turns them into per-interval latency, IOPS and throughput,
and keeps a bounded history that can be grouped, charted, saved and replayed.

The package is organized into specialized modules:
- config: Configuration management and validation
- models: Data structures and type definitions
- validation: Input validation and error handling
- collectors: Counter source interface to the server transport
- monitoring: Delta engine, retention buffer, capture sampler and diagnostics
- analysis: Grouping, colour assignment, legend and view toggles
- storage: Session files and tabular export
- workspace: Capture history together with its display state
- plotter: Plotly rendering of series output
- cli: Command-line interface

Usage:
    From command line:
        diskmonitor capture --source mypackage.sources:fetch_rows --ticks 10
        diskmonitor replay sessions/DiskMonitorSession_20240101_120000.json

    Programmatically:
        from diskmonitor import MonitorWorkspace, get_config
        workspace = MonitorWorkspace.from_config(get_config().monitor)
        sampler = workspace.create_sampler(source)
        await sampler.run()
        output = workspace.render()
"""

# Main interfaces
from .config import get_config, clear_config_cache, set_config_path
from .workspace import MonitorWorkspace
from .cli import main_cli

# Model classes for external use
from .models import (
    AppConfig,
    MonitorConfig,
    Snapshot,
    SnapshotRow,
    DeltaCapture,
    DeltaRow,
    SessionData,
    EmptyResult,
    GroupBy,
    SeriesOutput,
)

# Capture pipeline
from .collectors import AbstractCounterSource, CallableCounterSource
from .monitoring import CaptureSampler, RetentionBuffer, compute_delta

# Analysis
from .analysis import ColorRegistry, ViewState, build_series

# Validation utilities
from .validation import (
    MalformedSessionError,
    TransportError,
    ValidationError,
)

__version__ = "1.0.0"

__all__ = [
    # Main interfaces
    "get_config",
    "clear_config_cache",
    "set_config_path",
    "MonitorWorkspace",
    "main_cli",
    # Models
    "AppConfig",
    "MonitorConfig",
    "Snapshot",
    "SnapshotRow",
    "DeltaCapture",
    "DeltaRow",
    "SessionData",
    "EmptyResult",
    "GroupBy",
    "SeriesOutput",
    # Capture pipeline
    "AbstractCounterSource",
    "CallableCounterSource",
    "CaptureSampler",
    "RetentionBuffer",
    "compute_delta",
    # Analysis
    "ColorRegistry",
    "ViewState",
    "build_series",
    # Validation
    "MalformedSessionError",
    "TransportError",
    "ValidationError",
]
