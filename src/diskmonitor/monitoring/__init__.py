"""
Capture pipeline for the diskmonitor package.

This module provides the delta engine that turns two snapshots into
per-interval metrics, the bounded retention buffer holding capture history,
the asyncio capture sampler driving both, and the two-snapshot diagnostic.
"""

from .delta import compute_delta, compute_row_delta, elapsed_between
from .retention import DEFAULT_MAX_CAPTURES, RetentionBuffer
from .sampler import CaptureSampler, CaptureState, TickResult, TickStatus
from .diagnostics import (
    DiagnosticLine,
    DiagnosticReport,
    compare_snapshots,
    run_diagnostic,
    write_report,
)

__all__ = [
    "compute_delta",
    "compute_row_delta",
    "elapsed_between",
    "DEFAULT_MAX_CAPTURES",
    "RetentionBuffer",
    "CaptureSampler",
    "CaptureState",
    "TickResult",
    "TickStatus",
    "DiagnosticLine",
    "DiagnosticReport",
    "compare_snapshots",
    "run_diagnostic",
    "write_report",
]
