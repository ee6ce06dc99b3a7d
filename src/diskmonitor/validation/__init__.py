"""
Validation and error handling for the diskmonitor package.

This module provides input validation, the package's exception taxonomy and
helpers for consistent error reporting across the application.
"""

from .exceptions import (
    DiskMonitorError,
    ErrorSeverity,
    MalformedSessionError,
    TransportError,
    ValidationError,
    handle_cli_error,
    handle_config_error,
    handle_error,
    handle_file_error,
    validate_with_handler,
)
from .validators import (
    INTERVAL_STEPS,
    TIME_BOUND_FORMAT,
    interval_label,
    validate_enum_choice,
    validate_interval_seconds,
    validate_positive_float,
    validate_positive_integer,
    validate_time_bound,
)

__all__ = [
    # Errors
    "DiskMonitorError",
    "ErrorSeverity",
    "MalformedSessionError",
    "TransportError",
    "ValidationError",
    "handle_error",
    "handle_config_error",
    "handle_file_error",
    "handle_cli_error",
    "validate_with_handler",
    # Validators
    "INTERVAL_STEPS",
    "TIME_BOUND_FORMAT",
    "interval_label",
    "validate_enum_choice",
    "validate_interval_seconds",
    "validate_positive_float",
    "validate_positive_integer",
    "validate_time_bound",
]
