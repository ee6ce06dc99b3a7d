"""
Exception types and error handling helpers.

This module holds the error taxonomy of the monitor (transport failures,
malformed session files, validation failures) together with the small set
of helpers used to log an error consistently and optionally re-raise it.
"""

import logging
import sys
from enum import Enum
from typing import Any, Callable, Optional, TypeVar, Union

_module_logger = logging.getLogger(__name__)

T = TypeVar('T')


class ErrorSeverity(Enum):
    """Severity levels for error handling."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class DiskMonitorError(Exception):
    """Base class for all errors raised by the diskmonitor package."""


class ValidationError(DiskMonitorError):
    """
    A configuration value, CLI argument or time bound was rejected.

    ``field_name`` names the setting or option (e.g.
    ``monitor.collection.interval_seconds`` or ``--from``) so the message can
    point the user at it.
    """

    def __init__(self, message: str, field_name: Optional[str] = None,
                 value: Any = None, severity: ErrorSeverity = ErrorSeverity.ERROR):
        super().__init__(message)
        self.field_name = field_name
        self.value = value
        self.severity = severity


class TransportError(DiskMonitorError):
    """
    Raised by a counter source when the current rows cannot be retrieved.

    The sampler converts this into a failed tick; it never escapes the
    capture loop.
    """


class MalformedSessionError(DiskMonitorError):
    """
    Raised when a persisted session cannot be read or parsed, or holds no captures.

    Attributes:
        source: Path or description of the data that failed to load, if known.
    """

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.source = source


_LOG_LEVELS = {
    ErrorSeverity.DEBUG: logging.DEBUG,
    ErrorSeverity.INFO: logging.INFO,
    ErrorSeverity.WARNING: logging.WARNING,
    ErrorSeverity.ERROR: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}


def handle_error(
    error: Exception,
    context: str,
    severity: Union[ErrorSeverity, str] = ErrorSeverity.ERROR,
    reraise: bool = True,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Log ``error`` as "Error in <context>: <error>" and re-raise it unless told not to.

    DEBUG and CRITICAL entries carry the traceback. ``severity`` may be given
    as an ErrorSeverity or its lowercase name.
    """
    if isinstance(severity, str):
        severity = ErrorSeverity(severity.lower())
    level = _LOG_LEVELS[severity]
    with_traceback = severity in (ErrorSeverity.DEBUG, ErrorSeverity.CRITICAL)

    (logger or _module_logger).log(level, f"Error in {context}: {error}", exc_info=with_traceback)

    if reraise:
        raise error


def validate_with_handler(
    validation_func: Callable[[Any], T],
    value: Any,
    field_name: str,
    context: str,
    logger: Optional[logging.Logger] = None
) -> T:
    """
    Run ``validation_func(value)``; any failure other than ValidationError is
    re-raised as a ValidationError naming ``field_name``.
    """
    try:
        return validation_func(value)
    except ValidationError:
        raise
    except Exception as e:
        message = f"Invalid {field_name} ({context}): {e}"
        if logger:
            logger.error(message)
        raise ValidationError(message, field_name=field_name, value=value) from e


def handle_config_error(error: Exception, context: str, **kwargs) -> None:
    handle_error(error, f"config {context}", **kwargs)


def handle_file_error(error: Exception, context: str, **kwargs) -> None:
    handle_error(error, f"file {context}", **kwargs)


def handle_cli_error(
    error: Exception,
    context: str,
    exit_code: int = 1,
    include_traceback: bool = False,
    **kwargs
) -> None:
    """Log a command failure and exit the process with ``exit_code``."""
    severity = kwargs.pop("severity", ErrorSeverity.ERROR)
    if include_traceback:
        severity = ErrorSeverity.CRITICAL
    handle_error(error, f"CLI {context}", severity=severity, reraise=False, **kwargs)
    sys.exit(exit_code)
