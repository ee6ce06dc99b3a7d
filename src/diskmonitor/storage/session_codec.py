"""
Versioned JSON session files.

The session file is the compatibility surface with files written by earlier
releases, so its key names are fixed:

    {"version", "application", "server", "capturedAt", "intervalSeconds",
     "captures": [{"timestamp", "elapsedSeconds",
                   "rows": [{"databaseName", "fileId", "drive", "path",
                             "typeDesc", "readLatency", "writeLatency",
                             "readIops", "writeIops", "readMbps", "writeMbps",
                             "deltaReads", "deltaReadStall", "deltaWrites",
                             "deltaWriteStall"}]}]}

Reading is lenient in the same way those releases were: unknown keys are
ignored and missing row fields take their zero value. A file is rejected as
malformed when it is not JSON, has another major version, lacks the capture
list or a capture timestamp, or holds no captures.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union

from ..models.delta import DeltaCapture, DeltaRow
from ..models.session import (
    APPLICATION_NAME,
    SESSION_FORMAT_VERSION,
    EmptyResult,
    SessionData,
)
from ..validation import MalformedSessionError, TIME_BOUND_FORMAT

logger = logging.getLogger(__name__)

SUPPORTED_MAJOR_VERSION = SESSION_FORMAT_VERSION.split(".")[0]

# DeltaRow attribute -> JSON key, in file order.
ROW_FIELDS = (
    ("database_name", "databaseName"),
    ("file_id", "fileId"),
    ("drive", "drive"),
    ("path", "path"),
    ("type_desc", "typeDesc"),
    ("read_latency_ms", "readLatency"),
    ("write_latency_ms", "writeLatency"),
    ("read_iops", "readIops"),
    ("write_iops", "writeIops"),
    ("read_mbps", "readMbps"),
    ("write_mbps", "writeMbps"),
    ("delta_reads", "deltaReads"),
    ("delta_read_stall", "deltaReadStall"),
    ("delta_writes", "deltaWrites"),
    ("delta_write_stall", "deltaWriteStall"),
)

_TEXT_FIELDS = {"database_name", "drive", "path", "type_desc"}
_INT_FIELDS = {"file_id", "delta_reads", "delta_read_stall", "delta_writes", "delta_write_stall"}


def _format_timestamp(value: datetime) -> str:
    # Session files carry naive local time.
    if value.tzinfo is not None:
        raise ValueError(f"Session timestamps must be naive local time, got {value.isoformat()}")
    return value.isoformat()


def _parse_timestamp(value: Any, field: str) -> datetime:
    if not isinstance(value, str):
        raise MalformedSessionError(f"'{field}' must be an ISO-8601 string, got {value!r}")
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise MalformedSessionError(f"'{field}' is not a valid ISO-8601 timestamp: {value!r}")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


# --- Encoding ---

def row_to_dict(row: DeltaRow) -> Dict[str, Any]:
    return {key: getattr(row, attr) for attr, key in ROW_FIELDS}


def capture_to_dict(capture: DeltaCapture) -> Dict[str, Any]:
    return {
        "timestamp": _format_timestamp(capture.timestamp),
        "elapsedSeconds": capture.elapsed_seconds,
        "rows": [row_to_dict(row) for row in capture.rows],
    }


def session_to_dict(session: SessionData) -> Dict[str, Any]:
    return {
        "version": session.version,
        "application": session.application,
        "server": session.server,
        "capturedAt": _format_timestamp(session.captured_at),
        "intervalSeconds": session.interval_seconds,
        "captures": [capture_to_dict(capture) for capture in session.captures],
    }


def serialize(
    server: str,
    captured_at: datetime,
    interval_seconds: int,
    captures: Iterable[DeltaCapture],
    indent: Optional[int] = 2,
) -> bytes:
    """
    Encode capture history as a session file.

    Args:
        server: Address of the monitored server
        captured_at: When capturing started
        interval_seconds: Sampling interval in effect
        captures: Oldest-first capture history
        indent: JSON indentation, None for compact output

    Returns:
        UTF-8 encoded JSON document

    Raises:
        ValueError: If a timestamp carries a UTC offset
    """
    session = SessionData(
        server=server,
        captured_at=captured_at,
        interval_seconds=interval_seconds,
        captures=tuple(captures),
        version=SESSION_FORMAT_VERSION,
        application=APPLICATION_NAME,
    )
    return json.dumps(session_to_dict(session), indent=indent, ensure_ascii=False).encode("utf-8")


# --- Decoding ---

def _check_version(version: Any) -> str:
    if not isinstance(version, str) or version.split(".")[0] != SUPPORTED_MAJOR_VERSION:
        raise MalformedSessionError(
            f"Unsupported session version {version!r}; expected {SUPPORTED_MAJOR_VERSION}.x"
        )
    return version


def row_from_dict(data: Any) -> DeltaRow:
    if not isinstance(data, dict):
        raise MalformedSessionError(f"Capture row must be an object, got {type(data).__name__}")
    values: Dict[str, Any] = {}
    for attr, key in ROW_FIELDS:
        raw = data.get(key)
        try:
            if attr in _TEXT_FIELDS:
                values[attr] = "" if raw is None else str(raw)
            elif attr in _INT_FIELDS:
                values[attr] = 0 if raw is None else int(raw)
            else:
                values[attr] = 0.0 if raw is None else float(raw)
        except (TypeError, ValueError, OverflowError):
            raise MalformedSessionError(f"Row field '{key}' has an invalid value: {raw!r}")
    return DeltaRow(**values)


def capture_from_dict(data: Any) -> DeltaCapture:
    if not isinstance(data, dict):
        raise MalformedSessionError(f"Capture must be an object, got {type(data).__name__}")
    if "timestamp" not in data:
        raise MalformedSessionError("Capture is missing 'timestamp'")
    rows = data.get("rows") or []
    if not isinstance(rows, list):
        raise MalformedSessionError("Capture 'rows' must be a list")
    try:
        elapsed = float(data.get("elapsedSeconds") or 0.0)
    except (TypeError, ValueError, OverflowError):
        raise MalformedSessionError(f"Invalid 'elapsedSeconds': {data.get('elapsedSeconds')!r}")
    return DeltaCapture(
        timestamp=_parse_timestamp(data["timestamp"], "timestamp"),
        elapsed_seconds=elapsed,
        rows=tuple(row_from_dict(row) for row in rows),
    )


def session_from_dict(data: Any) -> SessionData:
    if not isinstance(data, dict):
        raise MalformedSessionError("Session file must contain a JSON object")

    version = _check_version(data.get("version", SESSION_FORMAT_VERSION))

    captures = data.get("captures")
    if not isinstance(captures, list):
        raise MalformedSessionError("Session file is missing the 'captures' list")
    if not captures:
        raise MalformedSessionError("No capture data found in file")

    captured_at_raw = data.get("capturedAt")
    parsed_captures = tuple(capture_from_dict(capture) for capture in captures)
    captured_at = (
        _parse_timestamp(captured_at_raw, "capturedAt")
        if captured_at_raw is not None
        else parsed_captures[0].timestamp
    )
    try:
        interval_seconds = int(data.get("intervalSeconds") or 0)
    except (TypeError, ValueError, OverflowError):
        raise MalformedSessionError(f"Invalid 'intervalSeconds': {data.get('intervalSeconds')!r}")

    return SessionData(
        server=str(data.get("server") or ""),
        captured_at=captured_at,
        interval_seconds=interval_seconds,
        captures=parsed_captures,
        version=version,
        application=str(data.get("application") or ""),
    )


def deserialize(data: Union[bytes, str]) -> SessionData:
    """
    Decode a session file.

    Raises:
        MalformedSessionError: If the document is not a usable session
    """
    try:
        document = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedSessionError(f"Session file is not valid JSON: {e}")
    return session_from_dict(document)


# --- Load-time filtering ---

def filter_by_time_range(
    session: SessionData,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> Union[SessionData, EmptyResult]:
    """
    Keep captures with ``start <= timestamp <= end``; either bound may be open.

    Returns:
        A new SessionData with the matching captures, or EmptyResult when
        none match
    """
    kept = tuple(
        capture for capture in session.captures
        if (start is None or capture.timestamp >= start)
        and (end is None or capture.timestamp <= end)
    )
    if not kept:
        bounds = (
            f"{start.strftime(TIME_BOUND_FORMAT) if start else '*'} - "
            f"{end.strftime(TIME_BOUND_FORMAT) if end else '*'}"
        )
        logger.info(f"No captures in range {bounds} ({len(session.captures)} available)")
        return EmptyResult(
            reason="No captures match the specified time range.",
            total_captures=len(session.captures),
        )
    if len(kept) != len(session.captures):
        logger.debug(f"Time filter kept {len(kept)} of {len(session.captures)} capture(s)")
    return SessionData(
        server=session.server,
        captured_at=session.captured_at,
        interval_seconds=session.interval_seconds,
        captures=kept,
        version=session.version,
        application=session.application,
    )


# --- Files ---

def default_session_filename(now: Optional[datetime] = None) -> str:
    return f"DiskMonitorSession_{(now or datetime.now()):%Y%m%d_%H%M%S}.json"


def save_session(
    path: Union[str, Path],
    server: str,
    captured_at: datetime,
    interval_seconds: int,
    captures: Iterable[DeltaCapture],
    indent: Optional[int] = 2,
) -> Path:
    """Write a session file, creating parent directories. Returns the path."""
    target = Path(path)
    payload = serialize(server, captured_at, interval_seconds, captures, indent=indent)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(payload)
    except OSError as e:
        logger.error(f"Failed to save session to {target}: {e}")
        raise
    logger.info(f"Saved session to {target}")
    return target


def load_session(path: Union[str, Path]) -> SessionData:
    """
    Read and decode a session file.

    Raises:
        MalformedSessionError: If the file cannot be read or decoded; the
            error's ``source`` is the path
    """
    source = Path(path)
    try:
        data = source.read_bytes()
    except OSError as e:
        raise MalformedSessionError(f"Failed to read session file: {e}", source=str(source))
    try:
        session = deserialize(data)
    except MalformedSessionError as e:
        raise MalformedSessionError(str(e), source=str(source))
    logger.info(f"Loaded session from {source}: {len(session.captures)} capture(s) of '{session.server}'")
    return session
