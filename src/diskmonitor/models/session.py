"""
Persisted session models.

SessionData is the only external representation of capture history. It is
produced on demand when saving and consumed when replaying a capture file.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Tuple

from .delta import DeltaCapture

SESSION_FORMAT_VERSION = "1.0"
APPLICATION_NAME = "diskmonitor"


@dataclass(frozen=True)
class SessionData:
    """
    A saved capture session.

    Attributes:
        version: Format version tag of the file the session came from.
        application: Free-form name of the producing application.
        server: Address of the monitored server.
        captured_at: When capturing started.
        interval_seconds: Sampling interval in effect when saved.
        captures: Ordered capture history.
    """

    server: str
    captured_at: datetime
    interval_seconds: int
    captures: Tuple[DeltaCapture, ...]
    version: str = SESSION_FORMAT_VERSION
    application: str = APPLICATION_NAME


@dataclass(frozen=True)
class EmptyResult:
    """
    Returned instead of a session when a load-time filter matched nothing.

    This is an expected outcome, distinct from a malformed or unreadable
    file, and callers are expected to leave their current state untouched.
    """

    reason: str
    total_captures: int = 0
