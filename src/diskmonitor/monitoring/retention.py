"""
Bounded in-memory capture history.
"""

import logging
import threading
from collections import deque
from typing import Deque, Iterable, Optional, Tuple

from ..models.delta import DeltaCapture

logger = logging.getLogger(__name__)

DEFAULT_MAX_CAPTURES = 360


class RetentionBuffer:
    """
    Insertion-ordered DeltaCapture history with oldest-first eviction.

    The sampler is the only writer. Readers get an immutable tuple taken
    under the lock, so a render or export never sees a half-applied append
    or clear.
    """

    def __init__(self, max_captures: int = DEFAULT_MAX_CAPTURES):
        if max_captures < 1:
            raise ValueError(f"max_captures must be >= 1, got {max_captures}")
        self.max_captures = max_captures
        self._captures: Deque[DeltaCapture] = deque()
        self._lock = threading.Lock()

    def append(self, capture: DeltaCapture) -> None:
        """Append a capture, evicting the oldest ones beyond the cap."""
        with self._lock:
            self._captures.append(capture)
            evicted = self._evict()
        if evicted:
            logger.debug(f"Evicted {evicted} capture(s) beyond retention cap {self.max_captures}")

    def replace(self, captures: Iterable[DeltaCapture]) -> None:
        """Replace the whole history, keeping only the newest ``max_captures``."""
        with self._lock:
            self._captures = deque(captures)
            evicted = self._evict()
        if evicted:
            logger.info(f"Loaded history exceeded retention cap; dropped {evicted} oldest capture(s)")

    def clear(self) -> None:
        with self._lock:
            self._captures.clear()

    def snapshot_history(self) -> Tuple[DeltaCapture, ...]:
        """Consistent, oldest-first copy of the retained captures."""
        with self._lock:
            return tuple(self._captures)

    def latest(self) -> Optional[DeltaCapture]:
        with self._lock:
            return self._captures[-1] if self._captures else None

    def _evict(self) -> int:
        evicted = 0
        while len(self._captures) > self.max_captures:
            self._captures.popleft()
            evicted += 1
        return evicted

    def __len__(self) -> int:
        with self._lock:
            return len(self._captures)

    def __bool__(self) -> bool:
        return len(self) > 0
