"""
Periodic capture loop.

This module provides the CaptureSampler, the single producer of capture
history. Each tick reads the current counters from a counter source, turns
them into a DeltaCapture against the previous snapshot and appends it to the
retention buffer.

The sampler is a small state machine:

    IDLE --start--> BASELINE --first delta--> CAPTURING
    BASELINE/CAPTURING --stop / connection loss--> STOPPED
    STOPPED --start--> BASELINE

Ticks are strictly serialized. The blocking fetch runs in a one-thread
executor bounded by ``query_timeout_seconds``; a failed or timed-out fetch
abandons the tick, keeps the previous snapshot and is reported through the
returned TickResult without stopping the loop.
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from ..collectors.base import AbstractCounterSource
from ..models.delta import DeltaCapture
from ..models.snapshot import Snapshot
from ..validation import interval_label, validate_interval_seconds
from .delta import compute_delta
from .retention import RetentionBuffer

logger = logging.getLogger(__name__)


class CaptureState(Enum):
    """Lifecycle state of the sampler."""
    IDLE = "idle"
    BASELINE = "baseline"
    CAPTURING = "capturing"
    STOPPED = "stopped"


class TickStatus(Enum):
    """Outcome of a single sampling tick."""
    BASELINE = "baseline"
    CAPTURED = "captured"
    FAILED = "failed"
    CONNECTION_LOST = "connection_lost"
    STOPPED = "stopped"


@dataclass
class TickResult:
    """
    What happened during one tick, for display by the caller.

    ``capture`` is set only for CAPTURED ticks. The counters summarize that
    capture: files with any I/O, files in the capture, and summed read and
    write deltas.
    """

    status: TickStatus
    message: str
    timestamp: datetime
    capture: Optional[DeltaCapture] = None
    capture_count: int = 0
    active_files: int = 0
    total_files: int = 0
    delta_reads: int = 0
    delta_writes: int = 0

    @property
    def ok(self) -> bool:
        return self.status in (TickStatus.BASELINE, TickStatus.CAPTURED)


class CaptureSampler:
    """
    Single-producer sampler driving Snapshot -> Delta -> RetentionBuffer.

    Args:
        source: Counter source to read rows from
        buffer: Retention buffer receiving the captures
        interval_seconds: Seconds between ticks
        query_timeout_seconds: Upper bound for one fetch
        clock: Returns the timestamp stamped on each snapshot
        on_tick: Optional callback invoked with every TickResult
    """

    def __init__(
        self,
        source: AbstractCounterSource,
        buffer: RetentionBuffer,
        interval_seconds: int = 60,
        query_timeout_seconds: float = 15.0,
        clock: Callable[[], datetime] = datetime.now,
        on_tick: Optional[Callable[[TickResult], None]] = None,
    ):
        self.source = source
        self.buffer = buffer
        self.interval_seconds = validate_interval_seconds(interval_seconds)
        self.query_timeout_seconds = query_timeout_seconds
        self.clock = clock
        self.on_tick = on_tick

        self._state = CaptureState.IDLE
        self._previous: Optional[Snapshot] = None
        self._capture_count = 0
        self._session_start: Optional[datetime] = None
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="CounterFetch")
        self._tick_lock = asyncio.Lock()
        self._stop_event = asyncio.Event()

    # --- Introspection ---

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def is_capturing(self) -> bool:
        return self._state in (CaptureState.BASELINE, CaptureState.CAPTURING)

    @property
    def previous_snapshot(self) -> Optional[Snapshot]:
        return self._previous

    @property
    def capture_count(self) -> int:
        return self._capture_count

    @property
    def session_start(self) -> Optional[datetime]:
        return self._session_start

    def set_interval(self, seconds: int) -> None:
        """Change the tick interval; applies from the next wait."""
        self.interval_seconds = validate_interval_seconds(seconds)
        logger.info(f"Capture interval set to {interval_label(self.interval_seconds)}")

    # --- Lifecycle ---

    async def start(self) -> TickResult:
        """
        Take the baseline snapshot and enter the BASELINE state.

        A failed baseline leaves the sampler STOPPED.

        Raises:
            RuntimeError: If capturing is already in progress
        """
        if self.is_capturing:
            raise RuntimeError("Capture already running - call stop() first")

        self._stop_event.clear()
        self._previous = None
        self._session_start = self.clock()
        self._state = CaptureState.BASELINE
        logger.info(f"Starting capture of '{self.source.server}' every {interval_label(self.interval_seconds)}")

        async with self._tick_lock:
            try:
                snapshot = await self._fetch_snapshot()
            except Exception as e:
                self._state = CaptureState.STOPPED
                return self._emit(self._failure(e, context="baseline"))

            self._previous = snapshot
            return self._emit(TickResult(
                status=TickStatus.BASELINE,
                message=f"Baseline OK, next in {interval_label(self.interval_seconds)}",
                timestamp=snapshot.timestamp,
                capture_count=self._capture_count,
                total_files=len(snapshot.rows),
            ))

    def stop(self) -> None:
        """
        Stop capturing. An in-flight tick still completes; no further tick
        is scheduled.
        """
        if self._state is CaptureState.IDLE:
            logger.warning("Capture not started - nothing to stop")
            return
        self._stop_event.set()
        if self._state is not CaptureState.STOPPED:
            self._state = CaptureState.STOPPED
            logger.info(f"Capture stopped after {self._capture_count} capture(s)")

    def reset(self) -> None:
        """
        Forget the previous snapshot and the capture count.

        While capturing, the next tick becomes a new baseline.
        """
        self._previous = None
        self._capture_count = 0
        if self._state is CaptureState.CAPTURING:
            self._state = CaptureState.BASELINE
        logger.debug("Sampler state reset")

    def close(self) -> None:
        """Stop and release the fetch executor and the source."""
        if self.is_capturing:
            self.stop()
        self._executor.shutdown(wait=False, cancel_futures=True)
        self.source.close()

    # --- Ticks ---

    async def tick(self) -> TickResult:
        """
        Run one sampling tick.

        After stop() the tick does nothing and returns a STOPPED result; the
        buffer and the previous snapshot are left as they were.

        Raises:
            RuntimeError: If start() has not been called
        """
        if self._state is CaptureState.IDLE:
            raise RuntimeError("Capture not started - call start() first")

        async with self._tick_lock:
            if self._state is CaptureState.STOPPED or self._stop_event.is_set():
                logger.debug("Tick skipped, capture is stopped")
                return TickResult(
                    status=TickStatus.STOPPED,
                    message="Capture stopped",
                    timestamp=self.clock(),
                    capture_count=self._capture_count,
                )

            if not self.source.is_connected():
                self.stop()
                logger.warning("Connection lost, capture stopped")
                return self._emit(TickResult(
                    status=TickStatus.CONNECTION_LOST,
                    message="Connection lost",
                    timestamp=self.clock(),
                    capture_count=self._capture_count,
                ))

            try:
                snapshot = await self._fetch_snapshot()
            except Exception as e:
                return self._emit(self._failure(e, context="tick"))

            if self._previous is None:
                self._previous = snapshot
                return self._emit(TickResult(
                    status=TickStatus.BASELINE,
                    message=f"Baseline OK, next in {interval_label(self.interval_seconds)}",
                    timestamp=snapshot.timestamp,
                    capture_count=self._capture_count,
                    total_files=len(snapshot.rows),
                ))

            capture = compute_delta(self._previous, snapshot)
            self.buffer.append(capture)
            self._previous = snapshot
            self._capture_count += 1
            if self._state is CaptureState.BASELINE:
                self._state = CaptureState.CAPTURING

            active = capture.active_files
            io_note = "IO detected" if active > 0 else "No physical IO"
            result = TickResult(
                status=TickStatus.CAPTURED,
                message=f"Cap: {self._capture_count} | {io_note}",
                timestamp=capture.timestamp,
                capture=capture,
                capture_count=self._capture_count,
                active_files=active,
                total_files=len(capture.rows),
                delta_reads=capture.total_delta_reads,
                delta_writes=capture.total_delta_writes,
            )
            logger.debug(
                f"Captures: {result.capture_count} | Active: {active}/{result.total_files} | "
                f"dR:{result.delta_reads} dW:{result.delta_writes}"
            )
            return self._emit(result)

    async def run(self, max_ticks: Optional[int] = None) -> None:
        """
        Start (if needed) and tick every ``interval_seconds`` until stopped.

        Args:
            max_ticks: Stop on its own after this many ticks; None runs until
                stop() is called or the connection is lost
        """
        if not self.is_capturing:
            result = await self.start()
            if not result.ok:
                return

        ticks = 0
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval_seconds)
                break
            except asyncio.TimeoutError:
                pass

            result = await self.tick()
            ticks += 1
            if result.status is TickStatus.CONNECTION_LOST:
                break
            if max_ticks is not None and ticks >= max_ticks:
                self.stop()
                break

        logger.info(f"Capture loop finished after {ticks} tick(s)")

    # --- Helpers ---

    async def _fetch_snapshot(self) -> Snapshot:
        loop = asyncio.get_running_loop()
        rows = await asyncio.wait_for(
            loop.run_in_executor(self._executor, self.source.fetch_rows),
            timeout=self.query_timeout_seconds,
        )
        return Snapshot(timestamp=self.clock(), rows=tuple(rows))

    def _failure(self, error: Exception, context: str) -> TickResult:
        if isinstance(error, asyncio.TimeoutError):
            message = f"Err: counter fetch timed out after {self.query_timeout_seconds}s"
        else:
            message = f"Err: {error}"
        logger.warning(f"Capture {context} failed: {message}")
        return TickResult(
            status=TickStatus.FAILED,
            message=message,
            timestamp=self.clock(),
            capture_count=self._capture_count,
        )

    def _emit(self, result: TickResult) -> TickResult:
        if self.on_tick is not None:
            self.on_tick(result)
        return result
