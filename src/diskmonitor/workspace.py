"""
The monitor workspace: capture history plus everything derived from it.

MonitorWorkspace owns the retention buffer, the colour registry and the view
toggles, and is the one place that resets them together. Rendering is pure:
render() reads a consistent copy of the buffer and rebuilds series output
from scratch, so it may be called after every tick, filter change or toggle.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union

from .analysis.aggregation import build_series, collect_universe, filter_options
from .analysis.colors import ColorRegistry
from .analysis.legend import Legend, build_legend
from .analysis.view_state import ViewState
from .collectors.base import AbstractCounterSource
from .models.config import MonitorConfig
from .models.delta import DeltaCapture
from .models.series import ALL_FILTER, GroupBy, SeriesOutput
from .models.session import EmptyResult, SessionData
from .monitoring.retention import DEFAULT_MAX_CAPTURES, RetentionBuffer
from .monitoring.sampler import CaptureSampler, TickResult
from .storage import session_codec
from .storage.export import export_captures
from .validation import INTERVAL_STEPS, validate_interval_seconds

logger = logging.getLogger(__name__)


class MonitorWorkspace:
    """
    Capture history with its display state.

    Args:
        max_captures: Retention cap of the capture history
        interval_seconds: Sampling interval recorded in saved sessions
        group_by: Initial grouping dimension
        server: Address of the monitored server
    """

    def __init__(
        self,
        max_captures: int = DEFAULT_MAX_CAPTURES,
        interval_seconds: int = 60,
        group_by: GroupBy = GroupBy.DATABASE,
        server: str = "",
    ):
        self.buffer = RetentionBuffer(max_captures)
        self.colors = ColorRegistry()
        self.view = ViewState()
        self.group_by = group_by
        self.drive_filter: Optional[str] = None
        self.database_filter: Optional[str] = None
        self.server = server
        self.interval_seconds = validate_interval_seconds(interval_seconds)
        self.session_start: Optional[datetime] = None
        self.sampler: Optional[CaptureSampler] = None

    @classmethod
    def from_config(cls, config: MonitorConfig, server: str = "") -> "MonitorWorkspace":
        return cls(
            max_captures=config.max_captures,
            interval_seconds=config.interval_seconds,
            group_by=GroupBy.parse(config.default_group_by),
            server=server,
        )

    # --- Capture ---

    def create_sampler(
        self,
        source: AbstractCounterSource,
        query_timeout_seconds: float = 15.0,
        clock: Callable[[], datetime] = datetime.now,
        on_tick: Optional[Callable[[TickResult], None]] = None,
    ) -> CaptureSampler:
        """Create the sampler that feeds this workspace's buffer."""
        self.sampler = CaptureSampler(
            source=source,
            buffer=self.buffer,
            interval_seconds=self.interval_seconds,
            query_timeout_seconds=query_timeout_seconds,
            clock=clock,
            on_tick=on_tick,
        )
        if source.server:
            self.server = source.server
        self.session_start = clock()
        return self.sampler

    def set_interval(self, seconds: int) -> None:
        self.interval_seconds = validate_interval_seconds(seconds)
        if self.sampler is not None:
            self.sampler.set_interval(self.interval_seconds)

    @property
    def is_capturing(self) -> bool:
        return self.sampler is not None and self.sampler.is_capturing

    @property
    def captures(self) -> Tuple[DeltaCapture, ...]:
        return self.buffer.snapshot_history()

    def clear(self) -> None:
        """
        Drop all captures and the state derived from them.

        Colour indices, hidden series and expanded databases are reset, and
        a running sampler takes a fresh baseline on its next tick.
        """
        self.buffer.clear()
        self.view.reset()
        self.colors.reset()
        if self.sampler is not None:
            self.sampler.reset()
        logger.info("Workspace cleared")

    # --- View ---

    def set_group_by(self, group_by: Union[GroupBy, str]) -> None:
        """Change the grouping; hidden and expanded state do not carry over."""
        new_group_by = group_by if isinstance(group_by, GroupBy) else GroupBy.parse(group_by)
        if new_group_by is not self.group_by:
            self.group_by = new_group_by
            self.view.reset()
            logger.debug(f"Grouping changed to {new_group_by.value}")

    def set_filters(self, drive: Optional[str] = None, database: Optional[str] = None) -> None:
        self.drive_filter = drive
        self.database_filter = database

    def toggle_series(self, key: str) -> bool:
        return self.view.toggle(key)

    def toggle_database(self, database_name: str) -> bool:
        """Hide or show every file of a database in File grouping."""
        universe = collect_universe(
            self.captures, GroupBy.FILE, self.drive_filter, self.database_filter
        )
        keys = [key for key, info in universe.items() if info.database_name == database_name]
        return self.view.toggle_database(keys)

    def toggle_expanded(self, database_name: str) -> bool:
        return self.view.toggle_expanded(database_name)

    def render(self) -> SeriesOutput:
        """Rebuild series output from the current history and toggles."""
        return build_series(
            self.captures,
            self.group_by,
            drive_filter=self.drive_filter,
            database_filter=self.database_filter,
            hidden_keys=self.view.hidden,
            colors=self.colors,
        )

    def legend(self, output: Optional[SeriesOutput] = None) -> Legend:
        return build_legend(output if output is not None else self.render(), self.view, self.colors)

    def filter_options(self) -> Tuple[List[str], List[str]]:
        """Drive and database filter choices, each led by "(All)"."""
        drives, databases = filter_options(self.captures)
        return [ALL_FILTER] + drives, [ALL_FILTER] + databases

    def range_label(self) -> str:
        captures = self.captures
        if not captures:
            return ""
        return f"Range: {captures[0].timestamp:%H:%M:%S} - {captures[-1].timestamp:%H:%M:%S}"

    # --- Sessions ---

    def build_session(self) -> SessionData:
        captures = self.captures
        started = self.session_start or (captures[0].timestamp if captures else datetime.now())
        return SessionData(
            server=self.server,
            captured_at=started,
            interval_seconds=self.interval_seconds,
            captures=captures,
        )

    def save_session(self, path: Union[str, Path], indent: Optional[int] = 2) -> Path:
        """
        Save the capture history as a session file.

        Args:
            path: Target file, or an existing directory to place a default name in
            indent: JSON indentation; 0 or None writes compact output

        Raises:
            ValueError: If there is nothing to save
        """
        session = self.build_session()
        if not session.captures:
            raise ValueError("No captures to save")
        target = Path(path)
        if target.is_dir():
            target = target / session_codec.default_session_filename()
        return session_codec.save_session(
            target,
            server=session.server,
            captured_at=session.captured_at,
            interval_seconds=session.interval_seconds,
            captures=session.captures,
            indent=indent or None,
        )

    def load_session(
        self,
        path: Union[str, Path],
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Union[SessionData, EmptyResult]:
        """
        Replace the workspace contents with a saved session.

        A malformed file raises before anything changes; an empty filter
        result is returned and leaves the workspace untouched.

        Raises:
            MalformedSessionError: If the file cannot be read or decoded
            RuntimeError: If a capture is running
        """
        if self.is_capturing:
            raise RuntimeError("Stop capturing before loading a session")
        session = session_codec.load_session(path)
        return self.apply_session(session, start=start, end=end)

    def apply_session(
        self,
        session: SessionData,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Union[SessionData, EmptyResult]:
        """Filter an already decoded session and, if anything is left, adopt it."""
        filtered = session_codec.filter_by_time_range(session, start, end)
        if isinstance(filtered, EmptyResult):
            return filtered

        self.buffer.replace(filtered.captures)
        self.colors.reset()
        self.view.reset()
        self.drive_filter = None
        self.database_filter = None
        self.server = filtered.server
        self.session_start = filtered.captured_at
        if filtered.interval_seconds in INTERVAL_STEPS:
            self.interval_seconds = filtered.interval_seconds
        logger.info(f"Loaded: {filtered.server} ({len(filtered.captures)} captures)")
        return filtered

    # --- Export ---

    def export(self, path: Union[str, Path], format_type: str = "csv", compression: str = "snappy") -> Path:
        return export_captures(self.captures, path, format_type=format_type, compression=compression)