"""
Pytest configuration and shared fixtures for the diskmonitor test suite.

This module provides common fixtures, builders for snapshot and delta data,
and a scripted counter source for driving the sampler without a server.
"""

import shutil
import sys
import tempfile
from datetime import datetime, timedelta
from pathlib import Path
from typing import List

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from diskmonitor.collectors.base import AbstractCounterSource  # noqa: E402
from diskmonitor.models import DeltaCapture, DeltaRow, Snapshot, SnapshotRow  # noqa: E402


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "e2e: mark test as an end-to-end test")


BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)


# ============================================================================
# Builders
# ============================================================================


def snapshot_row(
    database_id: int = 5,
    database_name: str = "SalesDB",
    file_id: int = 1,
    drive: str = "D",
    path: str = r"D:\Data\SalesDB.mdf",
    type_desc: str = "ROWS",
    reads: int = 0,
    read_stall_ms: int = 0,
    writes: int = 0,
    write_stall_ms: int = 0,
    bytes_read: int = 0,
    bytes_written: int = 0,
) -> SnapshotRow:
    return SnapshotRow(
        database_id=database_id,
        database_name=database_name,
        file_id=file_id,
        drive=drive,
        path=path,
        type_desc=type_desc,
        reads=reads,
        read_stall_ms=read_stall_ms,
        writes=writes,
        write_stall_ms=write_stall_ms,
        bytes_read=bytes_read,
        bytes_written=bytes_written,
    )


def delta_row(
    database_name: str = "SalesDB",
    file_id: int = 1,
    drive: str = "D",
    path: str = r"D:\Data\SalesDB.mdf",
    type_desc: str = "ROWS",
    **metrics,
) -> DeltaRow:
    return DeltaRow(
        database_name=database_name,
        file_id=file_id,
        drive=drive,
        path=path,
        type_desc=type_desc,
        **metrics,
    )


class ScriptedSource(AbstractCounterSource):
    """
    Counter source that replays a list of row sets.

    An entry that is an exception instance is raised instead of returned.
    The last entry repeats once the script is exhausted.
    """

    def __init__(self, script: List, server: str = "test-server"):
        self.script = list(script)
        self.calls = 0
        self.connected = True
        self.closed = False
        self._server = server

    @property
    def server(self) -> str:
        return self._server

    def fetch_rows(self):
        entry = self.script[min(self.calls, len(self.script) - 1)]
        self.calls += 1
        if isinstance(entry, Exception):
            raise entry
        return list(entry)

    def is_connected(self) -> bool:
        return self.connected

    def close(self) -> None:
        self.closed = True


class SteppingClock:
    """Clock returning BASE_TIME and advancing a fixed step on every call."""

    def __init__(self, start: datetime = BASE_TIME, step_seconds: float = 60.0):
        self.current = start
        self.step = timedelta(seconds=step_seconds)

    def __call__(self) -> datetime:
        value = self.current
        self.current += self.step
        return value


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def base_time():
    return BASE_TIME


@pytest.fixture
def sample_snapshots():
    """Two snapshots one minute apart covering two databases on two drives."""
    first = Snapshot(
        timestamp=BASE_TIME,
        rows=(
            snapshot_row(reads=1000, read_stall_ms=5000, writes=200, write_stall_ms=400,
                         bytes_read=100 * 1024 * 1024, bytes_written=10 * 1024 * 1024),
            snapshot_row(file_id=2, drive="L", path=r"L:\Logs\SalesDB_log.ldf", type_desc="LOG",
                         writes=500, write_stall_ms=1000, bytes_written=50 * 1024 * 1024),
            snapshot_row(database_id=7, database_name="HRDB", path=r"D:\Data\HRDB.mdf",
                         reads=50, read_stall_ms=100),
        ),
    )
    second = Snapshot(
        timestamp=BASE_TIME + timedelta(seconds=60),
        rows=(
            snapshot_row(reads=1600, read_stall_ms=8000, writes=260, write_stall_ms=580,
                         bytes_read=160 * 1024 * 1024, bytes_written=16 * 1024 * 1024),
            snapshot_row(file_id=2, drive="L", path=r"L:\Logs\SalesDB_log.ldf", type_desc="LOG",
                         writes=1100, write_stall_ms=1600, bytes_written=80 * 1024 * 1024),
            snapshot_row(database_id=7, database_name="HRDB", path=r"D:\Data\HRDB.mdf",
                         reads=50, read_stall_ms=100),
        ),
    )
    return first, second


@pytest.fixture
def sample_captures():
    """
    Three captures a minute apart.

    SalesDB has a data file on D and a log file on L; HRDB has one data file
    on D that only shows I/O in the second capture.
    """
    captures = []
    for i in range(3):
        rows = (
            delta_row(
                read_latency_ms=2.0, write_latency_ms=4.0,
                read_iops=10.0 * (i + 1), write_iops=2.0,
                read_mbps=1.5, write_mbps=0.25,
                delta_reads=600 * (i + 1), delta_read_stall=1200 * (i + 1),
                delta_writes=120, delta_write_stall=480,
            ),
            delta_row(
                file_id=2, drive="L", path=r"L:\Logs\SalesDB_log.ldf", type_desc="LOG",
                write_latency_ms=1.0, write_iops=10.0, write_mbps=0.5,
                delta_writes=600, delta_write_stall=600,
            ),
            delta_row(
                database_name="HRDB", path=r"D:\Data\HRDB.mdf",
                read_latency_ms=8.0 if i == 1 else 0.0,
                read_iops=5.0 if i == 1 else 0.0,
                read_mbps=0.5 if i == 1 else 0.0,
                delta_reads=300 if i == 1 else 0,
                delta_read_stall=2400 if i == 1 else 0,
            ),
        )
        captures.append(
            DeltaCapture(timestamp=BASE_TIME + timedelta(seconds=60 * (i + 1)), elapsed_seconds=60.0, rows=rows)
        )
    return captures


GROWING_SOURCE_MODULE = r'''
from diskmonitor.collectors import AbstractCounterSource
from diskmonitor.models import SnapshotRow


class GrowingSource(AbstractCounterSource):
    """Counters that grow by a fixed amount on every read."""

    def __init__(self):
        self.calls = 0

    @property
    def server(self):
        return "sql-test"

    def fetch_rows(self):
        self.calls += 1
        n = self.calls
        return [
            SnapshotRow(5, "SalesDB", 1, "D", r"D:\Data\SalesDB.mdf", "ROWS",
                        600 * n, 1200 * n, 60 * n, 120 * n, 8192 * 600 * n, 8192 * 60 * n),
            SnapshotRow(5, "SalesDB", 2, "L", r"L:\Logs\SalesDB_log.ldf", "LOG",
                        0, 0, 300 * n, 300 * n, 0, 4096 * 300 * n),
            SnapshotRow(7, "HRDB", 1, "D", r"D:\Data\HRDB.mdf", "ROWS",
                        10, 20, 0, 0, 81920, 0),
        ]


def offline():
    raise OSError("server unreachable")
'''


@pytest.fixture
def growing_source_module(temp_dir, monkeypatch):
    """Importable module exposing GrowingSource, for `module:attribute` references."""
    name = "diskmonitor_growing_source"
    (temp_dir / f"{name}.py").write_text(GROWING_SOURCE_MODULE, encoding="utf-8")
    monkeypatch.syspath_prepend(str(temp_dir))
    yield name
    sys.modules.pop(name, None)


@pytest.fixture
def scripted_source():
    """Factory for ScriptedSource instances."""
    return ScriptedSource


@pytest.fixture
def stepping_clock():
    """Factory for SteppingClock instances."""
    return SteppingClock


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def sample_config_data():
    """Sample `[monitor]` configuration table for testing."""
    return {
        "general": {
            "log_level": "INFO",
            "default_group_by": "Database",
        },
        "collection": {
            "interval_seconds": 5,
            "query_timeout_seconds": 2.5,
            "max_captures": 120,
        },
        "storage": {
            "session_dir": "sessions",
            "export_format": "csv",
            "compression": "snappy",
            "session_indent": 2,
        },
    }


@pytest.fixture
def config_files(temp_dir, sample_config_data):
    """Create a temporary config.toml for testing."""
    import toml

    sample_config_data["storage"]["session_dir"] = str(temp_dir / "sessions")
    config_file = temp_dir / "config.toml"
    with open(config_file, "w") as f:
        toml.dump({"monitor": sample_config_data}, f)

    return {"config": config_file, "dir": temp_dir}
