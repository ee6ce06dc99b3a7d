"""
Unit tests for the delta engine.
"""

from datetime import timedelta

import pytest

from conftest import BASE_TIME, snapshot_row
from diskmonitor.models import Snapshot
from diskmonitor.monitoring.delta import compute_delta, compute_row_delta, elapsed_between


def _pair(prev_rows, cur_rows, seconds=60):
    previous = Snapshot(timestamp=BASE_TIME, rows=tuple(prev_rows))
    current = Snapshot(timestamp=BASE_TIME + timedelta(seconds=seconds), rows=tuple(cur_rows))
    return previous, current


@pytest.mark.unit
class TestComputeDelta:
    """Test cases for compute_delta."""

    def test_metrics_for_matched_rows(self, sample_snapshots):
        first, second = sample_snapshots
        capture = compute_delta(first, second)

        assert capture.timestamp == second.timestamp
        assert capture.elapsed_seconds == 60.0
        assert len(capture.rows) == 3

        data = capture.rows[0]
        assert data.delta_reads == 600
        assert data.delta_read_stall == 3000
        assert data.read_latency_ms == 5.0
        assert data.write_latency_ms == 3.0
        assert data.read_iops == 10.0
        assert data.write_iops == 1.0
        assert data.read_mbps == 1.0
        assert data.write_mbps == 0.1

        log = capture.rows[1]
        assert log.type_desc == "LOG"
        assert log.read_latency_ms == 0.0
        assert log.write_latency_ms == 1.0
        assert log.write_iops == 10.0
        assert log.write_mbps == 0.5

    def test_idle_file_has_zero_metrics(self, sample_snapshots):
        first, second = sample_snapshots
        idle = compute_delta(first, second).rows[2]

        assert idle.database_name == "HRDB"
        assert not idle.has_io
        assert idle.read_latency_ms == 0.0
        assert idle.read_iops == 0.0

    def test_non_positive_elapsed_uses_one_second(self):
        previous, current = _pair([snapshot_row(reads=10)], [snapshot_row(reads=40)], seconds=0)
        capture = compute_delta(previous, current)

        assert capture.elapsed_seconds == 1.0
        assert capture.rows[0].read_iops == 30.0

    def test_clock_going_backwards_uses_one_second(self):
        previous, current = _pair([snapshot_row(reads=10)], [snapshot_row(reads=12)], seconds=-5)
        assert elapsed_between(previous, current) == 1.0

    def test_counter_regression_clamps_to_zero(self):
        previous, current = _pair(
            [snapshot_row(reads=5000, read_stall_ms=9000, writes=100, bytes_read=10 ** 9)],
            [snapshot_row(reads=10, read_stall_ms=20, writes=150, bytes_read=1000)],
        )
        row = compute_delta(previous, current).rows[0]

        assert row.delta_reads == 0
        assert row.delta_read_stall == 0
        assert row.read_latency_ms == 0.0
        assert row.read_iops == 0.0
        assert row.read_mbps == 0.0
        assert row.delta_writes == 50

    def test_new_file_is_dropped(self):
        previous, current = _pair(
            [snapshot_row()],
            [snapshot_row(reads=10), snapshot_row(database_id=9, database_name="NewDB", reads=99)],
        )
        capture = compute_delta(previous, current)

        assert [r.database_name for r in capture.rows] == ["SalesDB"]

    def test_rows_follow_current_order(self):
        a = snapshot_row(file_id=1)
        b = snapshot_row(file_id=2)
        previous, current = _pair([a, b], [b, a])

        assert [r.file_id for r in compute_delta(previous, current).rows] == [2, 1]

    def test_identity_matches_on_database_and_file_id(self):
        previous, current = _pair(
            [snapshot_row(database_id=5, file_id=1, reads=100)],
            [snapshot_row(database_id=6, file_id=1, reads=500)],
        )
        assert compute_delta(previous, current).rows == ()

    def test_rounding(self):
        previous, current = _pair(
            [snapshot_row()],
            [snapshot_row(reads=3, read_stall_ms=10, bytes_read=1234567)],
            seconds=7,
        )
        row = compute_delta(previous, current).rows[0]

        assert row.read_latency_ms == 3.33
        assert row.read_iops == 0.4
        assert row.read_mbps == 0.17

    def test_all_metrics_non_negative(self, sample_snapshots):
        first, second = sample_snapshots
        for row in compute_delta(second, first).rows:
            for value in (row.read_latency_ms, row.write_latency_ms, row.read_iops,
                          row.write_iops, row.read_mbps, row.write_mbps):
                assert value >= 0


@pytest.mark.unit
def test_compute_row_delta_takes_identity_from_current():
    previous = snapshot_row(path=r"D:\old.mdf")
    current = snapshot_row(path=r"E:\moved.mdf", drive="E")
    row = compute_row_delta(previous, current, 60.0)

    assert row.path == r"E:\moved.mdf"
    assert row.drive == "E"
