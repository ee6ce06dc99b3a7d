"""
End-to-end tests for the capture -> save -> replay -> export workflow.

The first test drives the library directly with a stepping clock so the
metrics are exact. The second runs the real CLI against a live counter
source for two one-second ticks.
"""

import asyncio
import json

import polars as pl
import pytest

from conftest import BASE_TIME
from diskmonitor.cli.main import main_cli
from diskmonitor.collectors import create_source
from diskmonitor.config import manager, set_config_path
from diskmonitor.models.series import GroupBy
from diskmonitor.monitoring import CaptureState, TickStatus
from diskmonitor.workspace import MonitorWorkspace


@pytest.fixture(autouse=True)
def restore_config_path():
    original = manager._CONFIG_FILE_PATH
    yield
    set_config_path(original)


@pytest.mark.e2e
class TestLibraryWorkflow:

    def test_capture_save_replay(self, growing_source_module, stepping_clock, temp_dir):
        source = create_source(f"{growing_source_module}:GrowingSource")
        workspace = MonitorWorkspace(max_captures=2, interval_seconds=1)
        results = []
        sampler = workspace.create_sampler(source, clock=stepping_clock(), on_tick=results.append)
        sampler.interval_seconds = 0.01

        asyncio.run(sampler.run(max_ticks=3))

        assert sampler.state is CaptureState.STOPPED
        assert [r.status for r in results] == [TickStatus.BASELINE] + [TickStatus.CAPTURED] * 3
        # Retention cap of two keeps the newest captures only.
        assert len(workspace.captures) == 2
        assert results[-1].message == "Cap: 3 | IO detected"
        assert results[-1].active_files == 2
        assert results[-1].total_files == 3

        data_row = workspace.captures[-1].rows[0]
        assert data_row.read_iops == 10.0
        assert data_row.read_latency_ms == 2.0
        assert data_row.read_mbps == 0.08

        path = workspace.save_session(temp_dir / "capture.json")
        document = json.loads(path.read_text(encoding="utf-8"))
        assert document["server"] == "sql-test"
        assert document["capturedAt"] == BASE_TIME.isoformat()
        assert len(document["captures"]) == 2

        replay = MonitorWorkspace()
        replay.load_session(path)
        replay.set_group_by(GroupBy.DRIVE)
        output = replay.render()

        assert output.keys == ["D:", "L:"]
        assert output.series["write_iops"]["L:"] == [(0.0, 5.0), (60.0, 5.0)]
        assert replay.legend(output).items[0].label == "D:"

        export = replay.export(temp_dir / "capture.csv")
        assert pl.read_csv(export).height == 6


@pytest.mark.e2e
class TestCliWorkflow:

    def test_capture_then_replay_and_export(self, config_files, growing_source_module, temp_dir):
        config = str(config_files["config"])
        session_path = temp_dir / "live.json"
        export_path = temp_dir / "live.parquet"
        chart_dir = temp_dir / "charts"

        code = main_cli([
            "--config", config, "capture",
            "--source", f"{growing_source_module}:GrowingSource",
            "--interval", "1", "--ticks", "2",
            "--output", str(session_path),
            "--export", str(export_path),
            "--plot-dir", str(chart_dir),
            "--group-by", "File", "--no-png",
        ])
        assert code == 0

        document = json.loads(session_path.read_text(encoding="utf-8"))
        assert document["intervalSeconds"] == 1
        assert len(document["captures"]) == 2
        rows = document["captures"][0]["rows"]
        assert [r["deltaReads"] for r in rows] == [600, 0, 0]
        assert [r["deltaWrites"] for r in rows] == [60, 300, 0]

        assert pl.read_parquet(export_path).height == 6
        assert len(list(chart_dir.glob("DiskMonitorChart_*.html"))) == 1

        assert main_cli([
            "--config", config, "replay", str(session_path),
            "--group-by", "Database", "--output-dir", str(chart_dir), "--no-png",
        ]) == 0
        assert (chart_dir / "live_database.html").exists()

        csv_path = temp_dir / "live.csv"
        assert main_cli(["--config", config, "export", str(session_path), "--output", str(csv_path)]) == 0
        assert pl.read_csv(csv_path)["Database"].to_list()[:3] == ["SalesDB", "SalesDB", "HRDB"]
