"""
Unit tests for session file encoding, decoding and time-range filtering.
"""

import json
from datetime import datetime, timedelta, timezone

import pytest

from conftest import BASE_TIME
from diskmonitor.models import EmptyResult, SessionData
from diskmonitor.storage.session_codec import (
    default_session_filename,
    deserialize,
    filter_by_time_range,
    load_session,
    save_session,
    serialize,
)
from diskmonitor.validation import MalformedSessionError


def _document(**overrides):
    document = {
        "version": "1.0",
        "application": "diskmonitor",
        "server": "sql01",
        "capturedAt": "2024-01-01T12:00:00",
        "intervalSeconds": 60,
        "captures": [
            {
                "timestamp": "2024-01-01T12:01:00",
                "elapsedSeconds": 60.0,
                "rows": [{"databaseName": "SalesDB", "fileId": 1, "drive": "D", "readIops": 2.5}],
            }
        ],
    }
    document.update(overrides)
    return json.dumps(document)


@pytest.mark.unit
class TestSerialize:

    def test_key_names(self, sample_captures):
        document = json.loads(serialize("sql01", BASE_TIME, 60, sample_captures))

        assert list(document) == [
            "version", "application", "server", "capturedAt", "intervalSeconds", "captures",
        ]
        assert document["version"] == "1.0"
        assert document["capturedAt"] == "2024-01-01T12:00:00"
        capture = document["captures"][0]
        assert capture["timestamp"] == "2024-01-01T12:01:00"
        assert capture["elapsedSeconds"] == 60.0
        assert list(capture["rows"][0]) == [
            "databaseName", "fileId", "drive", "path", "typeDesc",
            "readLatency", "writeLatency", "readIops", "writeIops", "readMbps", "writeMbps",
            "deltaReads", "deltaReadStall", "deltaWrites", "deltaWriteStall",
        ]

    def test_roundtrip_preserves_history(self, sample_captures):
        session = deserialize(serialize("sql01", BASE_TIME, 60, sample_captures))

        assert session.server == "sql01"
        assert session.captured_at == BASE_TIME
        assert session.interval_seconds == 60
        assert list(session.captures) == sample_captures

    def test_compact_output(self, sample_captures):
        payload = serialize("sql01", BASE_TIME, 60, sample_captures, indent=None)
        assert b"\n" not in payload

    def test_non_ascii_text_is_kept(self):
        payload = serialize("sérveur", BASE_TIME, 60, [])
        assert "sérveur".encode("utf-8") in payload


@pytest.mark.unit
class TestDeserialize:

    def test_lenient_rows(self):
        session = deserialize(_document())
        row = session.captures[0].rows[0]

        assert row.database_name == "SalesDB"
        assert row.read_iops == 2.5
        assert row.path == ""
        assert row.write_latency_ms == 0.0
        assert row.delta_reads == 0

    def test_unknown_keys_ignored(self):
        session = deserialize(_document(comment="exported by hand"))
        assert session.server == "sql01"

    def test_minor_version_accepted(self):
        assert deserialize(_document(version="1.4")).version == "1.4"

    def test_major_version_rejected(self):
        with pytest.raises(MalformedSessionError, match="version"):
            deserialize(_document(version="2.0"))

    def test_invalid_json(self):
        with pytest.raises(MalformedSessionError, match="not valid JSON"):
            deserialize(b"{not json")

    def test_missing_captures(self):
        document = json.loads(_document())
        del document["captures"]
        with pytest.raises(MalformedSessionError):
            deserialize(json.dumps(document))

    def test_zero_captures(self):
        with pytest.raises(MalformedSessionError, match="No capture data"):
            deserialize(_document(captures=[]))

    def test_capture_without_timestamp(self):
        with pytest.raises(MalformedSessionError, match="timestamp"):
            deserialize(_document(captures=[{"rows": []}]))

    def test_invalid_row_value(self):
        captures = [{"timestamp": "2024-01-01T12:01:00", "rows": [{"fileId": "one"}]}]
        with pytest.raises(MalformedSessionError, match="fileId"):
            deserialize(_document(captures=captures))

    @pytest.mark.parametrize("literal", ["1e400", "Infinity", "-Infinity"])
    def test_out_of_range_counter(self, literal):
        data = (
            b'{"version":"1.0","captures":[{"timestamp":"2024-01-01T12:01:00",'
            b'"rows":[{"deltaReads":' + literal.encode() + b'}]}]}'
        )
        with pytest.raises(MalformedSessionError, match="deltaReads"):
            deserialize(data)

    def test_out_of_range_interval(self):
        with pytest.raises(MalformedSessionError, match="intervalSeconds"):
            deserialize(_document(intervalSeconds=float("inf")))

    def test_missing_captured_at_uses_first_capture(self):
        document = json.loads(_document())
        del document["capturedAt"]
        session = deserialize(json.dumps(document))
        assert session.captured_at == datetime(2024, 1, 1, 12, 1, 0)

    def test_aware_timestamps_become_local(self):
        stamp = datetime(2024, 1, 1, 12, 1, 0, tzinfo=timezone.utc)
        captures = [{"timestamp": stamp.isoformat(), "rows": []}]
        session = deserialize(_document(captures=captures))

        parsed = session.captures[0].timestamp
        assert parsed.tzinfo is None
        assert parsed == stamp.astimezone().replace(tzinfo=None)

    def test_serialize_rejects_aware_timestamps(self, sample_captures):
        with pytest.raises(ValueError, match="naive local time"):
            serialize("sql01", BASE_TIME.replace(tzinfo=timezone.utc), 60, sample_captures)


@pytest.mark.unit
class TestFilterByTimeRange:

    def _session(self, captures):
        return SessionData(server="sql01", captured_at=BASE_TIME, interval_seconds=60, captures=tuple(captures))

    def test_open_bounds_keep_everything(self, sample_captures):
        result = filter_by_time_range(self._session(sample_captures))
        assert len(result.captures) == 3

    def test_bounds_are_inclusive(self, sample_captures):
        result = filter_by_time_range(
            self._session(sample_captures),
            start=BASE_TIME + timedelta(seconds=60),
            end=BASE_TIME + timedelta(seconds=120),
        )
        assert [c.timestamp for c in result.captures] == [
            BASE_TIME + timedelta(seconds=60),
            BASE_TIME + timedelta(seconds=120),
        ]
        assert result.server == "sql01"

    def test_no_match_is_empty_result(self, sample_captures):
        result = filter_by_time_range(
            self._session(sample_captures),
            start=BASE_TIME + timedelta(hours=1),
        )
        assert isinstance(result, EmptyResult)
        assert result.reason == "No captures match the specified time range."
        assert result.total_captures == 3


@pytest.mark.unit
class TestSessionFiles:

    def test_default_filename(self):
        assert default_session_filename(BASE_TIME) == "DiskMonitorSession_20240101_120000.json"

    def test_save_and_load(self, temp_dir, sample_captures):
        target = temp_dir / "nested" / "session.json"
        assert save_session(target, "sql01", BASE_TIME, 60, sample_captures) == target

        session = load_session(target)
        assert list(session.captures) == sample_captures

    def test_missing_file(self, temp_dir):
        with pytest.raises(MalformedSessionError) as exc_info:
            load_session(temp_dir / "absent.json")
        assert exc_info.value.source == str(temp_dir / "absent.json")

    def test_malformed_file_reports_source(self, temp_dir):
        target = temp_dir / "broken.json"
        target.write_text("[]", encoding="utf-8")
        with pytest.raises(MalformedSessionError) as exc_info:
            load_session(target)
        assert exc_info.value.source == str(target)
