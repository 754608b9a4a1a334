"""Tests for telemetry value objects and the error taxonomy."""

from datetime import datetime, UTC

from shipyard.domain.entities.telemetry import LogEntry, LogLevel, MonitoringSample
from shipyard.domain.exceptions import (
    NetworkError,
    NotFoundError,
    ServerError,
    ShipyardError,
    ValidationError,
)


class TestMonitoringSample:
    def test_dict_keys(self):
        sample = MonitoringSample(datetime.now(UTC), 50, 60, 200, 3, 90)
        assert set(sample.to_dict()) == {
            "time", "cpu", "memory", "requests", "errors", "response_time",
        }

    def test_from_dict(self):
        now = datetime.now(UTC)
        sample = MonitoringSample.from_dict({
            "time": now.isoformat(), "cpu": 41, "memory": 50,
            "requests": 120, "errors": 0, "response_time": 75,
        })
        assert sample.time == now
        assert sample.response_time == 75


class TestLogEntry:
    def test_server_optional(self):
        entry = LogEntry("1", LogLevel.INFO, "hello", datetime.now(UTC))
        assert entry.to_dict()["server"] is None

    def test_from_dict_level(self):
        entry = LogEntry.from_dict({
            "id": 4, "level": "warning", "message": "CPU usage above 80%",
            "timestamp": datetime.now(UTC).isoformat(), "server": "tenjack",
        })
        assert entry.id == "4"
        assert entry.level == LogLevel.WARNING
        assert entry.server == "tenjack"


class TestErrorTaxonomy:
    def test_status_codes(self):
        assert NotFoundError("x").status_code == 404
        assert ValidationError("x").status_code == 400
        assert ServerError("x").status_code == 500
        assert NetworkError("x").status_code == 503

    def test_status_code_override(self):
        err = ServerError("bad gateway", status_code=502)
        assert err.status_code == 502
        assert ServerError("x").status_code == 500

    def test_message_and_hierarchy(self):
        err = NotFoundError("deployment '9' not found")
        assert isinstance(err, ShipyardError)
        assert err.message == "deployment '9' not found"
        assert str(err) == "deployment '9' not found"
