"""Tests for the DeploymentRecord entity."""

from datetime import datetime, UTC, timedelta

import pytest

from shipyard.domain.entities.deployment import DeploymentRecord, DeploymentStatus
from shipyard.domain.events import (
    DeploymentCompletedEvent,
    DeploymentFailedEvent,
    DeploymentStartedEvent,
)


def _started(**overrides) -> DeploymentRecord:
    kwargs = dict(
        id="1700000000000",
        version="v2.0.0",
        servers=("alijack",),
        commit="abc1234",
        author="system",
    )
    kwargs.update(overrides)
    return DeploymentRecord.start(**kwargs)


class TestDeploymentCreation:
    def test_start_is_running(self):
        record = _started()
        assert record.status == DeploymentStatus.RUNNING
        assert record.completed_at is None
        assert record.duration is None
        assert record.rollback is False
        assert not record.is_terminal

    def test_start_queues_started_event(self):
        record = _started(servers=["alijack", "tenjack"])
        events = record.pull_events()
        assert len(events) == 1
        assert isinstance(events[0], DeploymentStartedEvent)
        assert events[0].aggregate_id == record.id
        assert events[0].servers == ("alijack", "tenjack")

    def test_start_with_original_is_rollback(self):
        record = _started(original_deployment="2")
        assert record.rollback is True
        assert record.original_deployment == "2"

    def test_empty_id_rejected(self):
        with pytest.raises(ValueError, match="id"):
            _started(id="")

    def test_empty_version_rejected(self):
        with pytest.raises(ValueError, match="version"):
            _started(version="")

    def test_rollback_requires_original(self):
        with pytest.raises(ValueError, match="original"):
            DeploymentRecord(
                id="5", version="v1", servers=(), commit="c", author="a", rollback=True
            )


class TestDeploymentTransitions:
    def test_complete(self):
        record = _started()
        record.pull_events()
        record.complete("2m15s")
        assert record.status == DeploymentStatus.SUCCESS
        assert record.duration == "2m15s"
        assert record.completed_at is not None
        assert record.completed_at >= record.started_at
        events = record.pull_events()
        assert len(events) == 1
        assert isinstance(events[0], DeploymentCompletedEvent)
        assert events[0].duration_seconds >= 0

    def test_fail(self):
        record = _started()
        record.pull_events()
        record.fail("simulated failure")
        assert record.status == DeploymentStatus.FAILED
        assert record.error == "simulated failure"
        assert record.completed_at is not None
        events = record.pull_events()
        assert isinstance(events[0], DeploymentFailedEvent)
        assert events[0].error_message == "simulated failure"

    def test_terminal_transition_happens_once(self):
        record = _started()
        record.complete("2m15s")
        with pytest.raises(ValueError):
            record.complete("2m15s")
        with pytest.raises(ValueError):
            record.fail("late")
        assert record.status == DeploymentStatus.SUCCESS

    def test_transition_clears_completion_handle(self):
        record = _started()
        record.completion_handle = object()  # type: ignore[assignment]
        record.fail("boom")
        assert record.completion_handle is None

    def test_updated_at_tracks_completion(self):
        record = _started()
        assert record.updated_at == record.started_at
        record.complete("2m15s")
        assert record.updated_at == record.completed_at

    def test_pull_events_clears_queue(self):
        record = _started()
        assert len(record.pull_events()) == 1
        assert record.pull_events() == []


class TestDeploymentSerialization:
    def test_to_dict_running_omits_optional_fields(self):
        data = _started().to_dict()
        assert data["status"] == "running"
        assert data["completed_at"] is None
        assert data["duration"] is None
        assert data["rollback"] is False
        assert "original_deployment" not in data
        assert "error" not in data

    def test_to_dict_rollback_and_error(self):
        record = _started(original_deployment="2")
        record.fail("simulated failure")
        data = record.to_dict()
        assert data["original_deployment"] == "2"
        assert data["error"] == "simulated failure"
        assert data["rollback"] is True

    def test_from_dict(self):
        started = datetime.now(UTC) - timedelta(minutes=3)
        record = DeploymentRecord.from_dict({
            "id": 42,
            "version": "v1.2.0",
            "status": "success",
            "servers": ["alijack"],
            "started_at": started.isoformat(),
            "completed_at": (started + timedelta(seconds=90)).isoformat(),
            "duration": "1m30s",
            "commit": "a1b2c3d",
            "author": "walson",
            "rollback": False,
        })
        assert record.id == "42"
        assert record.status == DeploymentStatus.SUCCESS
        assert record.servers == ("alijack",)
        assert record.started_at == started
        assert record.is_terminal

    def test_to_dict_is_accepted_by_from_dict(self):
        record = _started(original_deployment="2")
        record.complete("1m45s")
        restored = DeploymentRecord.from_dict(record.to_dict())
        assert restored == record
