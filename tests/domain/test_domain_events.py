"""Tests for the domain event base and lifecycle events."""

import json
from datetime import datetime

import pytest

from shipyard.domain.entities.deployment import DeploymentRecord
from shipyard.domain.events import (
    DeploymentCompletedEvent,
    DeploymentFailedEvent,
    DeploymentStartedEvent,
)


class TestDomainEvent:
    def test_each_event_gets_its_own_id(self):
        first = DeploymentStartedEvent(aggregate_id="1")
        second = DeploymentStartedEvent(aggregate_id="1")
        assert first.event_id != second.event_id
        assert len(first.event_id) == 32

    def test_equality_ignores_identity_fields(self):
        assert DeploymentFailedEvent(aggregate_id="1", error_message="x") == \
            DeploymentFailedEvent(aggregate_id="1", error_message="x")

    def test_occurred_at_is_aware_utc(self):
        event = DeploymentCompletedEvent(aggregate_id="1")
        assert isinstance(event.occurred_at, datetime)
        assert event.occurred_at.utcoffset().total_seconds() == 0

    def test_events_are_immutable(self):
        event = DeploymentStartedEvent(aggregate_id="1")
        with pytest.raises(AttributeError):
            event.aggregate_id = "2"

    def test_identity_fields_not_settable(self):
        with pytest.raises(TypeError):
            DeploymentStartedEvent(event_id="fixed")


class TestEventToDict:
    def test_includes_payload_fields(self):
        event = DeploymentStartedEvent(
            aggregate_id="42", version="v2.0.0", servers=("alijack", "tenjack")
        )
        data = event.to_dict()
        assert data["event_type"] == "DeploymentStartedEvent"
        assert data["aggregate_id"] == "42"
        assert data["version"] == "v2.0.0"
        assert data["servers"] == ["alijack", "tenjack"]
        assert data["rollback"] is False
        assert data["event_id"] == event.event_id
        assert data["occurred_at"] == event.occurred_at.isoformat()

    def test_is_json_serializable(self):
        event = DeploymentCompletedEvent(aggregate_id="1", duration_seconds=135.0)
        decoded = json.loads(json.dumps(event.to_dict()))
        assert decoded["duration_seconds"] == 135.0

    def test_record_transition_events(self):
        record = DeploymentRecord.start(
            id="9", version="v2.0.0", servers=("alijack",), commit="abc1234",
            author="system",
        )
        record.fail("simulated failure")
        events = [e.to_dict() for e in record.pull_events()]
        assert [e["event_type"] for e in events] == [
            "DeploymentStartedEvent", "DeploymentFailedEvent",
        ]
        assert events[1]["error_message"] == "simulated failure"
        assert {e["aggregate_id"] for e in events} == {"9"}
