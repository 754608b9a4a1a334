"""Tests for the in-memory EventBus."""

import logging

import pytest

from shipyard.domain.events import (
    DeploymentCompletedEvent,
    DeploymentFailedEvent,
    DeploymentStartedEvent,
)
from shipyard.domain.events.event_base import DomainEvent
from shipyard.infrastructure.event_bus import EventBus


class TestEventBus:
    @pytest.mark.asyncio
    async def test_publish_to_subscriber(self):
        bus = EventBus()
        received = []

        async def handler(event):
            received.append(event)

        bus.subscribe(DeploymentStartedEvent, handler)
        event = DeploymentStartedEvent(aggregate_id="42", version="v2.0.0")
        await bus.publish([event])
        assert received == [event]

    @pytest.mark.asyncio
    async def test_dispatch_by_type(self):
        bus = EventBus()
        started, failed = [], []

        async def on_started(event):
            started.append(event)

        async def on_failed(event):
            failed.append(event)

        bus.subscribe(DeploymentStartedEvent, on_started)
        bus.subscribe(DeploymentFailedEvent, on_failed)
        await bus.publish([
            DeploymentStartedEvent(aggregate_id="1"),
            DeploymentFailedEvent(aggregate_id="1", error_message="simulated failure"),
        ])
        assert len(started) == 1
        assert len(failed) == 1
        assert failed[0].error_message == "simulated failure"

    @pytest.mark.asyncio
    async def test_multiple_handlers_in_order(self):
        bus = EventBus()
        order = []

        async def first(event):
            order.append("first")

        async def second(event):
            order.append("second")

        bus.subscribe(DeploymentStartedEvent, first)
        bus.subscribe(DeploymentStartedEvent, second)
        await bus.publish([DeploymentStartedEvent()])
        assert order == ["first", "second"]

    @pytest.mark.asyncio
    async def test_no_subscribers(self):
        assert await EventBus().publish([DeploymentStartedEvent()]) == 0

    @pytest.mark.asyncio
    async def test_base_class_subscriber_sees_every_event(self):
        bus = EventBus()
        seen, started = [], []

        async def audit(event):
            seen.append(event.event_type)

        async def on_started(event):
            started.append(event)

        bus.subscribe(DomainEvent, audit)
        bus.subscribe(DeploymentStartedEvent, on_started)
        delivered = await bus.publish([
            DeploymentStartedEvent(aggregate_id="1"),
            DeploymentCompletedEvent(aggregate_id="1", duration_seconds=135.0),
        ])
        assert seen == ["DeploymentStartedEvent", "DeploymentCompletedEvent"]
        assert len(started) == 1
        assert delivered == 3

    def test_specific_handlers_run_before_base_handlers(self):
        bus = EventBus()

        async def audit(event):
            pass

        async def on_failed(event):
            pass

        bus.subscribe(DomainEvent, audit)
        bus.subscribe(DeploymentFailedEvent, on_failed)
        assert bus.handlers_for(DeploymentFailedEvent) == [on_failed, audit]
        assert bus.handlers_for(DeploymentStartedEvent) == [audit]

    def test_duplicate_subscription_ignored(self):
        bus = EventBus()

        async def handler(event):
            pass

        bus.subscribe(DeploymentStartedEvent, handler)
        bus.subscribe(DeploymentStartedEvent, handler)
        assert bus.handlers_for(DeploymentStartedEvent) == [handler]

    def test_subscribe_rejects_non_event_type(self):
        async def handler(event):
            pass

        with pytest.raises(TypeError, match="not a DomainEvent"):
            EventBus().subscribe(dict, handler)

    @pytest.mark.asyncio
    async def test_failing_handler_does_not_block_others(self, caplog):
        bus = EventBus()
        received = []

        async def broken(event):
            raise RuntimeError("exporter offline")

        async def healthy(event):
            received.append(event)

        bus.subscribe(DeploymentStartedEvent, broken)
        bus.subscribe(DeploymentStartedEvent, healthy)
        with caplog.at_level(logging.ERROR, logger="shipyard.infrastructure.event_bus"):
            delivered = await bus.publish([DeploymentStartedEvent(aggregate_id="7")])
        assert delivered == 1
        assert len(received) == 1
        failure = next(r for r in caplog.records if "failed on" in r.getMessage())
        assert failure.deployment_id == "7"
        assert str(failure.exc_info[1]) == "exporter offline"
