"""
Deployment Metrics

Architectural Intent:
- Event bus subscriber turning deployment lifecycle events into metrics
- Keeps the ledger free of any telemetry concern
"""

from __future__ import annotations
import logging

from shipyard.domain.events.deployment_events import (
    DeploymentStartedEvent,
    DeploymentCompletedEvent,
    DeploymentFailedEvent,
)
from shipyard.domain.ports.event_bus_port import EventBusPort
from shipyard.infrastructure.telemetry.otel_exporter import OTELExporter

logger = logging.getLogger(__name__)


def _kind(rollback: bool) -> str:
    return "rollback" if rollback else "deploy"


class DeploymentMetricsRecorder:
    def __init__(self, exporter: OTELExporter) -> None:
        self._exporter = exporter

    def attach(self, bus: EventBusPort) -> None:
        bus.subscribe(DeploymentStartedEvent, self.on_started)
        bus.subscribe(DeploymentCompletedEvent, self.on_completed)
        bus.subscribe(DeploymentFailedEvent, self.on_failed)

    async def on_started(self, event: DeploymentStartedEvent) -> None:
        self._exporter.record_metric(
            "shipyard.deployment.started",
            1.0,
            attributes={
                "deployment_id": event.aggregate_id,
                "version": event.version,
                "kind": _kind(event.rollback),
                "servers": ",".join(event.servers),
            },
        )

    async def on_completed(self, event: DeploymentCompletedEvent) -> None:
        self._exporter.record_metric(
            "shipyard.deployment.completed",
            event.duration_seconds,
            unit="s",
            attributes={
                "deployment_id": event.aggregate_id,
                "version": event.version,
                "kind": _kind(event.rollback),
            },
        )

    async def on_failed(self, event: DeploymentFailedEvent) -> None:
        logger.debug("Deployment %s failed: %s", event.aggregate_id, event.error_message)
        self._exporter.record_metric(
            "shipyard.deployment.failed",
            1.0,
            attributes={
                "deployment_id": event.aggregate_id,
                "version": event.version,
                "kind": _kind(event.rollback),
            },
        )
