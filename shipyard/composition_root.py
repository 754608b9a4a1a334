"""
Composition Root

Architectural Intent:
- Dependency injection composition root for the Shipyard server and client
- Single place where repositories, the simulator, telemetry and the facade
  are wired together
- No global mutable state: every run gets its own registry and ledger

Design Decisions:
- Uses a simple dataclass container instead of a DI framework
- The event loop is bound to the simulator later, when the facade starts
"""

from dataclasses import dataclass
from typing import Optional
import asyncio

from shipyard.application.lifecycle.simulator import LifecycleSimulator
from shipyard.application.sync.synchronizer import StateSynchronizer
from shipyard.infrastructure.adapters.mock_data_source import MockDataSource
from shipyard.infrastructure.client.api_client import ShipyardClient
from shipyard.infrastructure.config import ShipyardConfig
from shipyard.infrastructure.event_bus import EventBus
from shipyard.infrastructure.repositories.deployment_ledger import DeploymentLedger
from shipyard.infrastructure.repositories.fleet_registry import FleetRegistry
from shipyard.infrastructure.telemetry.deployment_metrics import DeploymentMetricsRecorder
from shipyard.infrastructure.telemetry.otel_exporter import OTELConfig, OTELExporter
from shipyard.presentation.web.app import ShipyardWebApp


@dataclass
class ShipyardContainer:
    """DI container holding all wired server-side dependencies."""

    config: ShipyardConfig
    event_bus: EventBus
    exporter: OTELExporter
    data_source: MockDataSource
    registry: FleetRegistry
    simulator: LifecycleSimulator
    ledger: DeploymentLedger
    web_app: ShipyardWebApp


def create_container(
    config: Optional[ShipyardConfig] = None,
    loop: Optional[asyncio.AbstractEventLoop] = None,
) -> ShipyardContainer:
    """Create and wire all server-side dependencies."""
    config = config or ShipyardConfig()

    event_bus = EventBus()
    exporter = OTELExporter(
        OTELConfig(
            endpoint=config.telemetry.endpoint,
            insecure=config.telemetry.insecure,
        )
    )
    DeploymentMetricsRecorder(exporter).attach(event_bus)

    registry = FleetRegistry()
    data_source = MockDataSource(node_names=tuple(registry.names()))
    simulator = LifecycleSimulator(
        loop=loop, failure_rate=config.lifecycle.failure_rate
    )
    ledger = DeploymentLedger(
        simulator,
        default_servers=registry.names(),
        event_bus=event_bus,
        deploy_delay=config.lifecycle.deploy_delay,
        rollback_delay=config.lifecycle.rollback_delay,
    )
    web_app = ShipyardWebApp(registry, ledger, data_source)

    return ShipyardContainer(
        config=config,
        event_bus=event_bus,
        exporter=exporter,
        data_source=data_source,
        registry=registry,
        simulator=simulator,
        ledger=ledger,
        web_app=web_app,
    )


def create_synchronizer(config: Optional[ShipyardConfig] = None) -> StateSynchronizer:
    """Create a client-side synchronizer talking to the configured facade."""
    config = config or ShipyardConfig()
    client = ShipyardClient(config.client.base_url, timeout=config.client.timeout)
    return StateSynchronizer(client, poll_interval=config.client.poll_interval)
