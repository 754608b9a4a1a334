"""Global test configuration.

Shared fixtures wiring the fleet registry, lifecycle simulator and deployment
ledger with short lifecycle delays, so completion tests finish quickly.
"""

import asyncio
import logging

import pytest
import pytest_asyncio

from shipyard.application.lifecycle.simulator import LifecycleSimulator
from shipyard.infrastructure.repositories.deployment_ledger import DeploymentLedger
from shipyard.infrastructure.repositories.fleet_registry import FleetRegistry

FAST_DEPLOY_DELAY = 0.05
FAST_ROLLBACK_DELAY = 0.04


@pytest.fixture(autouse=True)
def _reset_shipyard_logging():
    """Drop handlers configure_logging() attached to captured streams."""
    yield
    root = logging.getLogger("shipyard")
    root.handlers.clear()
    root.setLevel(logging.NOTSET)


@pytest.fixture()
def registry() -> FleetRegistry:
    return FleetRegistry()


@pytest_asyncio.fixture()
async def simulator():
    sim = LifecycleSimulator(loop=asyncio.get_running_loop())
    yield sim
    sim.cancel_all()


@pytest_asyncio.fixture()
async def ledger(simulator, registry):
    led = DeploymentLedger(
        simulator,
        default_servers=registry.names(),
        deploy_delay=FAST_DEPLOY_DELAY,
        rollback_delay=FAST_ROLLBACK_DELAY,
    )
    yield led
    led.shutdown()
