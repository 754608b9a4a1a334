"""
Mock Data Source Adapter

Architectural Intent:
- Implements DataSourcePort with pseudo-random telemetry and canned command output
- Stateless apart from the injected random generator, so tests can seed it
- Values are structurally stable but non-deterministic: assert ranges, not values

Design Decisions:
- Gauge ranges are half-open [low, high) integer draws
- Samples are spaced one hour apart and end at "now"
"""

from __future__ import annotations
from datetime import datetime, UTC, timedelta
from typing import Optional
import logging
import random

from shipyard.domain.entities.node import Node
from shipyard.domain.entities.telemetry import LogEntry, LogLevel, MonitoringSample
from shipyard.domain.ports.data_source_port import DataSourcePort

logger = logging.getLogger(__name__)

SAMPLE_SPACING = timedelta(hours=1)

CPU_RANGE = (40, 70)
MEMORY_RANGE = (45, 80)
REQUESTS_RANGE = (100, 400)
ERRORS_RANGE = (0, 10)
RESPONSE_TIME_RANGE = (50, 150)
DISK_RANGE = (20, 60)


def _draw(rng: random.Random, bounds: tuple[int, int]) -> int:
    low, high = bounds
    return rng.randrange(low, high)


def generate_samples(
    count: int,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
) -> list[MonitoringSample]:
    """Generate `count` hourly monitoring samples ending at `now`."""
    if count < 0:
        raise ValueError(f"count must be non-negative, got {count}")
    rng = rng or random.Random()
    now = now or datetime.now(UTC)
    samples = []
    for offset in range(count - 1, -1, -1):
        samples.append(
            MonitoringSample(
                time=now - offset * SAMPLE_SPACING,
                cpu=_draw(rng, CPU_RANGE),
                memory=_draw(rng, MEMORY_RANGE),
                requests=_draw(rng, REQUESTS_RANGE),
                errors=_draw(rng, ERRORS_RANGE),
                response_time=_draw(rng, RESPONSE_TIME_RANGE),
            )
        )
    return samples


class MockDataSource(DataSourcePort):
    """Random telemetry and canned command output for a simulated fleet."""

    def __init__(
        self,
        node_names: tuple[str, ...] = ("alijack", "tenjack"),
        rng: Optional[random.Random] = None,
    ) -> None:
        self._node_names = node_names
        self._rng = rng or random.Random()

    def sample_metrics(
        self, count: int, now: Optional[datetime] = None
    ) -> list[MonitoringSample]:
        return generate_samples(count, now=now, rng=self._rng)

    def sample_gauges(self, node: Node) -> tuple[float, float, float]:
        return (
            _draw(self._rng, CPU_RANGE),
            _draw(self._rng, MEMORY_RANGE),
            _draw(self._rng, DISK_RANGE),
        )

    def recent_logs(self, now: Optional[datetime] = None) -> list[LogEntry]:
        now = now or datetime.now(UTC)
        names = self._node_names or ("fleet",)
        first, second = (names + names)[:2]
        return [
            LogEntry("1", LogLevel.INFO, "Deployment started: v1.2.0",
                     now - timedelta(minutes=60), first),
            LogEntry("2", LogLevel.SUCCESS, "Deployment completed",
                     now - timedelta(minutes=58, seconds=20), first),
            LogEntry("3", LogLevel.INFO, "Health check passed",
                     now - timedelta(minutes=30), second),
            LogEntry("4", LogLevel.WARNING, "CPU usage above 80%",
                     now - timedelta(minutes=15), second),
            LogEntry("5", LogLevel.INFO, "Load balancer configuration updated",
                     now - timedelta(minutes=5), first),
        ]

    def run_command(self, command: str, args: list[str]) -> str:
        logger.info("Running simulated command %r with args %r", command, args)
        if command == "status":
            lines = ["Fleet status check completed"]
            lines += [f"{name}: healthy" for name in self._node_names]
            return "\n".join(lines) + "\n"
        if command == "deploy":
            return (
                "Deploying to all servers...\n"
                "Syncing files... ok\n"
                "Installing dependencies... ok\n"
                "Restarting services... ok\n"
                "Health check... ok\n"
                "Deployment finished!\n"
            )
        return f"command {command} completed"
