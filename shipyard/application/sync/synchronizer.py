"""
Client State Synchronizer

Architectural Intent:
- Client-side cache of nodes, deployments, monitoring samples and logs
- Polls the facade on a fixed interval, fetching all four collections
  concurrently
- Mutating calls (deploy, rollback) merge the returned record straight into
  the cache without a second read

Design Decisions:
- Deployments live in a single dict keyed by record id. Refreshes and local
  writes both go through merge(), which is last-write-wins on
  completed_at/started_at
- On refresh failure the error is logged and exposed on `error`; the last
  good state is kept, and an offline snapshot is shown only when nothing
  has been cached yet
- Snapshot records are provisional. The first successful refresh drops
  them before merging, so server copies always replace fixture data
- Any exception from a refresh is treated as a fetch failure, so one
  malformed response cannot end the polling task
"""

from __future__ import annotations
from datetime import datetime, UTC
from typing import Callable, Iterable, Optional, Protocol
import asyncio
import contextlib
import logging

from shipyard.domain.entities.deployment import DeploymentRecord
from shipyard.domain.entities.node import Node
from shipyard.domain.entities.telemetry import LogEntry, MonitoringSample
from shipyard.domain.exceptions import ShipyardError

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 30.0


class FleetApi(Protocol):
    async def list_servers(self, refresh: bool = False) -> list[Node]: ...

    async def list_deployments(self) -> list[DeploymentRecord]: ...

    async def monitoring(self, count: Optional[int] = None) -> list[MonitoringSample]: ...

    async def logs(self) -> list[LogEntry]: ...

    async def deploy(
        self, version: Optional[str] = None, servers: Optional[list[str]] = None
    ) -> DeploymentRecord: ...

    async def rollback(self, deployment_id: str) -> DeploymentRecord: ...

    async def execute_command(self, command: str, args: Optional[list[str]] = None) -> str: ...


def _supersedes(incoming: DeploymentRecord, cached: DeploymentRecord) -> bool:
    """Whether `incoming` should replace `cached` for the same id."""
    if incoming.updated_at != cached.updated_at:
        return incoming.updated_at > cached.updated_at
    return incoming.is_terminal or not cached.is_terminal


def _ordering_key(record: DeploymentRecord) -> tuple[datetime, int]:
    return record.started_at, int(record.id) if record.id.isdigit() else -1


class StateSynchronizer:
    """Keeps a local, periodically refreshed view of the fleet."""

    def __init__(
        self,
        api: FleetApi,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        fallback_nodes: Optional[Callable[[], list[Node]]] = None,
        fallback_deployments: Optional[Callable[[], list[DeploymentRecord]]] = None,
    ) -> None:
        if poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {poll_interval}")
        if fallback_nodes is None or fallback_deployments is None:
            from shipyard.infrastructure import fixtures
            fallback_nodes = fallback_nodes or fixtures.offline_nodes
            fallback_deployments = fallback_deployments or fixtures.offline_deployments
        self._api = api
        self._poll_interval = poll_interval
        self._fallback_nodes = fallback_nodes
        self._fallback_deployments = fallback_deployments
        self._deployments: dict[str, DeploymentRecord] = {}
        self._provisional_ids: set[str] = set()
        self._task: Optional[asyncio.Task] = None
        self.nodes: list[Node] = []
        self.monitoring: list[MonitoringSample] = []
        self.logs: list[LogEntry] = []
        self.loading = False
        self.error: Optional[str] = None
        self.last_refreshed: Optional[datetime] = None

    # ---- cache -------------------------------------------------------------

    @property
    def deployments(self) -> list[DeploymentRecord]:
        """Cached deployment records, newest first."""
        return sorted(self._deployments.values(), key=_ordering_key, reverse=True)

    def get_deployment(self, deployment_id: str) -> Optional[DeploymentRecord]:
        return self._deployments.get(deployment_id)

    def merge(self, records: Iterable[DeploymentRecord]) -> None:
        """Merge records into the cache, keeping the newest copy per id."""
        for record in records:
            cached = self._deployments.get(record.id)
            if cached is None or _supersedes(record, cached):
                self._deployments[record.id] = record

    # ---- polling -----------------------------------------------------------

    async def refresh(self) -> bool:
        """Fetch all collections concurrently. Returns False on failure."""
        self.loading = True
        self.error = None
        try:
            nodes, deployments, monitoring, logs = await asyncio.gather(
                self._api.list_servers(),
                self._api.list_deployments(),
                self._api.monitoring(),
                self._api.logs(),
            )
        except ShipyardError as exc:
            logger.error("Failed to refresh fleet state: %s", exc)
            self.error = str(exc)
            self._apply_fallback()
            return False
        except Exception as exc:
            logger.exception("Unexpected error while refreshing fleet state")
            self.error = f"unexpected {type(exc).__name__}: {exc}"
            self._apply_fallback()
            return False
        finally:
            self.loading = False

        self.nodes = nodes
        self._drop_provisional()
        self.merge(deployments)
        self.monitoring = monitoring
        self.logs = logs
        self.last_refreshed = datetime.now(UTC)
        logger.debug(
            "Refreshed %d nodes and %d deployments", len(nodes), len(deployments)
        )
        return True

    def _apply_fallback(self) -> None:
        if not self.nodes:
            self.nodes = self._fallback_nodes()
        if not self._deployments:
            snapshot = self._fallback_deployments()
            self.merge(snapshot)
            self._provisional_ids.update(record.id for record in snapshot)

    def _drop_provisional(self) -> None:
        for deployment_id in self._provisional_ids:
            self._deployments.pop(deployment_id, None)
        self._provisional_ids.clear()

    @property
    def offline(self) -> bool:
        """True while offline snapshot deployments are cached."""
        return bool(self._provisional_ids)

    @property
    def is_polling(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, interval: Optional[float] = None) -> asyncio.Task:
        """Refresh now and then every `interval` seconds until stop()."""
        if self.is_polling:
            return self._task  # type: ignore[return-value]
        interval = self._poll_interval if interval is None else interval
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._task = asyncio.create_task(self._poll(interval), name="shipyard-sync")
        return self._task

    async def _poll(self, interval: float) -> None:
        while True:
            await self.refresh()
            await asyncio.sleep(interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    # ---- mutations ---------------------------------------------------------

    async def deploy(
        self, version: Optional[str] = None, servers: Optional[list[str]] = None
    ) -> DeploymentRecord:
        record = await self._api.deploy(version, servers)
        self.merge([record])
        return record

    async def rollback(self, deployment_id: str) -> DeploymentRecord:
        record = await self._api.rollback(deployment_id)
        self.merge([record])
        return record

    async def execute_command(self, command: str, args: Optional[list[str]] = None) -> str:
        return await self._api.execute_command(command, args)
