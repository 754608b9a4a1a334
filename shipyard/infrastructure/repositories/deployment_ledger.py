"""
Deployment Ledger

Architectural Intent:
- Owned, append-only repository of deployment and rollback records
- Sole owner of record mutation: creation, terminal transition, supersession
- Every new record is registered with the LifecycleSimulator before it is
  returned, so the caller always sees it RUNNING
- Domain events drained from records are published on the event bus

Threading Model:
    Creation runs on HTTP handler threads; completion runs on the simulator's
    event loop. Both take the same re-entrant lock before touching records.

Design Decisions:
- Ids are wall-clock milliseconds, bumped to stay strictly increasing
- Newest record first; duplicate deploy requests are not deduplicated
- Rolling back a still-running deployment cancels its pending completion and
  marks it FAILED as superseded
"""

from __future__ import annotations
from concurrent.futures import Future
from typing import Iterable, Optional
import logging
import random
import string
import threading
import time

from shipyard.application.lifecycle.simulator import LifecycleSimulator
from shipyard.domain.entities.deployment import DeploymentRecord
from shipyard.domain.exceptions import NotFoundError
from shipyard.domain.ports.event_bus_port import EventBusPort

logger = logging.getLogger(__name__)

SYSTEM_AUTHOR = "system"
DEFAULT_VERSION = "v1.2.1"
COMMIT_LENGTH = 7
_COMMIT_ALPHABET = string.ascii_lowercase + string.digits


def _report_publish_failure(future: Future) -> None:
    if not future.cancelled() and future.exception() is not None:
        logger.error("Event publication failed: %s", future.exception())


class DeploymentLedger:
    """In-memory ledger of deployment records, newest first."""

    def __init__(
        self,
        simulator: LifecycleSimulator,
        history: Optional[Iterable[DeploymentRecord]] = None,
        default_servers: Iterable[str] = (),
        event_bus: Optional[EventBusPort] = None,
        deploy_delay: float = 5.0,
        rollback_delay: float = 4.0,
        rng: Optional[random.Random] = None,
    ) -> None:
        if history is None:
            from shipyard.infrastructure.fixtures import default_history
            history = default_history()
        self.simulator = simulator
        self._event_bus = event_bus
        self._default_servers = tuple(default_servers)
        self._deploy_delay = deploy_delay
        self._rollback_delay = rollback_delay
        self._rng = rng or random.Random()
        self._lock = threading.RLock()
        self._records: list[DeploymentRecord] = []
        self._last_id = 0
        for record in history:
            self._records.insert(0, record)
            if record.id.isdigit():
                self._last_id = max(self._last_id, int(record.id))

    # ---- reads -------------------------------------------------------------

    def list_deployments(self) -> list[DeploymentRecord]:
        """All records, newest first."""
        with self._lock:
            return list(self._records)

    def get_deployment(self, deployment_id: str) -> DeploymentRecord:
        with self._lock:
            for record in self._records:
                if record.id == deployment_id:
                    return record
        raise NotFoundError(f"deployment '{deployment_id}' not found")

    @property
    def total_count(self) -> int:
        with self._lock:
            return len(self._records)

    # ---- mutations ---------------------------------------------------------

    def create_deployment(
        self,
        version: Optional[str] = None,
        servers: Optional[Iterable[str]] = None,
    ) -> DeploymentRecord:
        """Append a RUNNING deployment and schedule its completion."""
        targets = tuple(servers) if servers else self._default_servers
        with self._lock:
            record = DeploymentRecord.start(
                id=self._next_id(),
                version=version or DEFAULT_VERSION,
                servers=targets,
                commit=self._commit_token(),
                author=SYSTEM_AUTHOR,
            )
            self.simulator.schedule_completion(
                record, self._deploy_delay, on_fire=self._settle
            )
            self._records.insert(0, record)
        logger.info(
            "Deployment %s started: %s -> %s", record.id, record.version, list(targets),
            extra={"deployment_id": record.id},
        )
        self._publish(record)
        return record

    def create_rollback(self, original_id: str) -> DeploymentRecord:
        """Append a RUNNING rollback of `original_id` and schedule its completion."""
        with self._lock:
            original = self.get_deployment(original_id)
            record = DeploymentRecord.start(
                id=self._next_id(),
                version=original.version,
                servers=original.servers,
                commit=original.commit,
                author=SYSTEM_AUTHOR,
                original_deployment=original.id,
            )
            if not original.is_terminal:
                self.simulator.cancel(original)
                original.fail(f"superseded by rollback {record.id}")
                logger.warning(
                    "Deployment %s superseded by rollback %s", original.id, record.id,
                    extra={"deployment_id": original.id},
                )
            self.simulator.schedule_completion(
                record, self._rollback_delay, on_fire=self._settle
            )
            self._records.insert(0, record)
        logger.info(
            "Rollback %s of %s started", record.id, original.id,
            extra={"deployment_id": record.id},
        )
        self._publish(original)
        self._publish(record)
        return record

    def shutdown(self) -> int:
        """Cancel every pending completion."""
        cancelled = self.simulator.cancel_all()
        if cancelled:
            logger.info("Cancelled %d pending completions", cancelled)
        return cancelled

    # ---- internals ---------------------------------------------------------

    def _settle(self, record: DeploymentRecord, succeeded: bool) -> None:
        with self._lock:
            self.simulator.settle(record, succeeded)
        self._publish(record)

    def _publish(self, record: DeploymentRecord) -> None:
        with self._lock:
            events = record.pull_events()
        if self._event_bus is None or not events:
            return
        future = self.simulator.submit(self._event_bus.publish(events))
        future.add_done_callback(_report_publish_failure)

    def _next_id(self) -> str:
        candidate = time.time_ns() // 1_000_000
        self._last_id = max(candidate, self._last_id + 1)
        return str(self._last_id)

    def _commit_token(self) -> str:
        return "".join(self._rng.choice(_COMMIT_ALPHABET) for _ in range(COMMIT_LENGTH))
