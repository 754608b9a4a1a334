"""
Lifecycle Simulator

Architectural Intent:
- Drives the single terminal transition of every deployment record
- Each completion is a single-shot coroutine on a bound asyncio event loop,
  submitted with run_coroutine_threadsafe so HTTP handler threads can
  schedule work without blocking
- The returned future is stored on the record as its cancellable handle

Design Decisions:
- Outcome is SUCCESS unless failure_rate > 0 (default 0.0)
- Duration labels are fixed per record kind, not measured
- No persistence: if the process exits before the delay, nothing happens
"""

from __future__ import annotations
from concurrent.futures import Future
from typing import Any, Callable, Coroutine, Optional
import asyncio
import logging
import random
import threading

from shipyard.domain.entities.deployment import DeploymentRecord

logger = logging.getLogger(__name__)

DEPLOY_DURATION = "2m15s"
ROLLBACK_DURATION = "1m45s"
SIMULATED_FAILURE = "simulated failure"

SettleCallback = Callable[[DeploymentRecord, bool], None]


def duration_label(record: DeploymentRecord) -> str:
    return ROLLBACK_DURATION if record.rollback else DEPLOY_DURATION


class LifecycleSimulator:
    """Schedules delayed, cancellable completion of deployment records."""

    def __init__(
        self,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        failure_rate: float = 0.0,
        rng: Optional[random.Random] = None,
    ) -> None:
        if not (0.0 <= failure_rate <= 1.0):
            raise ValueError(f"failure_rate must be within 0-1, got {failure_rate}")
        self._loop = loop
        self._failure_rate = failure_rate
        self._rng = rng or random.Random()
        self._pending: dict[str, Future] = {}
        self._lock = threading.Lock()

    def bind(self, loop: asyncio.AbstractEventLoop) -> None:
        """Attach the event loop that completions run on."""
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            try:
                self._loop = asyncio.get_running_loop()
            except RuntimeError:
                raise RuntimeError(
                    "LifecycleSimulator has no event loop; call bind() first"
                ) from None
        return self._loop

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def submit(self, coro: Coroutine[Any, Any, Any]) -> Future:
        """Run a coroutine on the bound loop from any thread."""
        return asyncio.run_coroutine_threadsafe(coro, self.loop)

    def schedule_completion(
        self,
        record: DeploymentRecord,
        delay: float,
        on_fire: Optional[SettleCallback] = None,
    ) -> Future:
        """Settle `record` after `delay` seconds.

        `on_fire(record, succeeded)` is invoked on the loop thread; it defaults
        to settle(). The handle is stored on the record and returned.
        """
        if delay < 0:
            raise ValueError(f"delay must be non-negative, got {delay}")
        handle = self.submit(self._fire_after(record, delay, on_fire or self.settle))
        record.completion_handle = handle
        with self._lock:
            self._pending[record.id] = handle
        handle.add_done_callback(lambda _f, record_id=record.id: self._forget(record_id))
        logger.debug("Scheduled completion of %s in %.2fs", record.id, delay)
        return handle

    async def _fire_after(
        self, record: DeploymentRecord, delay: float, on_fire: SettleCallback
    ) -> None:
        await asyncio.sleep(delay)
        succeeded = self._rng.random() >= self._failure_rate
        on_fire(record, succeeded)

    def settle(self, record: DeploymentRecord, succeeded: bool) -> None:
        """Apply the terminal transition to a still-running record."""
        if record.is_terminal:
            logger.debug("Deployment %s already settled as %s", record.id, record.status)
            return
        if succeeded:
            record.complete(duration_label(record))
            logger.info(
                "Deployment %s (%s) succeeded", record.id, record.version,
                extra={"deployment_id": record.id},
            )
        else:
            record.fail(SIMULATED_FAILURE)
            logger.warning(
                "Deployment %s (%s) failed", record.id, record.version,
                extra={"deployment_id": record.id},
            )

    def cancel(self, record: DeploymentRecord) -> bool:
        """Cancel the pending completion of `record`, if any."""
        handle = record.completion_handle
        if handle is None:
            return False
        record.completion_handle = None
        cancelled = handle.cancel()
        if cancelled:
            logger.info("Cancelled pending completion of %s", record.id)
        return cancelled

    def cancel_all(self) -> int:
        """Cancel every pending completion; returns how many were cancelled."""
        with self._lock:
            handles = list(self._pending.values())
        return sum(1 for handle in handles if handle.cancel())

    def _forget(self, record_id: str) -> None:
        with self._lock:
            self._pending.pop(record_id, None)
