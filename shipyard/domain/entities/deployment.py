"""
Deployment Record Module

Architectural Intent:
- DeploymentRecord is the unit of the append-only deployment ledger
- A record is born RUNNING and undergoes exactly one terminal transition
  (SUCCESS or FAILED), applied in place so pollers see the same id flip
- Transitions are guarded by domain methods and emit domain events that the
  ledger drains and publishes on the event bus
- The pending completion handle lives on the record so it can be cancelled

Domain Events:
- DeploymentStartedEvent: Published when a deploy or rollback record is created
- DeploymentCompletedEvent: Published when a record reaches SUCCESS
- DeploymentFailedEvent: Published when a record reaches FAILED
"""

from __future__ import annotations
from concurrent.futures import Future
from dataclasses import dataclass, field
from datetime import datetime, UTC
from enum import Enum
from typing import Any, Optional

from shipyard.domain.events.event_base import DomainEvent
from shipyard.domain.events.deployment_events import (
    DeploymentStartedEvent,
    DeploymentCompletedEvent,
    DeploymentFailedEvent,
)


class DeploymentStatus(Enum):
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"


def _parse_time(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


@dataclass
class DeploymentRecord:
    id: str
    version: str
    servers: tuple[str, ...]
    commit: str
    author: str
    status: DeploymentStatus = DeploymentStatus.RUNNING
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    completed_at: Optional[datetime] = None
    duration: Optional[str] = None
    rollback: bool = False
    original_deployment: Optional[str] = None
    error: Optional[str] = None
    completion_handle: Optional[Future] = field(
        default=None, repr=False, compare=False
    )
    _events: list[DomainEvent] = field(
        default_factory=list, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Deployment id cannot be empty")
        if not self.version:
            raise ValueError("Deployment version cannot be empty")
        if self.rollback and not self.original_deployment:
            raise ValueError("Rollback records must reference the original deployment")

    @classmethod
    def start(
        cls,
        id: str,
        version: str,
        servers: tuple[str, ...],
        commit: str,
        author: str,
        original_deployment: Optional[str] = None,
    ) -> "DeploymentRecord":
        """Create a RUNNING record and queue its started event."""
        record = cls(
            id=id,
            version=version,
            servers=tuple(servers),
            commit=commit,
            author=author,
            rollback=original_deployment is not None,
            original_deployment=original_deployment,
        )
        record._events.append(
            DeploymentStartedEvent(
                aggregate_id=id,
                version=version,
                servers=record.servers,
                rollback=record.rollback,
            )
        )
        return record

    @property
    def is_terminal(self) -> bool:
        return self.status is not DeploymentStatus.RUNNING

    @property
    def updated_at(self) -> datetime:
        return self.completed_at or self.started_at

    def complete(self, duration: str) -> None:
        if self.status is not DeploymentStatus.RUNNING:
            raise ValueError("Deployment must be RUNNING to complete")
        self.status = DeploymentStatus.SUCCESS
        self.completed_at = datetime.now(UTC)
        self.duration = duration
        self.completion_handle = None
        self._events.append(
            DeploymentCompletedEvent(
                aggregate_id=self.id,
                version=self.version,
                duration_seconds=(self.completed_at - self.started_at).total_seconds(),
                rollback=self.rollback,
            )
        )

    def fail(self, message: str) -> None:
        if self.status is not DeploymentStatus.RUNNING:
            raise ValueError("Deployment must be RUNNING to fail")
        self.status = DeploymentStatus.FAILED
        self.completed_at = datetime.now(UTC)
        self.error = message
        self.completion_handle = None
        self._events.append(
            DeploymentFailedEvent(
                aggregate_id=self.id,
                version=self.version,
                error_message=message,
                rollback=self.rollback,
            )
        )

    def pull_events(self) -> list[DomainEvent]:
        """Return and clear the queued domain events."""
        events, self._events = self._events, []
        return events

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "version": self.version,
            "status": self.status.value,
            "servers": list(self.servers),
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration": self.duration,
            "commit": self.commit,
            "author": self.author,
            "rollback": self.rollback,
        }
        if self.original_deployment is not None:
            data["original_deployment"] = self.original_deployment
        if self.error is not None:
            data["error"] = self.error
        return data

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "DeploymentRecord":
        return DeploymentRecord(
            id=str(data["id"]),
            version=data["version"],
            servers=tuple(data.get("servers", ())),
            commit=data.get("commit", ""),
            author=data.get("author", ""),
            status=DeploymentStatus(data.get("status", "running")),
            started_at=_parse_time(data.get("started_at")) or datetime.now(UTC),
            completed_at=_parse_time(data.get("completed_at")),
            duration=data.get("duration"),
            rollback=bool(data.get("rollback", False)),
            original_deployment=data.get("original_deployment"),
            error=data.get("error"),
        )
