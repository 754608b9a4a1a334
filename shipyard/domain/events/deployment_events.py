"""
Deployment Lifecycle Events

Architectural Intent:
- Emitted by DeploymentRecord transitions and drained by the ledger
- Consumed by event bus subscribers (e.g. deployment metrics)
"""

from dataclasses import dataclass

from shipyard.domain.events.event_base import DomainEvent


@dataclass(frozen=True)
class DeploymentStartedEvent(DomainEvent):
    version: str = ""
    servers: tuple[str, ...] = ()
    rollback: bool = False


@dataclass(frozen=True)
class DeploymentCompletedEvent(DomainEvent):
    version: str = ""
    duration_seconds: float = 0.0
    rollback: bool = False


@dataclass(frozen=True)
class DeploymentFailedEvent(DomainEvent):
    version: str = ""
    error_message: str = ""
    rollback: bool = False
