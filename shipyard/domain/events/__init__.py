"""
Domain Events Package

Architectural Intent:
- Contains the domain event base and the deployment lifecycle events
- Events are the primary mechanism for cross-boundary communication
"""

from shipyard.domain.events.event_base import DomainEvent
from shipyard.domain.events.deployment_events import (
    DeploymentStartedEvent,
    DeploymentCompletedEvent,
    DeploymentFailedEvent,
)

__all__ = [
    "DomainEvent",
    "DeploymentStartedEvent",
    "DeploymentCompletedEvent",
    "DeploymentFailedEvent",
]
