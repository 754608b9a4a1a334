"""
Event Bus Port

Architectural Intent:
- Abstract interface for publishing domain events
- Allows decoupling of event producers from consumers
- Implementation is in-memory today; a message queue can replace it
"""

from typing import Protocol, Callable, Awaitable, Iterable, runtime_checkable
from shipyard.domain.events.event_base import DomainEvent


@runtime_checkable
class EventBusPort(Protocol):
    async def publish(self, events: Iterable[DomainEvent]) -> int: ...

    def subscribe(
        self, event_type: type, handler: Callable[[DomainEvent], Awaitable[None]]
    ) -> None: ...
