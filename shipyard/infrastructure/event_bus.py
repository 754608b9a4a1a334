"""
Event Bus

Architectural Intent:
- In-process async publish/subscribe for deployment lifecycle events
- Subscribing to a class also delivers its subclasses, so a handler
  registered for DomainEvent sees every event
- One failing handler is logged and skipped; the remaining handlers still
  receive the event
"""

import logging
from collections import defaultdict
from typing import Awaitable, Callable, Iterable

from shipyard.domain.events.event_base import DomainEvent

logger = logging.getLogger(__name__)

Handler = Callable[[DomainEvent], Awaitable[None]]


class EventBus:
    def __init__(self) -> None:
        self._handlers: defaultdict[type, list[Handler]] = defaultdict(list)

    def subscribe(self, event_type: type, handler: Handler) -> None:
        if not (isinstance(event_type, type) and issubclass(event_type, DomainEvent)):
            raise TypeError(f"cannot subscribe to {event_type!r}: not a DomainEvent type")
        handlers = self._handlers[event_type]
        if handler not in handlers:
            handlers.append(handler)

    def handlers_for(self, event_type: type) -> list[Handler]:
        """Handlers for `event_type`, most specific registration first."""
        return [
            handler
            for klass in event_type.__mro__
            for handler in self._handlers.get(klass, ())
        ]

    async def publish(self, events: Iterable[DomainEvent]) -> int:
        """Deliver each event in order. Returns the number of successful deliveries."""
        delivered = 0
        for event in events:
            handlers = self.handlers_for(type(event))
            logger.debug(
                "Publishing %s to %d handlers", event.event_type, len(handlers),
                extra={"deployment_id": event.aggregate_id, "event": event.to_dict()},
            )
            for handler in handlers:
                try:
                    await handler(event)
                except Exception:
                    logger.exception(
                        "Handler %s failed on %s",
                        getattr(handler, "__qualname__", repr(handler)),
                        event.event_type,
                        extra={"deployment_id": event.aggregate_id},
                    )
                else:
                    delivered += 1
        return delivered
