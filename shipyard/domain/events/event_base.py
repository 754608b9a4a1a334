"""
Domain Events

Architectural Intent:
- Immutable facts about a deployment record, raised by its state transitions
  and queued on the record until the ledger drains them
- Each event gets its own id and UTC timestamp, so subscribers can order
  and de-duplicate what they receive
- to_dict() flattens every payload field of the concrete event into plain
  JSON values; the event bus logs events in that shape
"""

from dataclasses import dataclass, field, fields
from datetime import datetime, UTC
from enum import Enum
from typing import Any
import uuid


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (tuple, list)):
        return [_plain(item) for item in value]
    return value


@dataclass(frozen=True)
class DomainEvent:
    """Base class for events keyed by the id of the record that raised them."""

    aggregate_id: str = ""
    event_id: str = field(
        default_factory=lambda: uuid.uuid4().hex, init=False, compare=False
    )
    occurred_at: datetime = field(
        default_factory=lambda: datetime.now(UTC), init=False, compare=False, repr=False
    )

    @property
    def event_type(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict[str, Any]:
        data = {f.name: _plain(getattr(self, f.name)) for f in fields(self)}
        data["event_type"] = self.event_type
        return data
