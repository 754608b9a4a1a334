"""
Fleet Node

Architectural Intent:
- Immutable descriptor of a managed node in the fleet
- Gauge refreshes produce a new instance (see with_gauges) so concurrent
  readers always observe a consistent snapshot
- Wire format is the snake_case dict produced by to_dict()
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import datetime, UTC
from enum import Enum
from typing import Any


class NodeStatus(Enum):
    HEALTHY = "healthy"
    WARNING = "warning"
    ERROR = "error"
    OFFLINE = "offline"


def _percent(name: str, value: float) -> None:
    if not (0 <= value <= 100):
        raise ValueError(f"{name} must be within 0-100, got {value}")


@dataclass(frozen=True)
class Node:
    id: str
    name: str
    host: str
    status: NodeStatus = NodeStatus.HEALTHY
    cpu: float = 0.0
    memory: float = 0.0
    disk: float = 0.0
    uptime: str = ""
    last_check: datetime = field(default_factory=lambda: datetime.now(UTC))
    services: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Node id cannot be empty")
        if not self.name:
            raise ValueError("Node name cannot be empty")
        _percent("cpu", self.cpu)
        _percent("memory", self.memory)
        _percent("disk", self.disk)

    def matches(self, id_or_name: str) -> bool:
        return id_or_name in (self.id, self.name)

    def with_gauges(self, cpu: float, memory: float, disk: float) -> "Node":
        return replace(
            self, cpu=cpu, memory=memory, disk=disk, last_check=datetime.now(UTC)
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "host": self.host,
            "status": self.status.value,
            "cpu": self.cpu,
            "memory": self.memory,
            "disk": self.disk,
            "uptime": self.uptime,
            "last_check": self.last_check.isoformat(),
            "services": list(self.services),
            "tags": list(self.tags),
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Node":
        last_check = data.get("last_check")
        return Node(
            id=str(data["id"]),
            name=data["name"],
            host=data.get("host", ""),
            status=NodeStatus(data.get("status", "healthy")),
            cpu=data.get("cpu", 0.0),
            memory=data.get("memory", 0.0),
            disk=data.get("disk", 0.0),
            uptime=data.get("uptime", ""),
            last_check=(
                datetime.fromisoformat(last_check) if last_check else datetime.now(UTC)
            ),
            services=tuple(data.get("services", ())),
            tags=tuple(data.get("tags", ())),
        )
