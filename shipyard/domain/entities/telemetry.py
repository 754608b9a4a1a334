"""
Telemetry Value Objects

Architectural Intent:
- MonitoringSample is ephemeral: regenerated on every read, never stored
- LogEntry is fixture data with no lifecycle
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class LogLevel(Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class MonitoringSample:
    time: datetime
    cpu: int
    memory: int
    requests: int
    errors: int
    response_time: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "time": self.time.isoformat(),
            "cpu": self.cpu,
            "memory": self.memory,
            "requests": self.requests,
            "errors": self.errors,
            "response_time": self.response_time,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "MonitoringSample":
        return MonitoringSample(
            time=datetime.fromisoformat(data["time"]),
            cpu=data["cpu"],
            memory=data["memory"],
            requests=data["requests"],
            errors=data["errors"],
            response_time=data["response_time"],
        )


@dataclass(frozen=True)
class LogEntry:
    id: str
    level: LogLevel
    message: str
    timestamp: datetime
    server: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "level": self.level.value,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
            "server": self.server,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "LogEntry":
        return LogEntry(
            id=str(data["id"]),
            level=LogLevel(data["level"]),
            message=data["message"],
            timestamp=datetime.fromisoformat(data["timestamp"]),
            server=data.get("server"),
        )
