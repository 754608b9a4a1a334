"""
Data Source Port

Architectural Intent:
- Port interface for the metrics, logs and command capabilities the facade needs
- The mock adapter draws random values; a real adapter can replace it
  without touching the facade or the synchronizer
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from shipyard.domain.entities.node import Node
from shipyard.domain.entities.telemetry import LogEntry, MonitoringSample


class DataSourcePort(ABC):
    """
    Port interface for fleet telemetry and command execution.
    """

    @abstractmethod
    def sample_metrics(
        self, count: int, now: Optional[datetime] = None
    ) -> list[MonitoringSample]:
        """
        Returns `count` hourly samples ending at `now`, oldest first.
        """
        pass

    @abstractmethod
    def sample_gauges(self, node: Node) -> tuple[float, float, float]:
        """
        Returns a fresh (cpu, memory, disk) snapshot for a node.
        """
        pass

    @abstractmethod
    def recent_logs(self, now: Optional[datetime] = None) -> list[LogEntry]:
        """
        Returns recent fleet log entries, oldest first.
        """
        pass

    @abstractmethod
    def run_command(self, command: str, args: list[str]) -> str:
        """
        Runs a named fleet command and returns its textual output.
        """
        pass
