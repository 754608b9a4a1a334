"""
Fleet Registry

Architectural Intent:
- Owned repository of the managed nodes, injected into the facade
- Read access by id or name over a fixed set populated at startup
- Gauge refresh swaps in new frozen Node instances under a lock, so one
  response never mixes old and new gauges
"""

from __future__ import annotations
from typing import Iterable, Optional
import logging
import threading

from shipyard.domain.entities.node import Node
from shipyard.domain.exceptions import NotFoundError
from shipyard.domain.ports.data_source_port import DataSourcePort

logger = logging.getLogger(__name__)


class FleetRegistry:
    """Registry of all nodes in the fleet."""

    def __init__(self, nodes: Optional[Iterable[Node]] = None) -> None:
        if nodes is None:
            from shipyard.infrastructure.fixtures import default_fleet
            nodes = default_fleet()
        self._lock = threading.RLock()
        self._nodes: dict[str, Node] = {}
        for node in nodes:
            if node.id in self._nodes:
                raise ValueError(f"Duplicate node id: {node.id}")
            self._nodes[node.id] = node

    def list_nodes(self) -> list[Node]:
        """Get all nodes in registration order."""
        with self._lock:
            return list(self._nodes.values())

    def get_node(self, id_or_name: str) -> Node:
        """Get a node by id or name."""
        with self._lock:
            for node in self._nodes.values():
                if node.matches(id_or_name):
                    return node
        raise NotFoundError(f"server '{id_or_name}' not found")

    def names(self) -> list[str]:
        with self._lock:
            return [node.name for node in self._nodes.values()]

    def refresh_gauges(self, source: DataSourcePort) -> list[Node]:
        """Replace every node's gauges with a fresh snapshot from `source`."""
        with self._lock:
            for node_id, node in self._nodes.items():
                cpu, memory, disk = source.sample_gauges(node)
                self._nodes[node_id] = node.with_gauges(cpu, memory, disk)
            logger.debug("Refreshed gauges for %d nodes", len(self._nodes))
            return list(self._nodes.values())

    @property
    def total_count(self) -> int:
        return len(self._nodes)
