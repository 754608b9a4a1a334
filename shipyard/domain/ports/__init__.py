"""
Domain Ports Package

Architectural Intent:
- Contains port interfaces (abstract contracts) for external dependencies
- Ports define what the domain needs, adapters implement how
- Follows Hexagonal Architecture principles
"""

from shipyard.domain.ports.data_source_port import DataSourcePort
from shipyard.domain.ports.event_bus_port import EventBusPort

__all__ = [
    "DataSourcePort",
    "EventBusPort",
]
