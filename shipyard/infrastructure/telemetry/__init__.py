"""
Shipyard Telemetry Infrastructure

Architectural Intent:
- OpenTelemetry integration for deployment lifecycle metrics
- Metrics are fed by event bus subscribers, never by the ledger directly
"""

from shipyard.infrastructure.telemetry.otel_exporter import (
    OTELExporter,
    OTELConfig,
)
from shipyard.infrastructure.telemetry.deployment_metrics import (
    DeploymentMetricsRecorder,
)

__all__ = [
    "OTELExporter",
    "OTELConfig",
    "DeploymentMetricsRecorder",
]
