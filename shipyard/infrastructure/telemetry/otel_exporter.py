"""
OpenTelemetry Exporter for Shipyard

Architectural Intent:
- Exports deployment lifecycle metrics to OTLP-compatible backends
- Keeps a bounded local buffer of the most recent metrics so behaviour is
  observable even when no collector is configured. Oldest entries are
  dropped first

Security:
- Endpoint defaults to empty string (must be explicitly configured)
- Non-localhost http:// endpoints rejected unless insecure=True
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass
from typing import Optional, Any
from urllib.parse import urlparse
import logging
from datetime import datetime, UTC

logger = logging.getLogger(__name__)

MAX_BUFFERED_METRICS = 1000


@dataclass
class OTELConfig:
    endpoint: str = ""
    service_name: str = "shipyard"
    environment: str = "development"
    insecure: bool = False

    def __post_init__(self) -> None:
        if self.endpoint:
            parsed = urlparse(self.endpoint)
            is_localhost = parsed.hostname in ("localhost", "127.0.0.1", "::1")
            if parsed.scheme == "http" and not is_localhost and not self.insecure:
                raise ValueError(
                    f"Non-localhost HTTP endpoint '{self.endpoint}' requires "
                    "insecure=True or use https://."
                )


class OTELExporter:
    """OpenTelemetry metrics exporter for the deployment tracker."""

    def __init__(self, config: OTELConfig, max_buffered: int = MAX_BUFFERED_METRICS):
        if max_buffered <= 0:
            raise ValueError(f"max_buffered must be positive, got {max_buffered}")
        self.config = config
        self._initialized = False
        self._metrics_buffer: deque[dict[str, Any]] = deque(maxlen=max_buffered)
        self._meter: Any = None
        self._provider: Any = None
        self._gauges: dict[str, Any] = {}

    @property
    def enabled(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """Initialize the OpenTelemetry SDK and the OTLP metric exporter."""
        if not self.config.endpoint:
            logger.info("OTEL endpoint not configured, telemetry disabled")
            return

        try:
            from opentelemetry import metrics
            from opentelemetry.sdk.resources import Resource, SERVICE_NAME
            from opentelemetry.sdk.metrics import MeterProvider
            from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
            from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import (
                OTLPMetricExporter,
            )

            resource = Resource(
                attributes={
                    SERVICE_NAME: self.config.service_name,
                    "environment": self.config.environment,
                }
            )
            metric_reader = PeriodicExportingMetricReader(
                OTLPMetricExporter(
                    endpoint=self.config.endpoint, insecure=self.config.insecure
                )
            )
            self._provider = MeterProvider(
                resource=resource, metric_readers=[metric_reader]
            )
            metrics.set_meter_provider(self._provider)
            self._meter = metrics.get_meter(__name__)
            self._initialized = True
            logger.info("OTEL metrics exporting to %s", self.config.endpoint)

        except ImportError:
            logger.warning("OpenTelemetry SDK not installed, telemetry disabled")
            self._initialized = False
        except Exception as e:
            logger.error("Failed to initialize OTEL: %s", e)
            self._initialized = False

    def _get_gauge(self, name: str, unit: str = "") -> Any:
        """Get or create a gauge for a metric name."""
        if name not in self._gauges and self._meter:
            self._gauges[name] = self._meter.create_gauge(name, unit=unit)
        return self._gauges.get(name)

    def record_metric(
        self,
        name: str,
        value: float,
        unit: str = "",
        attributes: Optional[dict[str, str]] = None,
    ) -> None:
        """Record a metric value."""
        self._metrics_buffer.append(
            {
                "name": name,
                "value": value,
                "unit": unit,
                "attributes": attributes or {},
                "timestamp": datetime.now(UTC).isoformat(),
            }
        )

        if self._initialized:
            gauge = self._get_gauge(name, unit)
            if gauge:
                gauge.set(value, attributes=attributes or {})

    async def export(self) -> None:
        """Flush buffered metrics through the SDK."""
        if not self._initialized:
            return

        self._provider.force_flush()
        exported_count = len(self._metrics_buffer)
        self._metrics_buffer.clear()
        if exported_count:
            logger.debug("Flushed %d buffered metrics", exported_count)

    def shutdown(self) -> None:
        if self._provider is not None:
            self._provider.shutdown()
            self._provider = None
        self._initialized = False
