"""
Prometheus telemetry sink.

This module exports probe results as Prometheus metrics. Metrics are updated
in place for every result and exposed through the prometheus-client HTTP
server for scraping, so nothing is buffered and flushing is a no-op.
"""

import logging
from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, start_http_server

from latency_monitor.contracts import TelemetrySink
from latency_monitor.domain import ProbeResult

# Module logger
logger = logging.getLogger(__name__)

LATENCY_BUCKETS = (0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0)


class PrometheusSink(TelemetrySink):
    """
    Updates probe counters, latency histograms and status gauges.

    Each sink owns its CollectorRegistry, which keeps independent instances
    (for example in tests) from clashing on metric names.
    """

    def __init__(
        self,
        instance_id: str,
        registry: Optional[CollectorRegistry] = None,
        port: int = 0,
    ) -> None:
        """
        Args:
            instance_id: Identifier of this monitoring instance, used as a label.
            registry: Registry holding the metrics. A new one is created if omitted.
            port: Port of the /metrics HTTP server. 0 disables the server.
        """
        self._instance_id: str = instance_id
        self.registry: CollectorRegistry = registry or CollectorRegistry()

        self._probes_total = Counter(
            "latency_monitor_probes_total",
            "Total number of probes performed",
            ["instance_id", "endpoint", "success"],
            registry=self.registry,
        )
        self._probe_latency = Histogram(
            "latency_monitor_probe_latency_seconds",
            "Probe latency, retries included",
            ["instance_id", "endpoint"],
            buckets=LATENCY_BUCKETS,
            registry=self.registry,
        )
        self._last_status = Gauge(
            "latency_monitor_last_status",
            "HTTP status of the last probe, 0 on network failure",
            ["instance_id", "endpoint"],
            registry=self.registry,
        )

        if port:
            start_http_server(port, registry=self.registry)
            logger.info(f"Prometheus metrics exposed on port {port}")

    async def push(self, result: ProbeResult) -> None:
        self._probes_total.labels(
            instance_id=self._instance_id,
            endpoint=result.endpoint,
            success=str(result.success).lower(),
        ).inc()
        self._probe_latency.labels(
            instance_id=self._instance_id, endpoint=result.endpoint
        ).observe(result.latency / 1000)
        self._last_status.labels(instance_id=self._instance_id, endpoint=result.endpoint).set(
            result.status
        )
