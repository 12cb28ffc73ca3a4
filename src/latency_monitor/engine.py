"""
The monitoring engine.

This module provides the MonitoringEngine class, the single object that owns
the monitoring sessions and the alert threshold table. It is constructed once
at process start and handed to the management API, so no component relies on
module-level state.
"""

import logging
from typing import List, Optional

from latency_monitor.alerting.threshold_registry import ThresholdRegistry
from latency_monitor.contracts import TelemetrySink
from latency_monitor.domain import AlertThreshold, ProbeOptions, ProbeResult
from latency_monitor.scheduler.monitor_scheduler import MonitorScheduler

# Module logger
logger = logging.getLogger(__name__)


class MonitoringEngine:
    """
    Facade over the scheduler and the threshold registry.
    """

    def __init__(
        self,
        scheduler: MonitorScheduler,
        thresholds: ThresholdRegistry,
        telemetry: TelemetrySink,
    ) -> None:
        """
        Args:
            scheduler: Owner of the monitoring sessions.
            thresholds: Owner of the alert threshold table.
            telemetry: The telemetry sink used by the scheduler, flushed on close.
        """
        self._scheduler: MonitorScheduler = scheduler
        self._thresholds: ThresholdRegistry = thresholds
        self._telemetry: TelemetrySink = telemetry

    async def start_monitoring(self, url: str, options: ProbeOptions) -> ProbeResult:
        """
        Starts monitoring an endpoint and returns the result of its initial probe.

        Raises:
            AlreadyMonitoringError: If the endpoint is already monitored.
        """
        return await self._scheduler.start_monitoring(url, options)

    async def stop_monitoring(self, url: str) -> bool:
        return await self._scheduler.stop_monitoring(url)

    def active_endpoints(self) -> List[str]:
        return self._scheduler.active_endpoints()

    async def set_threshold(self, threshold: AlertThreshold) -> None:
        await self._thresholds.set_threshold(threshold)

    def get_threshold(self, endpoint: str) -> Optional[AlertThreshold]:
        return self._thresholds.get_threshold(endpoint)

    async def remove_threshold(self, endpoint: str) -> None:
        await self._thresholds.remove_threshold(endpoint)

    async def load_thresholds(self) -> int:
        """Restores the threshold table from its durable mirror."""
        return await self._thresholds.load()

    async def close(self) -> None:
        """
        Stops every monitoring session, waits for the telemetry exports in
        flight, then flushes the telemetry sink.
        """
        logger.info("Closing monitoring engine...")
        await self._scheduler.shutdown()
        await self._telemetry.flush()
        logger.info("Monitoring engine closed")
