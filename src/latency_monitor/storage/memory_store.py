"""
In-memory implementations of the ResultStore and ThresholdStore interfaces.

These stores keep everything in process memory. They are used when the
service runs with '--storage memory' and nothing needs to survive a restart.
"""

import asyncio
import logging
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from latency_monitor.contracts import ResultStore, ThresholdStore
from latency_monitor.domain import AlertThreshold, ProbeResult, WindowAggregate
from latency_monitor.storage import truncate_to_millisecond

# Module logger
logger = logging.getLogger(__name__)


class InMemoryResultStore(ResultStore):
    """
    Keeps probe results in a dictionary keyed by (endpoint, timestamp).

    Optionally drops results older than a retention period on every write,
    so that a long running process does not grow without bounds.
    """

    def __init__(self, retention_ms: Optional[int] = None) -> None:
        """
        Args:
            retention_ms: Age after which results of an endpoint are discarded,
                or None to keep everything.
        """
        self._results: Dict[Tuple[str, datetime], ProbeResult] = {}
        self._retention_ms: Optional[int] = retention_ms
        self._lock = asyncio.Lock()

    async def insert_result(self, result: ProbeResult) -> None:
        key = (result.endpoint, truncate_to_millisecond(result.timestamp))
        async with self._lock:
            self._results[key] = result
            if self._retention_ms is not None:
                self._evict(result)

    def _evict(self, latest: ProbeResult) -> None:
        """Drops the results of latest.endpoint that fell out of the retention period."""
        horizon = latest.timestamp.timestamp() * 1000 - self._retention_ms
        expired = [
            key
            for key in self._results
            if key[0] == latest.endpoint and key[1].timestamp() * 1000 < horizon
        ]
        for key in expired:
            del self._results[key]
        if expired:
            logger.debug(f"Evicted {len(expired)} expired result(s) of {latest.endpoint}")

    async def windowed_aggregate(self, endpoint: str, since: datetime) -> WindowAggregate:
        async with self._lock:
            window = [
                result
                for (result_endpoint, timestamp), result in self._results.items()
                if result_endpoint == endpoint and timestamp >= since
            ]

        if not window:
            return WindowAggregate(avg_latency=None, success_rate=None, sample_count=0)

        count = len(window)
        return WindowAggregate(
            avg_latency=sum(result.latency for result in window) / count,
            success_rate=sum(1 for result in window if result.success) / count,
            sample_count=count,
        )

    async def results_for(self, endpoint: str) -> List[ProbeResult]:
        """Returns the stored results of an endpoint ordered by timestamp."""
        async with self._lock:
            return sorted(
                (result for (key, _), result in self._results.items() if key == endpoint),
                key=lambda result: result.timestamp,
            )


class InMemoryThresholdStore(ThresholdStore):
    """
    Keeps alert thresholds in a dictionary keyed by endpoint.
    """

    def __init__(self) -> None:
        self._thresholds: Dict[str, AlertThreshold] = {}

    async def upsert(self, threshold: AlertThreshold) -> None:
        self._thresholds[threshold.endpoint] = threshold

    async def delete(self, endpoint: str) -> None:
        self._thresholds.pop(endpoint, None)

    async def get(self, endpoint: str) -> Optional[AlertThreshold]:
        return self._thresholds.get(endpoint)

    async def load_all(self) -> List[AlertThreshold]:
        return list(self._thresholds.values())
