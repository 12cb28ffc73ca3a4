"""
In-memory alert threshold table, mirrored to a ThresholdStore.

Reads are plain dictionary lookups. Writes are serialized by a lock so that
the in-memory table and its durable mirror are updated in the same order.
"""

import asyncio
import logging
from typing import Dict, List, Optional

from latency_monitor.contracts import ThresholdStore
from latency_monitor.domain import AlertThreshold

# Module logger
logger = logging.getLogger(__name__)


class ThresholdRegistry:
    """
    Holds at most one AlertThreshold per endpoint.
    """

    def __init__(self, store: ThresholdStore) -> None:
        """
        Args:
            store: Durable mirror of the table, used for restart recovery.
        """
        self._store: ThresholdStore = store
        self._thresholds: Dict[str, AlertThreshold] = {}
        self._lock = asyncio.Lock()

    async def load(self) -> int:
        """
        Replaces the in-memory table with the content of the store.

        Returns:
            int: The number of thresholds loaded.
        """
        thresholds = await self._store.load_all()
        async with self._lock:
            self._thresholds = {threshold.endpoint: threshold for threshold in thresholds}
        logger.info(f"Loaded {len(thresholds)} alert threshold(s).")
        return len(thresholds)

    async def set_threshold(self, threshold: AlertThreshold) -> None:
        """
        Creates or replaces the threshold of threshold.endpoint.

        The store is written first: if the write fails, the in-memory table is
        left unchanged and the error is propagated.
        """
        async with self._lock:
            await self._store.upsert(threshold)
            self._thresholds[threshold.endpoint] = threshold
        logger.info(f"Alert threshold set for {threshold.endpoint}")

    async def remove_threshold(self, endpoint: str) -> None:
        """
        Removes the threshold of an endpoint. Removing a missing threshold is a no-op.
        """
        async with self._lock:
            await self._store.delete(endpoint)
            removed = self._thresholds.pop(endpoint, None)
        if removed is not None:
            logger.info(f"Alert threshold removed for {endpoint}")

    def get_threshold(self, endpoint: str) -> Optional[AlertThreshold]:
        return self._thresholds.get(endpoint)

    def all_thresholds(self) -> List[AlertThreshold]:
        return list(self._thresholds.values())
