"""
PostgreSQL-based implementation of the ThresholdStore interface.
"""

import logging
from typing import List, Optional

from asyncpg import Pool, Record

from latency_monitor.contracts import ThresholdStore
from latency_monitor.domain import AlertThreshold

# Module logger
logger = logging.getLogger(__name__)

UPSERT_THRESHOLD_QUERY = """
    INSERT INTO alert_thresholds (endpoint, max_latency, min_success_rate, window_size, notification_url)
    VALUES ($1, $2, $3, $4, $5)
    ON CONFLICT (endpoint) DO UPDATE
        SET max_latency      = EXCLUDED.max_latency,
            min_success_rate = EXCLUDED.min_success_rate,
            window_size      = EXCLUDED.window_size,
            notification_url = EXCLUDED.notification_url;
"""

DELETE_THRESHOLD_QUERY = "DELETE FROM alert_thresholds WHERE endpoint = $1"

SELECT_THRESHOLD_QUERY = """
    SELECT endpoint, max_latency, min_success_rate, window_size, notification_url
    FROM alert_thresholds
    WHERE endpoint = $1
"""

SELECT_ALL_THRESHOLDS_QUERY = """
    SELECT endpoint, max_latency, min_success_rate, window_size, notification_url
    FROM alert_thresholds
"""


def map_threshold(record: Record) -> AlertThreshold:
    """
    Converts a database record to an AlertThreshold domain object.
    """
    return AlertThreshold(
        endpoint=record["endpoint"],
        window_size_ms=record["window_size"],
        max_latency_ms=record["max_latency"],
        min_success_rate=record["min_success_rate"],
        notification_url=record["notification_url"],
    )


class PostgresThresholdStore(ThresholdStore):
    """
    Mirrors the alert threshold table in the 'alert_thresholds' table.
    """

    def __init__(self, pool: Pool) -> None:
        self._pool: Pool = pool

    async def upsert(self, threshold: AlertThreshold) -> None:
        async with self._pool.acquire() as conn:
            await conn.execute(
                UPSERT_THRESHOLD_QUERY,
                threshold.endpoint,
                threshold.max_latency_ms,
                threshold.min_success_rate,
                threshold.window_size_ms,
                threshold.notification_url,
            )
        logger.debug(f"Stored alert threshold for {threshold.endpoint}")

    async def delete(self, endpoint: str) -> None:
        async with self._pool.acquire() as conn:
            await conn.execute(DELETE_THRESHOLD_QUERY, endpoint)

    async def get(self, endpoint: str) -> Optional[AlertThreshold]:
        async with self._pool.acquire() as conn:
            record = await conn.fetchrow(SELECT_THRESHOLD_QUERY, endpoint)
        return map_threshold(record) if record is not None else None

    async def load_all(self) -> List[AlertThreshold]:
        async with self._pool.acquire() as conn:
            records = await conn.fetch(SELECT_ALL_THRESHOLDS_QUERY)
        logger.info(f"Loaded {len(records)} alert threshold(s) from the database.")
        return [map_threshold(record) for record in records]
