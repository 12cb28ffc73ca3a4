"""
PostgreSQL-based implementation of the ResultStore interface.

Every probe result is written as soon as it is produced: the alert evaluator
queries the window right after the write and expects to find the result in it.
"""

import logging
from datetime import datetime

from asyncpg import Pool, exceptions

from latency_monitor.contracts import ResultStore
from latency_monitor.domain import ProbeResult, WindowAggregate
from latency_monitor.storage import truncate_to_millisecond

# Module logger
logger = logging.getLogger(__name__)

UPSERT_RESULT_QUERY = """
    INSERT INTO probe_results (checked_at, endpoint, latency_ms, status_code, success)
    VALUES ($1, $2, $3, $4, $5)
    ON CONFLICT (endpoint, checked_at) DO UPDATE
        SET latency_ms  = EXCLUDED.latency_ms,
            status_code = EXCLUDED.status_code,
            success     = EXCLUDED.success;
"""

WINDOWED_AGGREGATE_QUERY = """
    SELECT AVG(latency_ms)::float8                              AS avg_latency,
           AVG(CASE WHEN success THEN 1.0 ELSE 0.0 END)::float8 AS success_rate,
           COUNT(*)                                             AS sample_count
    FROM probe_results
    WHERE endpoint = $1
      AND checked_at >= $2;
"""


class PostgresResultStore(ResultStore):
    """
    Stores probe results in the 'probe_results' table.

    Concurrent appends from independent endpoint tasks are served by the
    connection pool, each write using its own connection.
    """

    def __init__(self, pool: Pool, acquire_timeout: float = 10.0) -> None:
        """
        Initializes the store.

        Args:
            pool: The asyncpg connection pool.
            acquire_timeout: Seconds to wait for a free connection.
        """
        self._pool: Pool = pool
        self._acquire_timeout: float = acquire_timeout

    async def insert_result(self, result: ProbeResult) -> None:
        """
        Upserts a probe result keyed by (endpoint, checked_at).

        Raises:
            asyncpg.exceptions.PostgresError: If the write fails. The error is
                logged and re-raised, the result is lost.
        """
        try:
            async with self._pool.acquire(timeout=self._acquire_timeout) as conn:
                await conn.execute(
                    UPSERT_RESULT_QUERY,
                    truncate_to_millisecond(result.timestamp),
                    result.endpoint,
                    result.latency,
                    result.status,
                    result.success,
                )
        except exceptions.PostgresError as e:
            logger.error(f"Database error while storing result for {result.endpoint}: {e}")
            raise

    async def windowed_aggregate(self, endpoint: str, since: datetime) -> WindowAggregate:
        """
        Computes average latency and success rate of the results in the window.
        """
        async with self._pool.acquire(timeout=self._acquire_timeout) as conn:
            record = await conn.fetchrow(WINDOWED_AGGREGATE_QUERY, endpoint, since)

        if record is None or not record["sample_count"]:
            return WindowAggregate(avg_latency=None, success_rate=None, sample_count=0)

        return WindowAggregate(
            avg_latency=record["avg_latency"],
            success_rate=record["success_rate"],
            sample_count=record["sample_count"],
        )
