"""
PostgreSQL schema of the latency monitoring system.

The statements are idempotent and are applied every time the connection
pool is created.
"""

import logging

from asyncpg import Pool

# Module logger
logger = logging.getLogger(__name__)

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS probe_results (
        checked_at  TIMESTAMPTZ NOT NULL,
        endpoint    TEXT        NOT NULL,
        latency_ms  INTEGER     NOT NULL,
        status_code INTEGER     NOT NULL,
        success     BOOLEAN     NOT NULL,
        UNIQUE (endpoint, checked_at)
    );
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_probe_results_checked_at
        ON probe_results (checked_at DESC);
    """,
    """
    CREATE TABLE IF NOT EXISTS alert_thresholds (
        endpoint         TEXT PRIMARY KEY,
        max_latency      DOUBLE PRECISION,
        min_success_rate DOUBLE PRECISION,
        window_size      INTEGER NOT NULL,
        notification_url TEXT
    );
    """,
)


async def ensure_schema(pool: Pool) -> None:
    """
    Creates the tables and indexes used by the stores if they do not exist.

    Args:
        pool: The asyncpg connection pool.
    """
    async with pool.acquire() as conn:
        async with conn.transaction():
            for statement in SCHEMA_STATEMENTS:
                await conn.execute(statement)
    logger.info("Database schema is up to date.")
