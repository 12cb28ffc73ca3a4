"""
Database configuration module for the latency monitoring system.

This module creates and validates the asyncpg connection pool shared by the
result and threshold stores, and makes sure the tables they rely on exist.
"""

import logging

import asyncpg

from latency_monitor.config import MonitoringContext
from latency_monitor.storage.schema import ensure_schema

# Module logger
logger = logging.getLogger(__name__)


async def initiate_db_pool(context: MonitoringContext) -> asyncpg.pool.Pool:
    """
    Create a connection pool to the PostgreSQL database and prepare the schema.

    The pool is validated with a trivial query before the schema is created.
    If anything fails, the pool is closed and the exception is re-raised.

    Args:
        context: Configuration context containing database connection parameters.

    Returns:
        asyncpg.pool.Pool: A ready-to-use connection pool.

    Raises:
        Exception: If the database cannot be reached or the schema cannot be created.
    """
    pool: asyncpg.pool.Pool = await asyncpg.create_pool(
        dsn=context.dsn, max_size=context.db_pool_size
    )

    try:
        async with pool.acquire() as connection:
            await connection.fetchval("SELECT 1")
        await ensure_schema(pool)
        logger.info("Database connection pool successfully created.")
        return pool
    except Exception as e:
        logger.error(f"Error: Could not initialize the database. {e}")
        await pool.close()
        raise
