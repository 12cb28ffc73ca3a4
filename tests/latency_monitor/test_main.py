"""
Unit tests for the application wiring.

These tests cover the storage selection of the entry point. The database pool
factory is patched, no database is needed.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from latency_monitor.__main__ import create_stores
from latency_monitor.storage.asyncpg_result_store import PostgresResultStore
from latency_monitor.storage.asyncpg_threshold_store import PostgresThresholdStore
from latency_monitor.storage.memory_store import InMemoryResultStore, InMemoryThresholdStore


@pytest.mark.asyncio
async def test_create_stores_should_apply_memory_retention(context_factory, result_factory) -> None:
    # Arrange
    context = context_factory(storage="memory", memory_retention=5000)

    # Act
    db_pool, result_store, threshold_store = await create_stores(context)
    await result_store.insert_result(result_factory(0))
    await result_store.insert_result(result_factory(6000))

    # Assert
    assert db_pool is None
    assert isinstance(result_store, InMemoryResultStore)
    assert isinstance(threshold_store, InMemoryThresholdStore)
    assert [r.timestamp for r in await result_store.results_for("https://example.com")] == [
        result_factory(6000).timestamp
    ]


@pytest.mark.asyncio
async def test_create_stores_should_keep_every_result_when_retention_is_zero(
    context_factory, result_factory
) -> None:
    # Arrange
    context = context_factory(storage="memory", memory_retention=0)

    # Act
    _, result_store, _ = await create_stores(context)
    await result_store.insert_result(result_factory(0))
    await result_store.insert_result(result_factory(10 * 86_400_000))

    # Assert
    assert len(await result_store.results_for("https://example.com")) == 2


@pytest.mark.asyncio
async def test_create_stores_should_use_database_pool_for_postgres(context_factory) -> None:
    # Arrange
    context = context_factory(storage="postgres")
    pool = MagicMock()

    # Act
    with patch(
        "latency_monitor.__main__.initiate_db_pool", AsyncMock(return_value=pool)
    ) as initiate_db_pool:
        db_pool, result_store, threshold_store = await create_stores(context)

    # Assert
    initiate_db_pool.assert_awaited_once_with(context)
    assert db_pool is pool
    assert isinstance(result_store, PostgresResultStore)
    assert isinstance(threshold_store, PostgresThresholdStore)
