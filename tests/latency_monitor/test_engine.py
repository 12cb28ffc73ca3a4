"""
Unit tests for the MonitoringEngine class.

The engine is wired with real collaborators backed by in-memory stores and a
mocked probe executor, which exercises the whole probe pipeline end to end.
"""

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from latency_monitor.alerting.threshold_evaluator import AlertEvaluator
from latency_monitor.alerting.threshold_registry import ThresholdRegistry
from latency_monitor.contracts import NotificationSink, ProbeExecutor, TelemetrySink
from latency_monitor.domain import AlertThreshold, ProbeOptions, ProbeResult
from latency_monitor.engine import MonitoringEngine
from latency_monitor.exceptions import AlreadyMonitoringError
from latency_monitor.scheduler.monitor_scheduler import MonitorScheduler
from latency_monitor.storage.memory_store import InMemoryResultStore, InMemoryThresholdStore

URL = "https://example.com"
WEBHOOK = "https://hooks.example.com/alerts"


@pytest.fixture
def mock_executor() -> AsyncMock:
    """
    Creates a probe executor returning slow, failing results.
    """
    executor = AsyncMock(spec=ProbeExecutor)
    executor.execute.side_effect = lambda target, options: ProbeResult(
        target, datetime.now(timezone.utc), 500, 0, False
    )
    return executor


@pytest.fixture
def mock_telemetry() -> AsyncMock:
    return AsyncMock(spec=TelemetrySink)


@pytest.fixture
def mock_notifier() -> AsyncMock:
    return AsyncMock(spec=NotificationSink)


@pytest.fixture
def threshold_store() -> InMemoryThresholdStore:
    return InMemoryThresholdStore()


@pytest_asyncio.fixture
async def engine(mock_executor, mock_telemetry, mock_notifier, threshold_store):
    """
    Creates a fully wired engine and closes it after the test.
    """
    results = InMemoryResultStore()
    thresholds = ThresholdRegistry(threshold_store)
    evaluator = AlertEvaluator(thresholds=thresholds, store=results, notifier=mock_notifier)
    scheduler = MonitorScheduler(mock_executor, results, mock_telemetry, evaluator)
    engine = MonitoringEngine(scheduler=scheduler, thresholds=thresholds, telemetry=mock_telemetry)
    yield engine
    await engine.close()


@pytest.mark.asyncio
async def test_start_monitoring_should_alert_on_initial_probe(
    engine: MonitoringEngine, mock_notifier: AsyncMock, mock_telemetry: AsyncMock
) -> None:
    """
    Tests that a threshold set before monitoring applies to the initial probe.
    """
    # Arrange
    await engine.set_threshold(
        AlertThreshold(
            URL,
            window_size_ms=60000,
            max_latency_ms=200,
            min_success_rate=0.5,
            notification_url=WEBHOOK,
        )
    )

    # Act
    result = await engine.start_monitoring(URL, ProbeOptions(interval=60000))

    # Assert
    assert result.success is False
    mock_notifier.notify.assert_awaited_once_with(
        URL,
        [
            "High latency: 500.00ms (threshold: 200ms)",
            "Low success rate: 0.0% (threshold: 50%)",
        ],
        WEBHOOK,
    )
    await engine.close()
    mock_telemetry.push.assert_awaited_once_with(result)
    assert engine.active_endpoints() == [URL]


@pytest.mark.asyncio
async def test_start_monitoring_twice_should_raise(engine: MonitoringEngine) -> None:
    await engine.start_monitoring(URL, ProbeOptions(interval=60000))

    with pytest.raises(AlreadyMonitoringError):
        await engine.start_monitoring(URL, ProbeOptions(interval=60000))


@pytest.mark.asyncio
async def test_thresholds_should_be_managed_independently_of_sessions(
    engine: MonitoringEngine, threshold_store: InMemoryThresholdStore
) -> None:
    # Arrange
    threshold = AlertThreshold(URL, window_size_ms=60000, max_latency_ms=200)

    # Act
    await engine.set_threshold(threshold)
    stored = await threshold_store.get(URL)
    current = engine.get_threshold(URL)
    await engine.remove_threshold(URL)

    # Assert
    assert stored == threshold
    assert current == threshold
    assert engine.get_threshold(URL) is None
    assert engine.active_endpoints() == []


@pytest.mark.asyncio
async def test_load_thresholds_should_restore_stored_thresholds(
    engine: MonitoringEngine, threshold_store: InMemoryThresholdStore
) -> None:
    # Arrange
    threshold = AlertThreshold(URL, window_size_ms=60000, min_success_rate=0.9)
    await threshold_store.upsert(threshold)

    # Act
    count = await engine.load_thresholds()

    # Assert
    assert count == 1
    assert engine.get_threshold(URL) == threshold


@pytest.mark.asyncio
async def test_close_should_stop_sessions_and_flush_telemetry(
    engine: MonitoringEngine, mock_executor: AsyncMock, mock_telemetry: AsyncMock
) -> None:
    # Arrange
    await engine.start_monitoring(URL, ProbeOptions(interval=1))
    await asyncio.sleep(0.02)

    # Act
    await engine.close()
    count_after_close = mock_executor.execute.await_count
    await asyncio.sleep(0.02)

    # Assert
    assert engine.active_endpoints() == []
    assert mock_executor.execute.await_count == count_after_close
    mock_telemetry.flush.assert_awaited()


@pytest.mark.asyncio
async def test_close_should_flush_telemetry_after_shutting_down_scheduler() -> None:
    # Arrange
    calls = []
    scheduler = MagicMock(spec=MonitorScheduler)
    scheduler.shutdown = AsyncMock(side_effect=lambda: calls.append("shutdown"))
    telemetry = AsyncMock(spec=TelemetrySink)
    telemetry.flush.side_effect = lambda: calls.append("flush")
    engine = MonitoringEngine(scheduler, MagicMock(spec=ThresholdRegistry), telemetry)

    # Act
    await engine.close()

    # Assert
    assert calls == ["shutdown", "flush"]
