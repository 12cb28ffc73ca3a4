"""
Unit tests for the AlertEvaluator class and the find_breaches function.

The evaluator is exercised against an InMemoryResultStore so that the window
boundaries are computed by a real store, while the notification sink is mocked.
"""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from latency_monitor.alerting.threshold_evaluator import AlertEvaluator, find_breaches
from latency_monitor.alerting.threshold_registry import ThresholdRegistry
from latency_monitor.contracts import NotificationSink, ResultStore
from latency_monitor.domain import AlertThreshold, WindowAggregate
from latency_monitor.storage.memory_store import InMemoryResultStore, InMemoryThresholdStore

ENDPOINT = "https://example.com"
WEBHOOK = "https://hooks.example.com/alerts"


@pytest.fixture
def store() -> InMemoryResultStore:
    return InMemoryResultStore()


@pytest.fixture
def registry() -> ThresholdRegistry:
    return ThresholdRegistry(InMemoryThresholdStore())


@pytest.fixture
def notifier() -> AsyncMock:
    return AsyncMock(spec=NotificationSink)


@pytest_asyncio.fixture
async def evaluator(
    registry: ThresholdRegistry, store: InMemoryResultStore, notifier: AsyncMock
) -> AlertEvaluator:
    return AlertEvaluator(thresholds=registry, store=store, notifier=notifier)


def test_find_breaches_should_ignore_empty_window() -> None:
    threshold = AlertThreshold(ENDPOINT, 2000, max_latency_ms=1, min_success_rate=1)

    assert find_breaches(threshold, WindowAggregate(None, None, 0)) == []


def test_find_breaches_should_treat_boundaries_as_exclusive() -> None:
    threshold = AlertThreshold(ENDPOINT, 2000, max_latency_ms=300, min_success_rate=0.9)

    assert find_breaches(threshold, WindowAggregate(300.0, 0.9, 10)) == []


def test_find_breaches_should_report_both_conditions() -> None:
    threshold = AlertThreshold(ENDPOINT, 2000, max_latency_ms=200, min_success_rate=0.9)

    breaches = find_breaches(threshold, WindowAggregate(300.0, 0.5, 2))

    assert breaches == [
        "High latency: 300.00ms (threshold: 200ms)",
        "Low success rate: 50.0% (threshold: 90%)",
    ]


def test_find_breaches_should_skip_unset_conditions() -> None:
    threshold = AlertThreshold(ENDPOINT, 2000)

    assert find_breaches(threshold, WindowAggregate(10_000.0, 0.0, 5)) == []


@pytest.mark.asyncio
async def test_evaluate_should_fire_when_windowed_average_latency_exceeds_maximum(
    evaluator: AlertEvaluator,
    registry: ThresholdRegistry,
    store: InMemoryResultStore,
    notifier: AsyncMock,
    result_factory,
) -> None:
    """
    Tests the latency example: (100ms, 500ms) averages 300ms > 200ms.
    """
    # Arrange
    await registry.set_threshold(
        AlertThreshold(ENDPOINT, window_size_ms=2000, max_latency_ms=200, notification_url=WEBHOOK)
    )
    await store.insert_result(result_factory(0, latency=100, success=True))
    latest = result_factory(1000, latency=500, status=0, success=False)
    await store.insert_result(latest)

    # Act
    breaches = await evaluator.evaluate(latest)

    # Assert
    assert breaches == ["High latency: 300.00ms (threshold: 200ms)"]
    notifier.notify.assert_awaited_once_with(ENDPOINT, breaches, WEBHOOK)


@pytest.mark.asyncio
@pytest.mark.parametrize("failures, should_fire", [(2, True), (1, False)])
async def test_evaluate_should_compare_success_rate_exclusively(
    evaluator: AlertEvaluator,
    registry: ThresholdRegistry,
    store: InMemoryResultStore,
    notifier: AsyncMock,
    result_factory,
    failures: int,
    should_fire: bool,
) -> None:
    """
    Tests the success rate example: 0.8 < 0.9 fires, 0.9 does not.
    """
    # Arrange
    await registry.set_threshold(
        AlertThreshold(
            ENDPOINT, window_size_ms=60_000, min_success_rate=0.9, notification_url=WEBHOOK
        )
    )
    results = [result_factory(i * 1000, success=i >= failures) for i in range(10)]
    for result in results:
        await store.insert_result(result)

    # Act
    breaches = await evaluator.evaluate(results[-1])

    # Assert
    if should_fire:
        assert breaches == ["Low success rate: 80.0% (threshold: 90%)"]
        notifier.notify.assert_awaited_once()
    else:
        assert breaches == []
        notifier.notify.assert_not_awaited()


@pytest.mark.asyncio
async def test_evaluate_should_only_aggregate_results_inside_window(
    evaluator: AlertEvaluator,
    registry: ThresholdRegistry,
    store: InMemoryResultStore,
    notifier: AsyncMock,
    result_factory,
) -> None:
    """
    Tests that results older than the window start are ignored.
    """
    # Arrange
    await registry.set_threshold(
        AlertThreshold(ENDPOINT, window_size_ms=2000, max_latency_ms=200, notification_url=WEBHOOK)
    )
    await store.insert_result(result_factory(-5000, latency=10_000))
    await store.insert_result(result_factory(-2000, latency=150))
    latest = result_factory(0, latency=150)
    await store.insert_result(latest)

    # Act
    breaches = await evaluator.evaluate(latest)

    # Assert
    assert breaches == []
    notifier.notify.assert_not_awaited()


@pytest.mark.asyncio
async def test_evaluate_should_include_result_exactly_one_window_before_sub_millisecond_timestamp(
    evaluator: AlertEvaluator,
    registry: ThresholdRegistry,
    store: InMemoryResultStore,
    notifier: AsyncMock,
    result_factory,
) -> None:
    """
    Tests that the window start is computed at the millisecond precision of
    the stored timestamps: a result exactly window_size earlier than the
    latest one is inside the window even when the latest timestamp carries
    microseconds.
    """
    # Arrange
    await registry.set_threshold(
        AlertThreshold(ENDPOINT, window_size_ms=1000, max_latency_ms=5000, notification_url=WEBHOOK)
    )
    await store.insert_result(result_factory(0, latency=10_000))
    latest = result_factory(1000, latency=100)
    latest = latest._replace(timestamp=latest.timestamp + timedelta(microseconds=500))
    await store.insert_result(latest)

    # Act
    breaches = await evaluator.evaluate(latest)

    # Assert
    assert breaches == ["High latency: 5050.00ms (threshold: 5000ms)"]
    notifier.notify.assert_awaited_once_with(ENDPOINT, breaches, WEBHOOK)


@pytest.mark.asyncio
async def test_evaluate_should_do_nothing_without_threshold(
    registry: ThresholdRegistry, notifier: AsyncMock, result_factory
) -> None:
    """
    Tests that endpoints without a threshold never query the store.
    """
    # Arrange
    store = AsyncMock(spec=ResultStore)
    evaluator = AlertEvaluator(thresholds=registry, store=store, notifier=notifier)

    # Act
    breaches = await evaluator.evaluate(result_factory(0))

    # Assert
    assert breaches == []
    store.windowed_aggregate.assert_not_awaited()
    notifier.notify.assert_not_awaited()


@pytest.mark.asyncio
async def test_evaluate_should_not_breach_on_empty_window(
    registry: ThresholdRegistry, notifier: AsyncMock, result_factory
) -> None:
    """
    Tests that an empty aggregate never divides by zero nor fires.
    """
    # Arrange
    store = AsyncMock(spec=ResultStore)
    store.windowed_aggregate.return_value = WindowAggregate(None, None, 0)
    await registry.set_threshold(
        AlertThreshold(ENDPOINT, 1000, max_latency_ms=1, min_success_rate=1, notification_url=WEBHOOK)
    )
    evaluator = AlertEvaluator(thresholds=registry, store=store, notifier=notifier)

    # Act
    breaches = await evaluator.evaluate(result_factory(0))

    # Assert
    assert breaches == []
    notifier.notify.assert_not_awaited()


@pytest.mark.asyncio
async def test_evaluate_should_not_notify_without_notification_url(
    evaluator: AlertEvaluator,
    registry: ThresholdRegistry,
    store: InMemoryResultStore,
    notifier: AsyncMock,
    result_factory,
) -> None:
    # Arrange
    await registry.set_threshold(AlertThreshold(ENDPOINT, 2000, max_latency_ms=50))
    latest = result_factory(0, latency=500)
    await store.insert_result(latest)

    # Act
    breaches = await evaluator.evaluate(latest)

    # Assert
    assert len(breaches) == 1
    notifier.notify.assert_not_awaited()


@pytest.mark.asyncio
async def test_evaluate_should_contain_notification_failures(
    evaluator: AlertEvaluator,
    registry: ThresholdRegistry,
    store: InMemoryResultStore,
    notifier: AsyncMock,
    result_factory,
) -> None:
    # Arrange
    notifier.notify.side_effect = RuntimeError("webhook down")
    await registry.set_threshold(
        AlertThreshold(ENDPOINT, 2000, max_latency_ms=50, notification_url=WEBHOOK)
    )
    latest = result_factory(0, latency=500)
    await store.insert_result(latest)

    # Act
    breaches = await evaluator.evaluate(latest)

    # Assert
    assert len(breaches) == 1
    notifier.notify.assert_awaited_once()


@pytest.mark.asyncio
async def test_evaluate_should_contain_store_failures(
    registry: ThresholdRegistry, notifier: AsyncMock, result_factory
) -> None:
    # Arrange
    store = AsyncMock(spec=ResultStore)
    store.windowed_aggregate.side_effect = RuntimeError("database unavailable")
    await registry.set_threshold(
        AlertThreshold(ENDPOINT, 2000, max_latency_ms=50, notification_url=WEBHOOK)
    )
    evaluator = AlertEvaluator(thresholds=registry, store=store, notifier=notifier)

    # Act
    breaches = await evaluator.evaluate(result_factory(0))

    # Assert
    assert breaches == []
    notifier.notify.assert_not_awaited()
