"""
Time-windowed alert evaluation.

For every persisted probe result, the evaluator aggregates the results of the
same endpoint over the trailing window of its threshold and notifies the
threshold's webhook when the average latency or the success rate is out of
bounds. The evaluator holds no state of its own.
"""

import logging
from datetime import timedelta
from typing import List

from latency_monitor.alerting.threshold_registry import ThresholdRegistry
from latency_monitor.contracts import NotificationSink, ResultStore
from latency_monitor.domain import AlertThreshold, ProbeResult, WindowAggregate
from latency_monitor.storage import truncate_to_millisecond

# Module logger
logger = logging.getLogger(__name__)


def find_breaches(threshold: AlertThreshold, aggregate: WindowAggregate) -> List[str]:
    """
    Checks a window aggregate against a threshold.

    Both conditions are evaluated independently and both boundaries are
    exclusive: an average latency equal to the maximum, or a success rate
    equal to the minimum, is not a breach. An empty window never breaches.

    Args:
        threshold: The alerting rule.
        aggregate: Statistics of the results in the window.

    Returns:
        List[str]: Human-readable messages, one per breached condition.
    """
    if aggregate.sample_count == 0:
        return []

    breaches: List[str] = []

    if (
        threshold.max_latency_ms is not None
        and aggregate.avg_latency is not None
        and aggregate.avg_latency > threshold.max_latency_ms
    ):
        breaches.append(
            f"High latency: {aggregate.avg_latency:.2f}ms "
            f"(threshold: {threshold.max_latency_ms:g}ms)"
        )

    if (
        threshold.min_success_rate is not None
        and aggregate.success_rate is not None
        and aggregate.success_rate < threshold.min_success_rate
    ):
        breaches.append(
            f"Low success rate: {aggregate.success_rate * 100:.1f}% "
            f"(threshold: {threshold.min_success_rate * 100:g}%)"
        )

    return breaches


class AlertEvaluator:
    """
    Evaluates fresh probe results against the thresholds of their endpoint.
    """

    def __init__(
        self,
        thresholds: ThresholdRegistry,
        store: ResultStore,
        notifier: NotificationSink,
    ) -> None:
        """
        Args:
            thresholds: The engine's threshold table.
            store: The result store queried for window aggregates.
            notifier: The sink receiving breach notifications.
        """
        self._thresholds: ThresholdRegistry = thresholds
        self._store: ResultStore = store
        self._notifier: NotificationSink = notifier

    async def evaluate(self, result: ProbeResult) -> List[str]:
        """
        Evaluates a result that has just been persisted.

        The window is [result.timestamp - window_size, now] and therefore
        includes the result itself. Errors raised while querying the store or
        notifying are logged and contained.

        Args:
            result: The freshly persisted probe result.

        Returns:
            List[str]: The breach messages found, empty when there is no
                threshold or no breach.
        """
        threshold = self._thresholds.get_threshold(result.endpoint)
        if threshold is None:
            return []

        # Stored timestamps are truncated to the millisecond, so is the window start
        window_start = truncate_to_millisecond(result.timestamp) - timedelta(
            milliseconds=threshold.window_size_ms
        )
        try:
            aggregate = await self._store.windowed_aggregate(result.endpoint, window_start)
        except Exception as e:
            logger.exception(f"Could not aggregate the alert window of {result.endpoint}: {e}")
            return []

        breaches = find_breaches(threshold, aggregate)
        if not breaches:
            return []

        if not threshold.notification_url:
            logger.warning(f"Thresholds breached for {result.endpoint}: {'; '.join(breaches)}")
            return breaches

        logger.info(f"Thresholds breached for {result.endpoint}, notifying {threshold.notification_url}")
        try:
            await self._notifier.notify(result.endpoint, breaches, threshold.notification_url)
        except Exception as e:
            logger.exception(f"Notification sink failed for {result.endpoint}: {e}")
        return breaches
