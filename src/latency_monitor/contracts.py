"""
Core interfaces for the latency monitoring system.

This module defines the abstract base classes that form the foundation of the
monitoring engine's architecture. The engine only talks to its collaborators
through these contracts, so storage, telemetry and notification backends can
be swapped without touching the scheduling and alerting logic.
"""

import abc
from datetime import datetime
from typing import List, Optional

from .domain import AlertThreshold, ProbeOptions, ProbeResult, WindowAggregate


class ProbeExecutor(abc.ABC):
    """
    Abstract interface for a component that probes a single endpoint.

    Its responsibility is to encapsulate the network I/O for a given URL,
    including timeouts and retries, and return a structured result.
    """

    @abc.abstractmethod
    async def execute(self, target: str, options: ProbeOptions) -> ProbeResult:
        """
        Probes the target URL according to the given options.

        Args:
            target: The URL to probe.
            options: Method, headers, timeout, retry and success criteria.

        Returns:
            ProbeResult: The verdict of the probe.

        Raises:
            Nothing: every failure mode must be reported as a ProbeResult
                with success set to False.
        """
        pass


class ResultStore(abc.ABC):
    """
    Abstract interface for the durable log of probe results.

    Implementations must tolerate concurrent appends from independent
    endpoint tasks.
    """

    @abc.abstractmethod
    async def insert_result(self, result: ProbeResult) -> None:
        """
        Persists a probe result.

        The write is an upsert keyed by (endpoint, timestamp): a second write
        for the same pair overwrites the first one.

        Args:
            result: The probe result to persist.

        Raises:
            Exception: Storage errors are propagated to the caller.
        """
        pass

    @abc.abstractmethod
    async def windowed_aggregate(self, endpoint: str, since: datetime) -> WindowAggregate:
        """
        Aggregates all results of an endpoint with a timestamp >= since.

        Args:
            endpoint: The endpoint whose results are aggregated.
            since: Inclusive lower bound of the window.

        Returns:
            WindowAggregate: Average latency, success rate and sample count.
        """
        pass


class ThresholdStore(abc.ABC):
    """
    Abstract interface for the durable mirror of the alert threshold table.
    """

    @abc.abstractmethod
    async def upsert(self, threshold: AlertThreshold) -> None:
        """Creates or replaces the threshold of threshold.endpoint."""
        pass

    @abc.abstractmethod
    async def delete(self, endpoint: str) -> None:
        """Deletes the threshold of an endpoint. Deleting a missing one is a no-op."""
        pass

    @abc.abstractmethod
    async def get(self, endpoint: str) -> Optional[AlertThreshold]:
        """Returns the threshold of an endpoint, or None."""
        pass

    @abc.abstractmethod
    async def load_all(self) -> List[AlertThreshold]:
        """Returns every stored threshold. Used to rebuild the in-memory table at startup."""
        pass


class TelemetrySink(abc.ABC):
    """
    Abstract interface for a one-way exporter of per-result metrics.

    Sinks are best-effort. The engine logs and contains their failures,
    they never abort a probe cycle.
    """

    @abc.abstractmethod
    async def push(self, result: ProbeResult) -> None:
        """
        Exports the metrics of a single probe result.

        Args:
            result: The probe result to export.
        """
        pass

    async def flush(self) -> None:
        """
        Forces the export of any buffered metrics.

        Called during a graceful shutdown. For sinks that do not buffer data,
        this method is a no-op.
        """
        pass


class NotificationSink(abc.ABC):
    """
    Abstract interface for the delivery of alert notifications.
    """

    @abc.abstractmethod
    async def notify(self, endpoint: str, messages: List[str], url: str) -> None:
        """
        Delivers the breach messages of an endpoint to a notification URL.

        Implementations must log and swallow delivery failures.

        Args:
            endpoint: The endpoint whose thresholds were breached.
            messages: Human-readable breach messages.
            url: The destination of the notification.
        """
        pass
