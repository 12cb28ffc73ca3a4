"""
Per-endpoint monitoring scheduler.

This module provides the MonitorScheduler class, which owns the monitoring
sessions. Every monitored endpoint gets its own asyncio task that repeats the
probe pipeline (probe, persist, export, evaluate) at the endpoint's interval.
Endpoints are independent failure domains: their tasks run concurrently and
share no mutable per-endpoint state.
"""

import asyncio
import logging
from asyncio import Task
from typing import Dict, List, NamedTuple, Set

from latency_monitor.alerting.threshold_evaluator import AlertEvaluator
from latency_monitor.config.constants import DEFAULT_INTERVAL
from latency_monitor.contracts import ProbeExecutor, ResultStore, TelemetrySink
from latency_monitor.domain import ProbeOptions, ProbeResult
from latency_monitor.exceptions import AlreadyMonitoringError

# Module logger
logger = logging.getLogger(__name__)


class MonitoringSession(NamedTuple):
    """
    Runtime binding of one endpoint to its repeating task.

    Attributes:
        endpoint: The monitored URL.
        options: The probe options, fixed for the lifetime of the session.
        task: The task running the repeating probe loop.
    """

    endpoint: str
    options: ProbeOptions
    task: Task


class MonitorScheduler:
    """
    Runs one sequential probe loop per monitored endpoint.

    Within an endpoint, cycles never overlap: the loop awaits a cycle, then
    sleeps for the interval before starting the next one, so a slow probe
    delays the following cycle instead of piling up concurrent requests.

    Stopping an endpoint or shutting down cancels its task. A cycle in flight
    is cancelled at its next suspension point, so no new result is written
    once stop_monitoring or shutdown has returned.
    """

    def __init__(
        self,
        executor: ProbeExecutor,
        store: ResultStore,
        telemetry: TelemetrySink,
        evaluator: AlertEvaluator,
        default_interval: int = DEFAULT_INTERVAL,
    ) -> None:
        """
        Initializes a new MonitorScheduler instance.

        Args:
            executor: Component that probes endpoints.
            store: Durable log receiving every probe result.
            telemetry: Sink exporting every probe result.
            evaluator: Component checking results against alert thresholds.
            default_interval: Interval in milliseconds for options without one.
        """
        self._executor: ProbeExecutor = executor
        self._store: ResultStore = store
        self._telemetry: TelemetrySink = telemetry
        self._evaluator: AlertEvaluator = evaluator
        self._default_interval: int = default_interval
        self._sessions: Dict[str, MonitoringSession] = {}
        # Endpoints whose initial cycle is running, mapped to the token of the
        # start call that reserved them. A concurrent start for the same
        # endpoint fails, and only the reserving call may arm the session.
        self._pending: Dict[str, object] = {}
        # Telemetry exports still in flight
        self._export_tasks: Set[Task] = set()
        self._lock = asyncio.Lock()

    async def _export(self, result: ProbeResult) -> None:
        """Pushes one result to the telemetry sink, logging any failure."""
        try:
            await self._telemetry.push(result)
        except Exception as e:
            logger.exception(f"Telemetry export failed for {result.endpoint}: {e}")

    def _schedule_export(self, result: ProbeResult) -> None:
        """Starts the telemetry export of a result without waiting for it."""
        task = asyncio.create_task(self._export(result), name=f"export:{result.endpoint}")
        self._export_tasks.add(task)
        task.add_done_callback(self._export_tasks.discard)

    async def drain_exports(self) -> None:
        """Waits for every telemetry export still in flight."""
        while self._export_tasks:
            await asyncio.gather(*self._export_tasks, return_exceptions=True)

    async def run_cycle(self, url: str, options: ProbeOptions) -> ProbeResult:
        """
        Runs the probe pipeline once: probe, persist, export, evaluate.

        The telemetry export runs in the background, a slow sink never delays
        evaluation nor the next cycle. Telemetry and alerting failures are
        logged and contained. Persistence failures are logged and propagated,
        the result is then lost and neither exported nor evaluated.

        Args:
            url: The endpoint to probe.
            options: The probe options.

        Returns:
            ProbeResult: The result of the probe.

        Raises:
            Exception: If the result cannot be persisted.
        """
        result = await self._executor.execute(url, options)

        try:
            await self._store.insert_result(result)
        except Exception as e:
            logger.error(f"Failed to persist result for {url}, result lost: {e}")
            raise

        self._schedule_export(result)

        try:
            await self._evaluator.evaluate(result)
        except Exception as e:
            logger.exception(f"Alert evaluation failed for {url}: {e}")

        return result

    async def _run_forever(self, url: str, options: ProbeOptions, interval_ms: int) -> None:
        """
        Repeats the probe pipeline of an endpoint until the task is cancelled.

        A failed cycle is logged and the loop keeps its schedule.
        """
        interval: float = interval_ms / 1000
        while True:
            try:
                await asyncio.sleep(interval)
                await self.run_cycle(url, options)
            except asyncio.CancelledError:
                logger.debug(f"Probe loop for {url} cancelled.")
                raise
            except Exception as e:
                logger.error(f"Probe cycle for {url} failed: {e}")

    async def start_monitoring(self, url: str, options: ProbeOptions) -> ProbeResult:
        """
        Starts monitoring an endpoint.

        One cycle runs immediately and its result is returned to the caller.
        Then a background task repeats the cycle at the configured interval.

        Args:
            url: The endpoint to monitor.
            options: The probe options of the session.

        Returns:
            ProbeResult: The result of the initial probe.

        Raises:
            AlreadyMonitoringError: If the endpoint is already monitored, or
                being started. The existing session is left untouched.
            Exception: If the initial result cannot be persisted. No session
                is created in that case.
        """
        token = object()
        async with self._lock:
            if url in self._sessions or url in self._pending:
                raise AlreadyMonitoringError(url)
            self._pending[url] = token

        interval_ms: int = options.interval or self._default_interval
        logger.info(f"Starting monitoring of {url} (interval: {interval_ms}ms)")

        try:
            result = await self.run_cycle(url, options)
        except BaseException:
            async with self._lock:
                if self._pending.get(url) is token:
                    del self._pending[url]
            raise

        async with self._lock:
            if self._pending.get(url) is not token:
                # Stopped, or shut down, while the initial cycle was running.
                # A newer start may own the reservation by now.
                logger.info(f"Monitoring of {url} was stopped before it started.")
                return result
            del self._pending[url]
            task = asyncio.create_task(
                self._run_forever(url, options, interval_ms), name=f"monitor:{url}"
            )
            self._sessions[url] = MonitoringSession(endpoint=url, options=options, task=task)

        return result

    async def stop_monitoring(self, url: str) -> bool:
        """
        Stops monitoring an endpoint. Stopping an unmonitored endpoint is a no-op.

        Args:
            url: The endpoint to stop monitoring.

        Returns:
            bool: True if a session (or a pending start) was stopped.
        """
        async with self._lock:
            was_pending = self._pending.pop(url, None) is not None
            session = self._sessions.pop(url, None)

        if session is None:
            return was_pending

        session.task.cancel()
        await asyncio.gather(session.task, return_exceptions=True)
        logger.info(f"Stopped monitoring of {url}")
        return True

    async def shutdown(self) -> None:
        """
        Cancels every session, clears the session table and waits for the
        telemetry exports still in flight.

        Safe to call while cycles are running: their tasks are cancelled and
        awaited, and no new cycle is scheduled afterwards.
        """
        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
            self._pending.clear()

        logger.info(f"Cancelling {len(sessions)} monitoring session(s)...")
        for session in sessions:
            session.task.cancel()

        await asyncio.gather(*(session.task for session in sessions), return_exceptions=True)
        await self.drain_exports()
        logger.info("Scheduler shutdown complete")

    def active_endpoints(self) -> List[str]:
        """Returns the endpoints with an active session."""
        return list(self._sessions.keys())
