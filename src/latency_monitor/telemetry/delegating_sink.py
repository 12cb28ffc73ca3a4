"""
Delegating telemetry sink implementation.

This module provides a composite implementation of the TelemetrySink interface
that delegates pushes to multiple child sinks concurrently. It ensures that
failures in one sink don't affect the others, nor the probe cycle.
"""

import asyncio
import logging
from typing import List

from latency_monitor.contracts import TelemetrySink
from latency_monitor.domain import ProbeResult

# Module logger
logger = logging.getLogger(__name__)


class DelegatingTelemetrySink(TelemetrySink):
    """
    A concrete implementation of TelemetrySink that follows the Composite pattern.

    This class holds a list of other TelemetrySink instances and delegates the
    'push' and 'flush' calls to each of them concurrently. The scheduler sees a
    single sink and never has to care about the health of the individual
    exporters.

    The implementation is fault-tolerant: if one sink fails, the others
    still receive the result, and the failure is logged but never raised.
    """

    def __init__(self, sinks: List[TelemetrySink]) -> None:
        """
        Args:
            sinks: The sinks to delegate to. They are called concurrently.
        """
        self._sinks: List[TelemetrySink] = sinks

    async def _push_to_one(self, sink: TelemetrySink, result: ProbeResult) -> None:
        """
        Safely runs a single sink. All exceptions are logged, none is propagated.
        """
        try:
            await sink.push(result)
        except Exception as e:
            logger.exception(
                f"Telemetry sink '{type(sink).__name__}' failed for {result.endpoint} with error: {e}",
            )

    async def _flush_one(self, sink: TelemetrySink) -> None:
        try:
            await sink.flush()
        except Exception as e:
            logger.exception(f"Telemetry sink '{type(sink).__name__}' failed to flush: {e}")

    async def push(self, result: ProbeResult) -> None:
        """
        Pushes a result to all child sinks concurrently.

        Returns immediately when no sink is configured.
        """
        if not self._sinks:
            return

        await asyncio.gather(*(self._push_to_one(sink, result) for sink in self._sinks))

    async def flush(self) -> None:
        if not self._sinks:
            return

        await asyncio.gather(*(self._flush_one(sink) for sink in self._sinks))
