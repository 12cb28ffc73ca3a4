"""
Exceptions raised by the latency monitoring engine.

Probe failures are never reported through exceptions: they are normal
negative outcomes carried by a ProbeResult. The exceptions below signal
configuration problems that the caller has to handle.
"""


class LatencyMonitorError(Exception):
    """Base class for all errors raised by the monitoring engine."""


class AlreadyMonitoringError(LatencyMonitorError):
    """Raised when monitoring is started for an endpoint that is already monitored."""

    def __init__(self, endpoint: str) -> None:
        super().__init__(f"Already monitoring {endpoint}")
        self.endpoint: str = endpoint


class EndpointConfigError(LatencyMonitorError, ValueError):
    """Raised when a startup endpoint definition is invalid or incomplete."""
