"""
Domain models for the latency monitoring system.

This module defines the core data structures used throughout the application:
probe options, probe results, alert thresholds and windowed aggregates.
All of them are immutable and are passed by value between components.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, NamedTuple, Optional

# Predicate applied to the JSON-decoded response body of a probe.
ResponseValidator = Callable[[Any], bool]


class HttpMethod(str, Enum):
    """
    Defines supported HTTP methods as a type-safe enumeration.

    Inheriting from 'str' allows enum members to behave like strings,
    making them compatible with libraries expecting string values.
    """

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    HEAD = "HEAD"


class ProbeOptions(NamedTuple):
    """
    Configuration of the probes performed against a single endpoint.

    Options are attached to an endpoint when monitoring starts and stay the
    same for the whole monitoring session. Changing them requires stopping
    and restarting the monitoring of the endpoint.

    Attributes:
        interval: Delay between two probe cycles in milliseconds, None for the default.
        timeout_ms: Upper bound of a single attempt, in milliseconds.
        retry_count: Number of additional attempts after a failed one.
        method: The HTTP method to use for the request.
        headers: Optional HTTP headers sent with each request.
        body: Optional request body.
        expected_status_code: When set, the only status considered successful.
        response_validator: Optional predicate over the JSON-decoded body.
    """

    interval: Optional[int] = None
    timeout_ms: int = 30000
    retry_count: int = 0
    method: HttpMethod = HttpMethod.GET
    headers: Optional[Dict[str, str]] = None
    body: Optional[str] = None
    expected_status_code: Optional[int] = None
    response_validator: Optional[ResponseValidator] = None


class ProbeResult(NamedTuple):
    """
    The outcome of a single (possibly multi-attempt) probe.

    Attributes:
        endpoint: The probed URL.
        timestamp: UTC instant at which the verdict was reached.
        latency: Elapsed milliseconds from the start of the first attempt.
        status: HTTP status code, or 0 on network error or timeout.
        success: Whether the probe met its success criteria.
    """

    endpoint: str
    timestamp: datetime
    latency: int
    status: int
    success: bool

    def to_dict(self) -> Dict[str, Any]:
        """Returns a JSON-serializable representation of the result."""
        return {
            "endpoint": self.endpoint,
            "timestamp": self.timestamp.isoformat(),
            "latency": self.latency,
            "status": self.status,
            "success": self.success,
        }


class AlertThreshold(NamedTuple):
    """
    Alerting rule for one endpoint. There is at most one per endpoint.

    Attributes:
        endpoint: The URL the rule applies to.
        window_size_ms: Length of the trailing aggregation window.
        max_latency_ms: Breach when the windowed average latency is above it.
        min_success_rate: Breach when the windowed success rate is below it.
        notification_url: Webhook receiving breach notifications.
    """

    endpoint: str
    window_size_ms: int
    max_latency_ms: Optional[float] = None
    min_success_rate: Optional[float] = None
    notification_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Returns a JSON-serializable representation of the threshold."""
        return {
            "endpoint": self.endpoint,
            "max_latency": self.max_latency_ms,
            "min_success_rate": self.min_success_rate,
            "window_size": self.window_size_ms,
            "notification_url": self.notification_url,
        }


class WindowAggregate(NamedTuple):
    """
    Aggregated statistics of the results stored in a time window.

    Both averages are None when the window holds no results.
    """

    avg_latency: Optional[float]
    success_rate: Optional[float]
    sample_count: int = 0
