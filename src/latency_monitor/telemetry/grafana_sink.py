"""
Grafana telemetry sink.

This module pushes probe results to Grafana Cloud using the Influx line
protocol over HTTP. Each result is exported as three metrics sharing the
same tags and timestamp: latency, success flag and status code.
"""

import logging
from typing import Dict, List, NamedTuple, Union

import aiohttp

from latency_monitor.contracts import TelemetrySink
from latency_monitor.domain import ProbeResult

# Module logger
logger = logging.getLogger(__name__)

TagValue = Union[str, int]


class LineProtocolMetric(NamedTuple):
    """
    A single point of the Influx line protocol.

    Attributes:
        name: The measurement name.
        value: The value of the 'value' field.
        timestamp: Unix timestamp in nanoseconds.
        tags: Tags attached to the point.
    """

    name: str
    value: Union[int, float]
    timestamp: int
    tags: Dict[str, TagValue]


def escape_tag_value(value: str) -> str:
    """
    Escapes the characters that have a special meaning in line protocol tags.
    """
    return value.replace(",", "\\,").replace(" ", "\\ ").replace("=", "\\=")


def to_line_protocol(metric: LineProtocolMetric) -> str:
    """
    Encodes a metric as one line of the Influx line protocol.

    Example:
        endpoint_latency,endpoint=https://example.com,status=200 value=42 1700000000000000000
    """
    tags = ",".join(f"{key}={escape_tag_value(str(value))}" for key, value in metric.tags.items())
    return f"{metric.name},{tags} value={metric.value} {metric.timestamp}"


def create_metrics(result: ProbeResult, environment: str) -> List[LineProtocolMetric]:
    """
    Builds the metrics exported for a single probe result.
    """
    timestamp_ns = int(result.timestamp.timestamp() * 1000) * 1_000_000
    tags: Dict[str, TagValue] = {
        "endpoint": result.endpoint,
        "status": result.status,
        "environment": environment,
    }
    return [
        LineProtocolMetric("endpoint_latency", result.latency, timestamp_ns, tags),
        LineProtocolMetric("endpoint_success", 1 if result.success else 0, timestamp_ns, tags),
        LineProtocolMetric("endpoint_status", result.status, timestamp_ns, tags),
    ]


class GrafanaSink(TelemetrySink):
    """
    Pushes every probe result to a Grafana line protocol endpoint.

    Errors are raised to the caller. The scheduler always wraps this sink in
    a DelegatingTelemetrySink, which logs and contains them.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        push_url: str,
        user_id: str,
        api_key: str,
        environment: str,
        timeout: float = 10.0,
    ) -> None:
        """
        Args:
            session: The shared aiohttp session.
            push_url: The Grafana line protocol push URL.
            user_id: Grafana user ID.
            api_key: Grafana API key.
            environment: Value of the 'environment' tag.
            timeout: Seconds allowed for one push.
        """
        self._session: aiohttp.ClientSession = session
        self._push_url: str = push_url
        self._environment: str = environment
        self._headers: Dict[str, str] = {
            "Authorization": f"Bearer {user_id}:{api_key}",
            "Content-Type": "text/plain",
        }
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        masked_key = f"****{api_key[-4:]}" if api_key else "Not set"
        logger.info(
            f"Grafana sink initialized (push URL: {push_url}, user ID: {user_id}, API key: {masked_key})"
        )

    async def push(self, result: ProbeResult) -> None:
        """
        Pushes the metrics of a result.

        Raises:
            aiohttp.ClientResponseError: If Grafana answers with an error status.
            aiohttp.ClientError: If the push cannot be delivered.
        """
        lines = [to_line_protocol(metric) for metric in create_metrics(result, self._environment)]
        logger.debug(f"Pushing {len(lines)} metrics to Grafana for {result.endpoint}")

        async with self._session.post(
            self._push_url,
            data="\n".join(lines),
            headers=self._headers,
            timeout=self._timeout,
        ) as response:
            if response.status >= 300:
                error_text = await response.text()
                logger.error(f"Grafana rejected metrics for {result.endpoint}: {error_text}")
            response.raise_for_status()
