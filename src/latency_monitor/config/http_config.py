"""
HTTP client configuration module for the latency monitoring system.

This module creates the aiohttp client session shared by the probe executor,
the webhook notifier and the Grafana sink.
"""

import logging

import aiohttp

from latency_monitor.config import MonitoringContext

# Module logger
logger = logging.getLogger(__name__)

USER_AGENT = "latency-monitor/1.0"


def get_http_session(context: MonitoringContext) -> aiohttp.ClientSession:
    """
    Create the shared HTTP client session.

    Using a shared session is recommended for performance reasons. Per-request
    timeouts are set by the callers, so the session itself carries no total
    timeout.

    Args:
        context: Configuration context containing HTTP client settings.

    Returns:
        aiohttp.ClientSession: A configured HTTP client session.
    """
    logger.debug(f"Creating HTTP session for instance {context.instance_id}")
    return aiohttp.ClientSession(
        timeout=aiohttp.ClientTimeout(total=None),
        headers={"User-Agent": USER_AGENT},
    )
