"""
Webhook implementation of the NotificationSink interface.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

import aiohttp

from latency_monitor.contracts import NotificationSink

# Module logger
logger = logging.getLogger(__name__)


class WebhookNotifier(NotificationSink):
    """
    Posts breach notifications as JSON to a webhook URL.

    The payload has the shape {endpoint, timestamp, alerts}, with the
    timestamp in UTC ISO-8601. Delivery is best-effort: failures are logged
    and never raised, so a broken webhook cannot affect probing.
    """

    def __init__(self, session: aiohttp.ClientSession, timeout: float = 10.0) -> None:
        """
        Args:
            session: The shared aiohttp session.
            timeout: Seconds allowed for one delivery.
        """
        self._session: aiohttp.ClientSession = session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def notify(self, endpoint: str, messages: List[str], url: str) -> None:
        payload: Dict[str, Any] = {
            "endpoint": endpoint,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "alerts": messages,
        }

        try:
            async with self._session.post(url, json=payload, timeout=self._timeout) as response:
                if response.status >= 300:
                    logger.warning(
                        f"Webhook {url} answered {response.status} to the alert for {endpoint}"
                    )
                else:
                    logger.info(f"Sent {len(messages)} alert(s) for {endpoint} to {url}")
        except Exception as e:
            logger.error(f"Failed to send alert for {endpoint} to {url}: {e}")
