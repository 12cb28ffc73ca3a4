"""
Unit tests for the WebhookNotifier class.
"""

from datetime import datetime
from unittest.mock import MagicMock

import aiohttp
import pytest

from latency_monitor.alerting.webhook_notifier import WebhookNotifier

WEBHOOK = "https://hooks.example.com/alerts"


@pytest.fixture
def mock_session() -> MagicMock:
    return MagicMock(spec=aiohttp.ClientSession)


@pytest.mark.asyncio
async def test_notify_should_post_json_payload(mock_session: MagicMock, async_context) -> None:
    # Arrange
    response = MagicMock(status=200)
    mock_session.post.return_value = async_context(response)
    notifier = WebhookNotifier(mock_session)

    # Act
    await notifier.notify("https://example.com", ["High latency"], WEBHOOK)

    # Assert
    mock_session.post.assert_called_once()
    args, kwargs = mock_session.post.call_args
    assert args == (WEBHOOK,)
    payload = kwargs["json"]
    assert payload["endpoint"] == "https://example.com"
    assert payload["alerts"] == ["High latency"]
    assert datetime.fromisoformat(payload["timestamp"]).utcoffset().total_seconds() == 0


@pytest.mark.asyncio
async def test_notify_should_swallow_delivery_errors(mock_session: MagicMock) -> None:
    # Arrange
    mock_session.post.side_effect = aiohttp.ClientConnectionError("refused")
    notifier = WebhookNotifier(mock_session)

    # Act / Assert: no exception escapes
    await notifier.notify("https://example.com", ["Low success rate"], WEBHOOK)


@pytest.mark.asyncio
async def test_notify_should_not_raise_on_error_status(
    mock_session: MagicMock, async_context
) -> None:
    # Arrange
    mock_session.post.return_value = async_context(MagicMock(status=500))
    notifier = WebhookNotifier(mock_session)

    # Act / Assert: no exception escapes
    await notifier.notify("https://example.com", ["Low success rate"], WEBHOOK)
