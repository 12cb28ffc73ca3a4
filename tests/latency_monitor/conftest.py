"""
Shared fixtures for the latency monitor test suite.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from latency_monitor.config.monitoring_context import MonitoringContext
from latency_monitor.domain import ProbeResult

BASE_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_result(
    offset_ms: int = 0,
    endpoint: str = "https://example.com",
    latency: int = 100,
    status: int = 200,
    success: bool = True,
) -> ProbeResult:
    """
    Builds a ProbeResult whose timestamp is BASE_TIME shifted by offset_ms.
    """
    return ProbeResult(
        endpoint=endpoint,
        timestamp=BASE_TIME + timedelta(milliseconds=offset_ms),
        latency=latency,
        status=status,
        success=success,
    )


def make_async_context(value: Any) -> MagicMock:
    """
    Builds an object usable in 'async with' that yields value.
    """
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=value)
    context.__aexit__ = AsyncMock(return_value=False)
    return context


@pytest.fixture
def context_factory() -> Callable[..., MonitoringContext]:
    """
    Returns a factory building MonitoringContext objects with test values.
    """

    def factory(**overrides: Any) -> MonitoringContext:
        values = dict(
            dsn="postgresql://localhost/test",
            storage="memory",
            instance_id="test-instance",
            environment="test",
            logging_type="dev",
            logging_config_file="",
            db_pool_size=5,
            default_interval=30000,
            default_timeout=30000,
            host="127.0.0.1",
            port=5050,
            endpoints_file="",
            grafana_push_url="",
            grafana_user_id="",
            grafana_api_key="",
            prometheus_port=0,
            memory_retention=86_400_000,
        )
        values.update(overrides)
        return MonitoringContext(**values)

    return factory


@pytest.fixture
def result_factory() -> Callable[..., ProbeResult]:
    """Returns make_result, see its docstring."""
    return make_result


@pytest.fixture
def async_context() -> Callable[[Any], MagicMock]:
    """Returns make_async_context, see its docstring."""
    return make_async_context
