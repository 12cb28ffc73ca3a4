"""
Main entry point for the latency monitoring application.

This module initializes and runs the latency monitoring service. It sets up
logging, creates the HTTP session and the storage backend, builds the
monitoring engine, starts the management API and the startup endpoints, and
handles graceful shutdown when the application is terminated.
"""

import asyncio
import logging
from typing import List, Optional, Tuple

import aiohttp
import asyncpg
from aiohttp import web

from latency_monitor.alerting.threshold_evaluator import AlertEvaluator
from latency_monitor.alerting.threshold_registry import ThresholdRegistry
from latency_monitor.alerting.webhook_notifier import WebhookNotifier
from latency_monitor.api.routes import create_app
from latency_monitor.config import MonitoringContext, get_context
from latency_monitor.config.db_config import initiate_db_pool
from latency_monitor.config.endpoints_file import (
    EndpointDefinition,
    load_endpoint_definitions,
    resolve_auth,
)
from latency_monitor.config.http_config import get_http_session
from latency_monitor.config.logging_config import configure_logging
from latency_monitor.contracts import ResultStore, TelemetrySink, ThresholdStore
from latency_monitor.engine import MonitoringEngine
from latency_monitor.prober.aiohttp_prober import AiohttpProbeExecutor
from latency_monitor.scheduler.monitor_scheduler import MonitorScheduler
from latency_monitor.storage.asyncpg_result_store import PostgresResultStore
from latency_monitor.storage.asyncpg_threshold_store import PostgresThresholdStore
from latency_monitor.storage.memory_store import InMemoryResultStore, InMemoryThresholdStore
from latency_monitor.telemetry.delegating_sink import DelegatingTelemetrySink
from latency_monitor.telemetry.grafana_sink import GrafanaSink
from latency_monitor.telemetry.prometheus_sink import PrometheusSink

# Module logger
logger = logging.getLogger(__name__)


def build_telemetry(
    context: MonitoringContext, http_session: aiohttp.ClientSession
) -> DelegatingTelemetrySink:
    """
    Builds the telemetry sinks enabled by the configuration.
    """
    sinks: List[TelemetrySink] = []
    if context.grafana_push_url:
        sinks.append(
            GrafanaSink(
                session=http_session,
                push_url=context.grafana_push_url,
                user_id=context.grafana_user_id,
                api_key=context.grafana_api_key,
                environment=context.environment,
            )
        )
    if context.prometheus_port:
        sinks.append(PrometheusSink(context.instance_id, port=context.prometheus_port))

    if not sinks:
        logger.warning("No telemetry sink configured. Results are only stored.")
    return DelegatingTelemetrySink(sinks)


def build_engine(
    context: MonitoringContext,
    http_session: aiohttp.ClientSession,
    result_store: ResultStore,
    threshold_store: ThresholdStore,
) -> MonitoringEngine:
    """
    Wires the engine components together.
    """
    telemetry = build_telemetry(context, http_session)
    thresholds = ThresholdRegistry(threshold_store)
    evaluator = AlertEvaluator(
        thresholds=thresholds,
        store=result_store,
        notifier=WebhookNotifier(http_session),
    )
    scheduler = MonitorScheduler(
        executor=AiohttpProbeExecutor(http_session),
        store=result_store,
        telemetry=telemetry,
        evaluator=evaluator,
        default_interval=context.default_interval,
    )
    return MonitoringEngine(scheduler=scheduler, thresholds=thresholds, telemetry=telemetry)


async def create_stores(
    context: MonitoringContext,
) -> Tuple[Optional[asyncpg.pool.Pool], ResultStore, ThresholdStore]:
    """
    Creates the storage backend selected by the configuration.

    Returns:
        The database pool, None for the memory storage, then the result and
        threshold stores.
    """
    if context.storage == "postgres":
        db_pool = await initiate_db_pool(context)
        logger.info("initialized: db_pool")
        return db_pool, PostgresResultStore(db_pool), PostgresThresholdStore(db_pool)

    logger.warning("Using in-memory storage. Nothing survives a restart.")
    retention_ms = context.memory_retention or None
    return None, InMemoryResultStore(retention_ms=retention_ms), InMemoryThresholdStore()


async def start_default_endpoint(engine: MonitoringEngine, definition: EndpointDefinition) -> bool:
    """
    Starts monitoring one startup endpoint. Failures are logged, never raised,
    so that one broken definition does not prevent the others from starting.
    """
    try:
        url, options = resolve_auth(definition)
        await engine.start_monitoring(url, options)
        logger.info(f"Loaded default endpoint: {definition.name}")
        return True
    except Exception as e:
        logger.error(f"Failed to load default endpoint {definition.name}: {e}")
        return False


async def main(context: MonitoringContext) -> None:
    """
    Set up and run the latency monitoring application.

    This function initializes all components of the monitoring system:
    1. Creates an HTTP session for probes, webhooks and telemetry
    2. Creates the storage backend (PostgreSQL pool or in-memory stores)
    3. Builds the monitoring engine and restores the alert thresholds
    4. Starts the management API and the startup endpoints
    5. Waits until cancelled, then shuts everything down in reverse order

    Args:
        context: Configuration context containing all application settings.
    """
    logger.info(f"Starting application (environment: {context.environment})...")

    http_session: aiohttp.ClientSession = get_http_session(context)
    logger.info("configured: http_session")

    db_pool: Optional[asyncpg.pool.Pool] = None
    engine: Optional[MonitoringEngine] = None
    runner: Optional[web.AppRunner] = None

    try:
        db_pool, result_store, threshold_store = await create_stores(context)

        engine = build_engine(context, http_session, result_store, threshold_store)
        await engine.load_thresholds()

        defaults = load_endpoint_definitions(context.endpoints_file, context.default_timeout)

        runner = web.AppRunner(create_app(engine, defaults, context.default_timeout))
        await runner.setup()
        await web.TCPSite(runner, context.host, context.port).start()
        logger.info(f"Management API listening on {context.host}:{context.port}")

        if defaults:
            logger.info(f"Loading {len(defaults)} default endpoint(s)...")
            started = await asyncio.gather(
                *(start_default_endpoint(engine, definition) for definition in defaults)
            )
            logger.info(f"Started {sum(started)}/{len(defaults)} default endpoint(s)")

        # Run until the task is cancelled
        await asyncio.Event().wait()

    except asyncio.CancelledError:
        logger.info("Application shutdown requested.")
    finally:
        # Ensure all resources are properly closed during shutdown
        logger.info("Shutting down resources...")
        if runner:
            await runner.cleanup()
        if engine:
            await engine.close()
        await http_session.close()
        if db_pool:
            await db_pool.close()
        logger.info("Shutdown complete.")


def run() -> None:
    """Console script entry point."""
    try:
        # Parse command-line arguments and environment variables
        latency_monitor_context: MonitoringContext = get_context()

        # Configure logging based on the context
        configure_logging(latency_monitor_context)

        # Run the main application
        asyncio.run(main(latency_monitor_context))
    except KeyboardInterrupt:
        logging.info("Shutdown initiated by user (Ctrl+C).")


if __name__ == "__main__":
    run()
