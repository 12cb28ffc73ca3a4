"""
Configuration module for the latency monitoring system.

This module provides functionality to parse command-line arguments and environment
variables to create a configuration context for the monitoring system. It defines
default values and help text for all configurable parameters.
"""

import argparse
import os
from typing import Any, List, Optional
from uuid import uuid4

from latency_monitor.config.constants import (
    ALLOWED_STORAGES,
    DEFAULT_DB_POOL_SIZE,
    DEFAULT_DSN,
    DEFAULT_ENDPOINTS_FILE,
    DEFAULT_ENVIRONMENT,
    DEFAULT_GRAFANA_API_KEY,
    DEFAULT_GRAFANA_PUSH_URL,
    DEFAULT_GRAFANA_USER_ID,
    DEFAULT_HOST,
    DEFAULT_INSTANCE_ID_PREFIX,
    DEFAULT_INTERVAL,
    DEFAULT_LOGGING_CONFIG_FILE,
    DEFAULT_LOGGING_TYPE,
    DEFAULT_MEMORY_RETENTION,
    DEFAULT_PORT,
    DEFAULT_PROMETHEUS_PORT,
    DEFAULT_STORAGE,
    DEFAULT_TIMEOUT,
    MIN_INTERVAL,
)
from latency_monitor.config.monitoring_context import MonitoringContext


def get_context(argv: Optional[List[str]] = None) -> MonitoringContext:
    """
    Parse command-line arguments and environment variables to create a configuration context.

    This function creates an argument parser with options for all configurable aspects
    of the monitoring system. For each option, it first checks for a command-line argument,
    then falls back to an environment variable, and finally uses a default value.

    Args:
        argv: Arguments to parse. Defaults to sys.argv[1:].

    Returns:
        MonitoringContext: A configuration context object containing all parsed settings.

    Raises:
        ValueError: If the storage backend is unknown or the default interval
            is shorter than the allowed minimum.
    """
    parser = argparse.ArgumentParser(
        description="Continuous latency monitoring and alerting for HTTP endpoints."
    )

    parser.add_argument(
        "-dsn",
        type=str,
        default=os.getenv("LATENCY_MONITOR_DSN", DEFAULT_DSN),
        help="Specifies the DSN (connection string) for the PostgreSQL database.\n"
        "If not provided, the value is read from the LATENCY_MONITOR_DSN environment variable.\n"
        f"If that is also absent, a default value for a local database is used: {DEFAULT_DSN}",
    )

    parser.add_argument(
        "-st",
        "--storage",
        type=str,
        default=os.getenv("LATENCY_MONITOR_STORAGE", DEFAULT_STORAGE),
        help="Specifies the storage backend for results and thresholds.\n"
        f"Allowed values: {', '.join(ALLOWED_STORAGES)} (case insensitive).\n"
        "If not provided, the value is read from the LATENCY_MONITOR_STORAGE environment variable.\n"
        f"If that is also absent, a default value of {DEFAULT_STORAGE} is used.",
    )

    parser.add_argument(
        "-mr",
        "--memory-retention",
        type=int,
        default=int(os.getenv("LATENCY_MONITOR_MEMORY_RETENTION", DEFAULT_MEMORY_RETENTION)),
        help="Specifies the age in milliseconds after which results kept by the memory storage\n"
        "are dropped. 0 keeps every result. Ignored by the postgres storage.\n"
        "If not provided, the value is read from the LATENCY_MONITOR_MEMORY_RETENTION environment variable.\n"
        f"If that is also absent, a default value of {DEFAULT_MEMORY_RETENTION} is used.",
    )

    parser.add_argument(
        "-iid",
        "--instance-id",
        type=str,
        default=os.getenv("LATENCY_MONITOR_INSTANCE_ID", f"{DEFAULT_INSTANCE_ID_PREFIX}{uuid4()}"),
        help="Specifies the ID of this monitoring instance.\n"
        "If not provided, the value is read from the LATENCY_MONITOR_INSTANCE_ID environment variable.\n"
        f"If that is also absent, the default value will be {DEFAULT_INSTANCE_ID_PREFIX}uuid4().",
    )

    parser.add_argument(
        "-env",
        "--environment",
        type=str,
        default=os.getenv("LATENCY_MONITOR_ENVIRONMENT", DEFAULT_ENVIRONMENT),
        help="Specifies the deployment environment, attached as a tag to exported metrics.\n"
        "If not provided, the value is read from the LATENCY_MONITOR_ENVIRONMENT environment variable.\n"
        f"If that is also absent, a default value of {DEFAULT_ENVIRONMENT} is used.",
    )

    parser.add_argument(
        "-ps",
        "--db-pool-size",
        type=int,
        default=int(os.getenv("LATENCY_MONITOR_DB_POOL_SIZE", DEFAULT_DB_POOL_SIZE)),
        help="Specifies the maximum number of connections in the database connection pool.\n"
        "If not provided, the value is read from the LATENCY_MONITOR_DB_POOL_SIZE environment variable.\n"
        f"If that is also absent, a default value of {DEFAULT_DB_POOL_SIZE} is used.",
    )

    parser.add_argument(
        "-di",
        "--default-interval",
        type=int,
        default=int(os.getenv("LATENCY_MONITOR_DEFAULT_INTERVAL", DEFAULT_INTERVAL)),
        help="Specifies the probe interval in milliseconds for endpoints that define none.\n"
        "If not provided, the value is read from the LATENCY_MONITOR_DEFAULT_INTERVAL environment variable.\n"
        f"If that is also absent, a default value of {DEFAULT_INTERVAL} is used.",
    )

    parser.add_argument(
        "-dt",
        "--default-timeout",
        type=int,
        default=int(os.getenv("LATENCY_MONITOR_DEFAULT_TIMEOUT", DEFAULT_TIMEOUT)),
        help="Specifies the attempt timeout in milliseconds for endpoints that define none.\n"
        "If not provided, the value is read from the LATENCY_MONITOR_DEFAULT_TIMEOUT environment variable.\n"
        f"If that is also absent, a default value of {DEFAULT_TIMEOUT} is used.",
    )

    parser.add_argument(
        "-H",
        "--host",
        type=str,
        default=os.getenv("LATENCY_MONITOR_HOST", DEFAULT_HOST),
        help="Specifies the interface the management API binds to.\n"
        f"If not provided, the value is read from the LATENCY_MONITOR_HOST environment variable "
        f"or defaults to {DEFAULT_HOST}.",
    )

    parser.add_argument(
        "-p",
        "--port",
        type=int,
        default=int(os.getenv("LATENCY_MONITOR_PORT", DEFAULT_PORT)),
        help="Specifies the port the management API listens on.\n"
        f"If not provided, the value is read from the LATENCY_MONITOR_PORT environment variable "
        f"or defaults to {DEFAULT_PORT}.",
    )

    parser.add_argument(
        "-ef",
        "--endpoints-file",
        type=str,
        default=os.getenv("LATENCY_MONITOR_ENDPOINTS_FILE", DEFAULT_ENDPOINTS_FILE),
        help="Path to a JSON file listing the endpoints to monitor at startup.\n"
        "If not provided, the value is read from the LATENCY_MONITOR_ENDPOINTS_FILE environment variable.",
    )

    parser.add_argument(
        "-gu",
        "--grafana-push-url",
        type=str,
        default=os.getenv("GRAFANA_PUSH_URL", DEFAULT_GRAFANA_PUSH_URL),
        help="Grafana line protocol push URL. Leave empty to disable the Grafana sink.\n"
        "If not provided, the value is read from the GRAFANA_PUSH_URL environment variable.",
    )

    parser.add_argument(
        "-gid",
        "--grafana-user-id",
        type=str,
        default=os.getenv("GRAFANA_USER_ID", DEFAULT_GRAFANA_USER_ID),
        help="Grafana user ID. If not provided, the value is read from the GRAFANA_USER_ID "
        "environment variable.",
    )

    parser.add_argument(
        "-gk",
        "--grafana-api-key",
        type=str,
        default=os.getenv("GRAFANA_API_KEY", DEFAULT_GRAFANA_API_KEY),
        help="Grafana API key. If not provided, the value is read from the GRAFANA_API_KEY "
        "environment variable.",
    )

    parser.add_argument(
        "-pp",
        "--prometheus-port",
        type=int,
        default=int(os.getenv("LATENCY_MONITOR_PROMETHEUS_PORT", DEFAULT_PROMETHEUS_PORT)),
        help="Port of the Prometheus /metrics server. 0 disables the server.\n"
        "If not provided, the value is read from the LATENCY_MONITOR_PROMETHEUS_PORT environment variable.",
    )

    parser.add_argument(
        "-lt",
        "--logging-type",
        type=str,
        default=os.getenv("LATENCY_MONITOR_LOGGING_TYPE", DEFAULT_LOGGING_TYPE),
        help="Specifies the logging configuration type to use.\n"
        "Allowed values: dev, prod, custom (case insensitive).\n"
        "For 'dev' and 'prod', system will use built-in configurations.\n"
        "For 'custom', the --logging-config-file argument is required.",
    )

    parser.add_argument(
        "-lcf",
        "--logging-config-file",
        type=str,
        default=os.getenv("LATENCY_MONITOR_LOGGING_CONFIG_FILE", DEFAULT_LOGGING_CONFIG_FILE),
        help="Path to custom logging configuration file.\n"
        "Required when --logging-type is set to 'custom'.",
    )

    # Parse the command-line arguments
    args: Any = parser.parse_args(argv)

    storage: str = args.storage.lower()
    if storage not in ALLOWED_STORAGES:
        raise ValueError(
            f"Invalid storage: {args.storage}. Allowed values are: {', '.join(ALLOWED_STORAGES)}"
        )

    if args.default_interval < MIN_INTERVAL:
        raise ValueError(f"default_interval must be at least {MIN_INTERVAL}ms.")

    if args.memory_retention < 0:
        raise ValueError("memory_retention must not be negative.")

    # Create and return a MonitoringContext with the parsed settings
    return MonitoringContext(
        dsn=args.dsn,
        storage=storage,
        instance_id=args.instance_id,
        environment=args.environment,
        logging_type=args.logging_type,
        logging_config_file=args.logging_config_file,
        db_pool_size=args.db_pool_size,
        default_interval=args.default_interval,
        default_timeout=args.default_timeout,
        host=args.host,
        port=args.port,
        endpoints_file=args.endpoints_file,
        grafana_push_url=args.grafana_push_url,
        grafana_user_id=args.grafana_user_id,
        grafana_api_key=args.grafana_api_key,
        prometheus_port=args.prometheus_port,
        memory_retention=args.memory_retention,
    )
