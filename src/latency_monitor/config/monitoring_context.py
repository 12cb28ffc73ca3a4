"""
Configuration context for the latency monitoring system.

This module defines a data structure that holds all configuration parameters
for the monitoring system. It serves as a central point for passing configuration
throughout the application.
"""

from typing import NamedTuple


class MonitoringContext(NamedTuple):
    """
    A data structure containing all configuration parameters for the monitoring system.

    This class is immutable and provides a type-safe way to pass configuration
    throughout the application. It is created by parsing command-line arguments
    and environment variables.

    Attributes:
        dsn: Database connection string for PostgreSQL.
        storage: Storage backend, either 'postgres' or 'memory'.
        instance_id: Unique identifier for this engine instance.
        environment: Deployment environment, attached to exported metrics.
        logging_type: Type of logging configuration to use (dev, prod, or custom).
        logging_config_file: Path to custom logging configuration file (if logging_type is 'custom').
        db_pool_size: Maximum number of connections in the database connection pool.
        default_interval: Probe interval in milliseconds used when an endpoint sets none.
        default_timeout: Attempt timeout in milliseconds used when an endpoint sets none.
        host: Interface the management API binds to.
        port: Port the management API listens on.
        endpoints_file: Path to a JSON file of endpoints monitored at startup.
        grafana_push_url: Grafana line protocol push URL, empty to disable the sink.
        grafana_user_id: Grafana user ID used to authenticate pushes.
        grafana_api_key: Grafana API key used to authenticate pushes.
        prometheus_port: Port of the Prometheus /metrics server, 0 to disable it.
        memory_retention: Age in milliseconds after which in-memory results are
            dropped, 0 to keep them all. Unused with the postgres storage.
    """

    dsn: str
    storage: str
    instance_id: str
    environment: str
    logging_type: str
    logging_config_file: str
    db_pool_size: int
    default_interval: int
    default_timeout: int
    host: str
    port: int
    endpoints_file: str
    grafana_push_url: str
    grafana_user_id: str
    grafana_api_key: str
    prometheus_port: int
    memory_retention: int
