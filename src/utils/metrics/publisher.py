"""
Metrics publisher for Prometheus HTTP server.

Exposes the process registry on the /metrics endpoint while a
reingest run is in progress.
"""

import logging
import time
from typing import Optional

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Gauge,
    Info,
    start_http_server,
)

logger = logging.getLogger(__name__)


class MetricsPublisher:
    """
    Starts an HTTP server that exposes metrics on the /metrics endpoint.
    """

    def __init__(
        self,
        port: int = 9091,
        registry: Optional[CollectorRegistry] = None,
    ):
        """
        Initialize metrics publisher

        Args:
            port: Port to expose metrics on (default: 9091)
            registry: Custom Prometheus registry (default: global REGISTRY)
        """
        self.port = port
        self.registry = registry or REGISTRY
        self._server_started = False

    def start(self) -> None:
        """Start the metrics HTTP server"""
        if self._server_started:
            logger.warning(f"Metrics server already running on port {self.port}")
            return

        try:
            start_http_server(self.port, registry=self.registry)
        except OSError as e:
            raise RuntimeError(
                f"Metrics server port {self.port} is unavailable: {e}"
            ) from e

        self._server_started = True
        logger.info(f"Metrics server started on port {self.port}")

    def is_started(self) -> bool:
        return self._server_started


class ApplicationInfo:
    """
    Application name/version info metric plus a run-start timestamp.
    """

    def __init__(
        self,
        app_name: str = "evergreen-reingest",
        version: str = "1.0.0",
        registry: Optional[CollectorRegistry] = None,
    ):
        self.registry = registry or REGISTRY

        self.info = Info(
            "reingest_application",
            "Application metadata",
            registry=self.registry,
        )
        self.info.info({
            "name": app_name,
            "version": version,
        })

        self.start_time = Gauge(
            "reingest_start_time_seconds",
            "Unix time the reingest process started",
            registry=self.registry,
        )
        self.start_time.set(time.time())
