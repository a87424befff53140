"""
Structured logging configuration for the reingest tool

Provides console, rotating-file and JSON logging plus a context-carrying
logger wrapper for worker threads.

Usage:
    import logging

    from utils.logging import setup_logging

    # Setup logging (call once at application startup)
    setup_logging(level="INFO", log_file="/var/log/reingest/run.log")

    logger = logging.getLogger(__name__)
    logger.info("Found records", extra={"record_count": 12345})
"""

from .config import setup_logging, shutdown_logging
from .formatters import ConsoleFormatter, JSONFormatter
from .handlers import ContextLogger

__all__ = [
    "setup_logging",
    "shutdown_logging",
    "JSONFormatter",
    "ConsoleFormatter",
    "ContextLogger",
]
