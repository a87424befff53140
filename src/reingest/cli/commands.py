"""
CLI command implementation.

Resolves configuration, optionally starts the metrics server, then
runs the reingest engine and maps its outcome to an exit status.
"""

import argparse
import logging

from reingest import __version__
from reingest.config import IngestOptions
from reingest.engine import ReingestEngine, ReingestSummary
from utils.db import ConnectionSettingsBuilder, DatabaseError, PostgresConnection
from utils.metrics import ApplicationInfo, MetricsPublisher
from utils.tracing import shutdown_tracing

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_RUN_FAILED = 1
EXIT_PARTIAL_FAILURE = 3


def build_connection(args: argparse.Namespace) -> PostgresConnection:
    """Template connection from command-line options and the environment."""
    settings = ConnectionSettingsBuilder().apply_args(args).build()
    return PostgresConnection(settings, connect_retries=args.connect_retries)


def cmd_run(
    args: argparse.Namespace,
    options: IngestOptions,
    connection: PostgresConnection,
) -> int:
    """
    Run a reingest job

    Args:
        args: Parsed command-line arguments
        options: Validated job configuration
        connection: Unconnected template connection

    Returns:
        Process exit status
    """
    logger.info(f"Using database {connection.settings.describe()}")

    if args.metrics_port:
        MetricsPublisher(port=args.metrics_port).start()
        ApplicationInfo(version=__version__)

    engine = ReingestEngine(options, connection)
    try:
        summary = engine.run()
    except DatabaseError as e:
        logger.error(f"Reingest aborted: {e}")
        return EXIT_RUN_FAILED
    finally:
        shutdown_tracing()

    return exit_status(summary, strict=args.strict)


def exit_status(summary: ReingestSummary, strict: bool = False) -> int:
    """Exit status for a finished run; failures only count in strict mode."""
    if summary.has_failures:
        logger.warning(
            f"{summary.failed} reingest calls failed and "
            f"{summary.abandoned_records} records were skipped in abandoned batches"
        )
        if strict:
            return EXIT_PARTIAL_FAILURE
    return EXIT_OK
