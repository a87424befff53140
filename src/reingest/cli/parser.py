"""
Command-line argument parser configuration.

Defines the options for the reingest CLI tool: database connection,
job selection, reingest phases and logging/metrics.
"""

import argparse
import os

from reingest.config import DEFAULT_BATCH_SIZE, DEFAULT_MAX_THREADS, DEFAULT_RECORD_TABLE


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="reingest",
        description="Parallel reingest of Evergreen bibliographic record data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Reingest all record attributes with 8 workers
  reingest --do-attrs --max-threads 8

  # Reingest only two attribute kinds for a range of records
  reingest --do-attrs --attr item_type --attr item_form --min-id 100 --max-id 200

  # Newest records first, browse and search entries too
  reingest --do-attrs --do-browse --do-search --newest-first

  # Expose Prometheus metrics while running
  reingest --do-attrs --metrics-port 9091

Connection values not given on the command line are read from
PGHOST, PGPORT, PGUSER, PGDATABASE and PGAPPNAME. Logging defaults
come from LOG_LEVEL, LOG_FILE, LOG_JSON and LOG_CONSOLE.
        """
    )

    parser.add_argument(
        '--log-level',
        type=str.upper,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default=os.getenv('LOG_LEVEL', 'INFO'),
        help='Logging level (default: $LOG_LEVEL or INFO)'
    )
    parser.add_argument(
        '--log-file',
        default=os.getenv('LOG_FILE'),
        help='Also write logs to this file, rotated (default: $LOG_FILE)'
    )
    parser.add_argument(
        '--log-json',
        action='store_true',
        default=_env_flag('LOG_JSON', 'false'),
        help='Emit JSON-formatted log records (default: $LOG_JSON or false)'
    )
    parser.add_argument(
        '--no-console-log',
        dest='console_output',
        action='store_false',
        default=_env_flag('LOG_CONSOLE', 'true'),
        help='Do not log to stderr (default: $LOG_CONSOLE or true)'
    )
    parser.add_argument(
        '--metrics-port',
        type=int,
        help='Serve Prometheus metrics on this port during the run'
    )
    parser.add_argument(
        '--strict',
        action='store_true',
        help='Exit with status 3 if any record or batch failed'
    )

    db = parser.add_argument_group('database')
    db.add_argument('--db-host', help='Database host')
    db.add_argument('--db-port', help='Database port')
    db.add_argument('--db-user', help='Database user')
    db.add_argument('--db-name', help='Database name')
    db.add_argument('--db-application-name', help='application_name reported to the server')
    db.add_argument(
        '--statement-timeout',
        type=int,
        help='Per-statement timeout in milliseconds (default: server setting)'
    )
    db.add_argument(
        '--connect-retries',
        type=int,
        default=0,
        help='Retries for transient connection failures (default: 0)'
    )

    job = parser.add_argument_group('job')
    job.add_argument(
        '--max-threads',
        type=int,
        default=DEFAULT_MAX_THREADS,
        help=f'Max worker threads (default: {DEFAULT_MAX_THREADS})'
    )
    job.add_argument(
        '--batch-size',
        type=int,
        default=DEFAULT_BATCH_SIZE,
        help=f'Number of records to process per batch (default: {DEFAULT_BATCH_SIZE})'
    )
    job.add_argument('--min-id', type=int, help='Only records with an ID above this value')
    job.add_argument('--max-id', type=int, help='Only records with an ID below this value')
    job.add_argument(
        '--attr',
        dest='attrs',
        action='append',
        default=[],
        metavar='RECORD_ATTR',
        help='Reingest a specific record attribute; repeatable (default: all)'
    )
    job.add_argument(
        '--newest-first',
        action='store_true',
        help='Update records newest to oldest'
    )
    job.add_argument(
        '--record-table',
        default=DEFAULT_RECORD_TABLE,
        help=f'Record table (default: {DEFAULT_RECORD_TABLE})'
    )

    phases = parser.add_argument_group('phases')
    phases.add_argument('--do-attrs', action='store_true', help='Update record attributes')
    phases.add_argument('--do-browse', action='store_true', help='Update browse entries')
    phases.add_argument('--do-search', action='store_true', help='Update search indexes')
    phases.add_argument('--do-facets', action='store_true', help='Update facets')
    phases.add_argument('--do-display', action='store_true', help='Update display fields')

    return parser
