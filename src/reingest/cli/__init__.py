"""
Command-line interface for parallel record reingest.

Usage:
    reingest --do-attrs [--attr NAME ...] [--min-id N] [--max-id N]
             [--max-threads N] [--batch-size N] [--newest-first]
"""

import sys

from reingest.config import IngestOptions
from utils.logging import setup_logging

from .commands import build_connection, cmd_run, exit_status
from .parser import create_parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the reingest CLI"""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(
        level=args.log_level,
        log_file=args.log_file,
        console_output=args.console_output,
        json_format=args.log_json,
    )

    try:
        options = IngestOptions.from_args(args)
        connection = build_connection(args)
    except ValueError as e:
        # Bad job options or connection settings (e.g. a non-numeric port)
        parser.error(str(e))

    sys.exit(cmd_run(args, options, connection))


__all__ = [
    'main',
    'cmd_run',
    'build_connection',
    'exit_status',
    'create_parser',
]


if __name__ == '__main__':
    main()
