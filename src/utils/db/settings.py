"""
Connection settings with layered resolution.

Values are applied in this order of precedence:

1. Explicit set_* calls on the builder
2. Parsed command-line options (--db-host, --db-port, ...)
3. Standard libpq environment variables (PGHOST, PGPORT, ...)
4. Module defaults
"""

import argparse
import logging
import os
from dataclasses import dataclass
from typing import Mapping

from psycopg2.extensions import make_dsn

logger = logging.getLogger(__name__)

DEFAULT_DB_HOST = "localhost"
DEFAULT_DB_PORT = 5432
DEFAULT_DB_USER = "evergreen"
DEFAULT_DB_NAME = "evergreen"
DEFAULT_CONNECT_TIMEOUT = 10


@dataclass(frozen=True)
class ConnectionSettings:
    """Resolved, immutable connection parameters."""

    host: str
    port: int
    user: str
    database: str
    application_name: str | None = None
    connect_timeout: int = DEFAULT_CONNECT_TIMEOUT
    statement_timeout_ms: int | None = None

    @property
    def dsn(self) -> str:
        """libpq connection string for these settings."""
        params = {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "dbname": self.database,
            "connect_timeout": self.connect_timeout,
        }
        if self.application_name:
            params["application_name"] = self.application_name
        if self.statement_timeout_ms:
            params["options"] = f"-c statement_timeout={self.statement_timeout_ms}"
        return make_dsn(**params)

    def describe(self) -> str:
        """Loggable summary (no credentials)."""
        return f"{self.user}@{self.host}:{self.port}/{self.database}"


def _parse_port(value: str | int, source: str) -> int:
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid database port from {source}: {value!r}")
    if not 0 < port < 65536:
        raise ValueError(f"Invalid database port from {source}: {port}")
    return port


class ConnectionSettingsBuilder:
    """
    Collects connection parameters from several sources.

    Usage:
        builder = ConnectionSettingsBuilder()
        builder.apply_args(args)
        settings = builder.build()
    """

    def __init__(self, environ: Mapping[str, str] | None = None):
        self._environ = os.environ if environ is None else environ
        self.host: str | None = None
        self.port: int | None = None
        self.user: str | None = None
        self.database: str | None = None
        self.application_name: str | None = None
        self.connect_timeout: int = DEFAULT_CONNECT_TIMEOUT
        self.statement_timeout_ms: int | None = None

    def set_host(self, host: str) -> "ConnectionSettingsBuilder":
        self.host = host
        return self

    def set_port(self, port: int) -> "ConnectionSettingsBuilder":
        self.port = _parse_port(port, "setter")
        return self

    def set_user(self, user: str) -> "ConnectionSettingsBuilder":
        self.user = user
        return self

    def set_database(self, database: str) -> "ConnectionSettingsBuilder":
        self.database = database
        return self

    def set_application_name(self, name: str) -> "ConnectionSettingsBuilder":
        self.application_name = name
        return self

    def set_statement_timeout(self, timeout_ms: int | None) -> "ConnectionSettingsBuilder":
        self.statement_timeout_ms = timeout_ms
        return self

    def apply_args(self, args: argparse.Namespace) -> "ConnectionSettingsBuilder":
        """
        Apply values from parsed command-line options.

        Only fills values that were not already set explicitly, so a
        set_* call always wins over the command line.
        """
        if self.host is None and getattr(args, "db_host", None):
            self.host = args.db_host

        if self.port is None and getattr(args, "db_port", None):
            self.port = _parse_port(args.db_port, "--db-port")

        if self.user is None and getattr(args, "db_user", None):
            self.user = args.db_user

        if self.database is None and getattr(args, "db_name", None):
            self.database = args.db_name

        if self.application_name is None and getattr(args, "db_application_name", None):
            self.application_name = args.db_application_name

        if self.statement_timeout_ms is None and getattr(args, "statement_timeout", None):
            self.statement_timeout_ms = args.statement_timeout

        return self

    def build(self) -> ConnectionSettings:
        """Resolve remaining values from the environment and defaults."""
        env = self._environ

        port = self.port
        if port is None:
            env_port = env.get("PGPORT")
            port = _parse_port(env_port, "PGPORT") if env_port else DEFAULT_DB_PORT

        settings = ConnectionSettings(
            host=self.host or env.get("PGHOST") or DEFAULT_DB_HOST,
            port=port,
            user=self.user or env.get("PGUSER") or DEFAULT_DB_USER,
            database=self.database or env.get("PGDATABASE") or DEFAULT_DB_NAME,
            application_name=self.application_name or env.get("PGAPPNAME"),
            connect_timeout=self.connect_timeout,
            statement_timeout_ms=self.statement_timeout_ms,
        )

        logger.debug(f"Resolved connection settings: {settings.describe()}")
        return settings
