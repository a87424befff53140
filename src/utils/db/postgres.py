"""PostgreSQL store connection implementation."""

import logging
from typing import Any, Sequence

import psycopg2
import psycopg2.extensions
from opentelemetry import trace

from utils.retry import retry_database_operation
from utils.sql_safety import validate_identifier
from utils.tracing import trace_operation

from .base import (
    BaseStoreConnection,
    ConnectionFailedError,
    NotConnectedError,
    PreparedStatement,
    QueryError,
)
from .settings import ConnectionSettings

logger = logging.getLogger(__name__)


class PostgresConnection(BaseStoreConnection):
    """Wrapper for one psycopg2 connection plus its connection settings."""

    def __init__(
        self,
        settings: ConnectionSettings,
        connect_retries: int = 0,
        retry_delay: float = 1.0,
    ):
        """
        Initialize an unconnected PostgreSQL connection.

        Args:
            settings: Resolved connection settings
            connect_retries: Retries for transient connect failures (default: 0)
            retry_delay: Base backoff delay in seconds between retries
        """
        self.settings = settings
        self.connect_retries = connect_retries
        self.retry_delay = retry_delay
        self._conn: psycopg2.extensions.connection | None = None
        self._prepared: dict[str, PreparedStatement] = {}

    @property
    def connected(self) -> bool:
        return self._conn is not None and not self._conn.closed

    def clone(self) -> "PostgresConnection":
        return PostgresConnection(
            self.settings,
            connect_retries=self.connect_retries,
            retry_delay=self.retry_delay,
        )

    def _open(self) -> psycopg2.extensions.connection:
        connect = psycopg2.connect
        if self.connect_retries > 0:
            connect = retry_database_operation(
                max_retries=self.connect_retries,
                base_delay=self.retry_delay,
            )(psycopg2.connect)

        with trace_operation(
            "postgres_connect",
            kind=trace.SpanKind.CLIENT,
            db_host=self.settings.host,
            db_name=self.settings.database,
        ):
            conn = connect(self.settings.dsn)
            # Each reingest call commits on its own so one failure
            # cannot abort the calls that follow it.
            conn.set_session(autocommit=True)
            return conn

    def connect(self) -> None:
        """
        Connect to the database.

        Raises:
            ConnectionFailedError: If the connection cannot be established
        """
        if self.connected:
            return

        try:
            self._conn = self._open()
        except psycopg2.Error as e:
            raise ConnectionFailedError(
                f"Error connecting to database {self.settings.describe()}: {e}"
            ) from e

        logger.debug(f"Connected to {self.settings.describe()}")

    def disconnect(self) -> None:
        """Close the connection. Safe to call when not connected."""
        conn, self._conn = self._conn, None
        self._prepared.clear()
        if conn is not None and not conn.closed:
            conn.close()

    def _require_connection(self) -> psycopg2.extensions.connection:
        if not self.connected:
            raise NotConnectedError("Database connection is not established")
        return self._conn

    def query(self, sql: str, params: Sequence[Any] | None = None) -> list[tuple]:
        conn = self._require_connection()
        try:
            with conn.cursor() as cursor:
                cursor.execute(sql, params)
                return cursor.fetchall()
        except psycopg2.Error as e:
            raise QueryError(str(e).strip()) from e

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> None:
        conn = self._require_connection()
        try:
            with conn.cursor() as cursor:
                cursor.execute(sql, params)
        except psycopg2.Error as e:
            raise QueryError(str(e).strip()) from e

    def prepare(
        self, name: str, sql: str, arg_types: Sequence[str]
    ) -> PreparedStatement:
        """
        Prepare a server-side statement on this connection.

        Args:
            name: Statement name (validated SQL identifier)
            sql: Statement body using $1..$n placeholders
            arg_types: PostgreSQL type names for the placeholders

        Returns:
            Handle to pass to execute_prepared()
        """
        validate_identifier(name)
        if name in self._prepared:
            return self._prepared[name]

        types = ", ".join(arg_types)
        self.execute(f"PREPARE {name} ({types}) AS {sql}")

        statement = PreparedStatement(name=name, arg_types=tuple(arg_types))
        self._prepared[name] = statement
        return statement

    def execute_prepared(
        self, statement: PreparedStatement, params: Sequence[Any]
    ) -> list[tuple]:
        if len(params) != statement.arg_count:
            raise ValueError(
                f"Statement {statement.name} expects {statement.arg_count} "
                f"parameters, got {len(params)}"
            )
        placeholders = ", ".join(["%s"] * statement.arg_count)
        return self.query(f"EXECUTE {statement.name} ({placeholders})", list(params))
