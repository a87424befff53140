"""
Base classes and errors for single-owner database connections.

A store connection wraps exactly one live database handle. It is never
shared between threads: each owner (the bootstrap flow or one worker)
holds its own instance.
"""

import logging
from dataclasses import dataclass
from typing import Any, Sequence

logger = logging.getLogger(__name__)


class DatabaseError(Exception):
    """Base exception for store connection errors."""

    pass


class ConnectionFailedError(DatabaseError):
    """Raised when a connection to the store cannot be established."""

    pass


class QueryError(DatabaseError):
    """Raised when the store rejects a query or statement execution."""

    pass


class NotConnectedError(QueryError):
    """Raised when a query is issued without a live connection."""

    pass


@dataclass(frozen=True)
class PreparedStatement:
    """Handle for a server-side prepared statement on one connection."""

    name: str
    arg_types: tuple[str, ...]

    @property
    def arg_count(self) -> int:
        return len(self.arg_types)


class BaseStoreConnection:
    """
    Base class for a single-owner store connection.

    Subclasses provide the driver-specific pieces; callers only rely on
    connect/disconnect, query/execute and the prepared statement calls.
    """

    def connect(self) -> None:
        """Open the connection. Must be implemented by subclasses."""
        raise NotImplementedError

    def disconnect(self) -> None:
        """Drop the connection. Must be implemented by subclasses."""
        raise NotImplementedError

    @property
    def connected(self) -> bool:
        """Whether a live handle is held. Must be implemented by subclasses."""
        raise NotImplementedError

    def clone(self) -> "BaseStoreConnection":
        """Unconnected copy sharing the same settings."""
        raise NotImplementedError

    def query(self, sql: str, params: Sequence[Any] | None = None) -> list[tuple]:
        """Run a statement and return all rows."""
        raise NotImplementedError

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> None:
        """Run a statement that returns no rows."""
        raise NotImplementedError

    def prepare(
        self, name: str, sql: str, arg_types: Sequence[str]
    ) -> PreparedStatement:
        """Prepare a statement once for repeated execution."""
        raise NotImplementedError

    def execute_prepared(
        self, statement: PreparedStatement, params: Sequence[Any]
    ) -> list[tuple]:
        """Execute a previously prepared statement."""
        raise NotImplementedError

    def __enter__(self) -> "BaseStoreConnection":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.disconnect()
