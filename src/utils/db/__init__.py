"""
Single-owner PostgreSQL connections.

Each owner (the discovery flow or a worker thread) holds its own
connection; connections are never shared across threads.
"""

from .base import (
    BaseStoreConnection,
    ConnectionFailedError,
    DatabaseError,
    NotConnectedError,
    PreparedStatement,
    QueryError,
)
from .postgres import PostgresConnection
from .settings import ConnectionSettings, ConnectionSettingsBuilder

__all__ = [
    "BaseStoreConnection",
    "PostgresConnection",
    "ConnectionSettings",
    "ConnectionSettingsBuilder",
    "PreparedStatement",
    "DatabaseError",
    "ConnectionFailedError",
    "QueryError",
    "NotConnectedError",
]
