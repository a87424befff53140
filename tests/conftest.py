"""
Pytest configuration and fixtures for reingest tests.
Provides a recording fake store connection and environment defaults.
"""

import os
import threading
from typing import Any, Sequence

import pytest

from utils.db import (
    BaseStoreConnection,
    ConnectionFailedError,
    NotConnectedError,
    PreparedStatement,
    QueryError,
)


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


@pytest.fixture(autouse=True)
def clear_env_vars(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep libpq and logging environment variables from leaking into tests."""
    for key in (
        "PGHOST", "PGPORT", "PGUSER", "PGDATABASE", "PGAPPNAME", "OTLP_ENDPOINT",
        "LOG_LEVEL", "LOG_FILE", "LOG_JSON", "LOG_CONSOLE",
    ):
        monkeypatch.delenv(key, raising=False)


class CallLog:
    """Thread-safe event log shared by a RecordingConnection and its clones."""

    def __init__(self):
        self._lock = threading.Lock()
        self.events: list[tuple] = []
        self.open_connections = 0
        self.max_open_connections = 0

    def add(self, *event: Any) -> None:
        with self._lock:
            self.events.append(event)

    def opened(self, owner: int) -> None:
        with self._lock:
            self.events.append(("connect", owner))
            self.open_connections += 1
            self.max_open_connections = max(self.max_open_connections, self.open_connections)

    def closed(self, owner: int) -> None:
        with self._lock:
            self.events.append(("disconnect", owner))
            self.open_connections -= 1

    def of_kind(self, kind: str) -> list[tuple]:
        with self._lock:
            return [event for event in self.events if event[0] == kind]


class RecordingConnection(BaseStoreConnection):
    """
    In-memory stand-in for PostgresConnection.

    Records every connect, prepare and execute in a shared CallLog.
    Failures can be injected per record ID or for connecting.
    """

    _next_owner = 0
    _owner_lock = threading.Lock()

    def __init__(
        self,
        rows: Sequence[tuple] = (),
        fail_ids: Sequence[int] = (),
        connect_failures: int = 0,
        log: CallLog | None = None,
        query_error: str | None = None,
        prepare_error: str | None = None,
    ):
        self.rows = list(rows)
        self.fail_ids = set(fail_ids)
        self.log = log or CallLog()
        self.query_error = query_error
        self.prepare_error = prepare_error
        # Shared between clones: how many more connects should fail
        self._connect_failures = [connect_failures]
        self._connected = False
        with RecordingConnection._owner_lock:
            RecordingConnection._next_owner += 1
            self.owner = RecordingConnection._next_owner

    @property
    def connected(self) -> bool:
        return self._connected

    def clone(self) -> "RecordingConnection":
        clone = RecordingConnection(
            rows=self.rows,
            fail_ids=self.fail_ids,
            log=self.log,
            query_error=self.query_error,
            prepare_error=self.prepare_error,
        )
        clone._connect_failures = self._connect_failures
        return clone

    def connect(self) -> None:
        with RecordingConnection._owner_lock:
            if self._connect_failures[0] > 0:
                self._connect_failures[0] -= 1
                self.log.add("connect_failed", self.owner)
                raise ConnectionFailedError("Error connecting to database: refused")
        self._connected = True
        self.log.opened(self.owner)

    def disconnect(self) -> None:
        if self._connected:
            self._connected = False
            self.log.closed(self.owner)

    def query(self, sql: str, params: Sequence[Any] | None = None) -> list[tuple]:
        if not self._connected:
            raise NotConnectedError("Database connection is not established")
        self.log.add("query", self.owner, sql)
        if self.query_error:
            raise QueryError(self.query_error)
        return list(self.rows)

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> None:
        self.query(sql, params)

    def prepare(self, name: str, sql: str, arg_types: Sequence[str]) -> PreparedStatement:
        if not self._connected:
            raise NotConnectedError("Database connection is not established")
        self.log.add("prepare", self.owner, name, sql, tuple(arg_types))
        if self.prepare_error:
            raise QueryError(self.prepare_error)
        return PreparedStatement(name=name, arg_types=tuple(arg_types))

    def execute_prepared(self, statement: PreparedStatement, params: Sequence[Any]) -> list[tuple]:
        if not self._connected:
            raise NotConnectedError("Database connection is not established")
        self.log.add("execute", self.owner, statement.name, tuple(
            tuple(p) if isinstance(p, list) else p for p in params
        ))
        if params[0] in self.fail_ids:
            raise QueryError(f"function failed for record {params[0]}")
        return [(None,)]


@pytest.fixture
def call_log() -> CallLog:
    return CallLog()


@pytest.fixture
def make_connection(call_log: CallLog):
    """Factory for RecordingConnection instances sharing one CallLog."""

    def factory(**kwargs) -> RecordingConnection:
        return RecordingConnection(log=call_log, **kwargs)

    return factory
