"""
Pytest configuration and shared fixtures.
"""

import threading
import time

import pytest


class FakeConnection:
    """In-memory stand-in for a shared connection."""

    def __init__(self, opener: "FakeOpener"):
        self.opener = opener
        self.closed = False

    def is_open(self) -> bool:
        return not self.closed

    def close(self) -> None:
        if self.closed:
            raise AssertionError("connection closed twice")
        self.closed = True
        self.opener.connection_closed()


class FakeOpener:
    """Opener that records how many connections it opened and how many are live."""

    def __init__(self, delay: float = 0.0):
        self.delay = delay
        self.calls = 0
        self.live = 0
        self.max_live = 0
        self.connections: list[FakeConnection] = []
        self._lock = threading.Lock()

    def __call__(self) -> FakeConnection:
        if self.delay:
            time.sleep(self.delay)
        with self._lock:
            self.calls += 1
            self.live += 1
            self.max_live = max(self.max_live, self.live)
            conn = FakeConnection(self)
            self.connections.append(conn)
            return conn

    def connection_closed(self) -> None:
        with self._lock:
            self.live -= 1


@pytest.fixture
def opener_factory():
    """The FakeOpener class, for tests that need custom instances."""
    return FakeOpener


@pytest.fixture
def fake_opener():
    """Opener producing FakeConnection objects."""
    return FakeOpener()


@pytest.fixture
def manager(fake_opener):
    """Fresh manager per test, backed by the fake opener."""
    from shareddb.db.connection import SharedConnectionManager

    return SharedConnectionManager(fake_opener, name="test")


@pytest.fixture
def sqlite_path(tmp_path):
    """Path to a not-yet-created SQLite database."""
    return tmp_path / "data" / "test.sqlite3"


@pytest.fixture
def sqlite_manager(sqlite_path):
    """Manager backed by a real SQLite file with a notes table."""
    from shareddb.db.connection import SharedConnectionManager
    from shareddb.db.openers import open_sqlite

    manager = SharedConnectionManager(lambda: open_sqlite(sqlite_path), name="sqlite-test")
    with manager.connection() as conn:
        conn.execute(
            "CREATE TABLE notes (id INTEGER PRIMARY KEY, title TEXT NOT NULL, body TEXT)"
        )
    yield manager
    manager.close()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep SHAREDDB_* variables and the default manager out of each test."""
    from shareddb.db import connection

    for key in (
        "SHAREDDB_DATABASE_PATH",
        "SHAREDDB_BACKEND",
        "SHAREDDB_BUSY_TIMEOUT_MS",
        "SHAREDDB_JOURNAL_MODE",
        "SHAREDDB_LOG_LEVEL",
    ):
        monkeypatch.delenv(key, raising=False)

    connection.reset_manager()
    yield
    connection.reset_manager()
