"""
Connection openers for the shared connection manager.

Each opener opens one read-write connection and returns a wrapper exposing
is_open() and close(), which is all SharedConnectionManager needs.
"""

import functools
import logging
import os
import sqlite3
import threading
from collections.abc import Callable
from pathlib import Path

import kuzu

from shareddb.config import Settings
from shareddb.errors import ConfigurationError

logger = logging.getLogger(__name__)

MEMORY_PATH = ":memory:"
JOURNAL_MODES = {"DELETE", "TRUNCATE", "PERSIST", "MEMORY", "WAL", "OFF"}


class SQLiteConnection:
    """
    Shared sqlite3 connection.

    Other attributes (cursor, total_changes, ...) are delegated to the raw
    connection. The connection runs in autocommit mode; use begin() and
    commit()/rollback() for explicit transactions.

    execute() and executemany() hold transaction_lock, so statements from
    other threads wait while a transaction holds it.
    """

    def __init__(self, raw: sqlite3.Connection, path: str):
        self.raw = raw
        self.path = path
        self.transaction_lock = threading.RLock()

    def __getattr__(self, item):
        return getattr(self.raw, item)

    def execute(self, sql: str, parameters=()):
        with self.transaction_lock:
            return self.raw.execute(sql, parameters)

    def executemany(self, sql: str, seq_of_parameters):
        with self.transaction_lock:
            return self.raw.executemany(sql, seq_of_parameters)

    def is_open(self) -> bool:
        """Return False if the raw connection has been closed, even behind our back."""
        try:
            self.raw.in_transaction
        except sqlite3.ProgrammingError:
            return False
        return True

    def begin(self) -> None:
        self.raw.execute("BEGIN")

    def commit(self) -> None:
        self.raw.commit()

    def rollback(self) -> None:
        self.raw.rollback()

    def close(self) -> None:
        self.raw.close()

    def __repr__(self) -> str:
        return f"SQLiteConnection(path={self.path!r})"


class KuzuConnection:
    """Shared Kuzu connection together with the Database that owns it.

    execute() holds transaction_lock, like SQLiteConnection.
    """

    def __init__(self, database: kuzu.Database, connection: kuzu.Connection, path: str):
        self.database = database
        self.connection = connection
        self.path = path
        self._open = True
        self.transaction_lock = threading.RLock()

    def execute(self, query: str, parameters: dict | None = None):
        """Run a Cypher query on the shared connection."""
        with self.transaction_lock:
            return self.connection.execute(query, parameters or {})

    def is_open(self) -> bool:
        """Return False if the wrapper, the Connection or the Database was closed."""
        return self._open and not self.connection.is_closed and not self.database.is_closed

    def begin(self) -> None:
        self.connection.execute("BEGIN TRANSACTION")

    def commit(self) -> None:
        self.connection.execute("COMMIT")

    def rollback(self) -> None:
        self.connection.execute("ROLLBACK")

    def close(self) -> None:
        """Close the connection, then the database."""
        if not self._open:
            return
        self._open = False
        try:
            self.connection.close()
        finally:
            self.database.close()

    def __repr__(self) -> str:
        return f"KuzuConnection(path={self.path!r})"


def _ensure_parent(path: str) -> None:
    if path == MEMORY_PATH:
        return
    if os.path.isdir(path):
        raise ValueError(f"Path points to a directory, expected file: {path}")
    Path(path).parent.mkdir(parents=True, exist_ok=True)


def open_sqlite(
    path: str | Path,
    busy_timeout_ms: int = 5000,
    journal_mode: str = "WAL",
) -> SQLiteConnection:
    """
    Open a SQLite database for writing.

    Args:
        path: Database file, or ":memory:"
        busy_timeout_ms: How long to wait on a locked database
        journal_mode: Requested journal mode (ignored for in-memory databases)

    Returns:
        SQLiteConnection usable from any thread

    Raises:
        ValueError: If path is a directory or journal_mode is unknown
        sqlite3.Error: If SQLite cannot open the file
    """
    path = str(path)
    if journal_mode and journal_mode.upper() not in JOURNAL_MODES:
        raise ValueError(f"Unknown journal mode: {journal_mode!r}")
    _ensure_parent(path)

    raw = sqlite3.connect(path, check_same_thread=False, isolation_level=None)
    raw.row_factory = sqlite3.Row

    try:
        raw.execute("PRAGMA foreign_keys=ON")
        raw.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)}")
        if path != MEMORY_PATH and journal_mode:
            got = raw.execute(f"PRAGMA journal_mode={journal_mode}").fetchone()[0]
            if got.lower() != journal_mode.lower():
                logger.warning(f"Journal mode {journal_mode} refused for {path}, using {got}")
    except sqlite3.Error:
        raw.close()
        raise

    logger.debug(f"Opened SQLite database: {path}")
    return SQLiteConnection(raw, path)


def open_kuzu(path: str | Path) -> KuzuConnection:
    """
    Open a Kuzu database for writing.

    Args:
        path: Database path

    Returns:
        KuzuConnection wrapping the Database and its Connection
    """
    path = str(path)
    _ensure_parent(path)

    database = kuzu.Database(path)
    try:
        connection = kuzu.Connection(database)
    except Exception:
        database.close()
        raise

    logger.debug(f"Opened Kuzu database: {path}")
    return KuzuConnection(database, connection, path)


def opener_from_settings(settings: Settings) -> Callable[[], SQLiteConnection | KuzuConnection]:
    """
    Build a zero-argument opener for the configured backend.

    Raises:
        ConfigurationError: If the backend is unknown
    """
    if settings.backend == "sqlite":
        return functools.partial(
            open_sqlite,
            settings.database_path,
            busy_timeout_ms=settings.busy_timeout_ms,
            journal_mode=settings.journal_mode,
        )
    if settings.backend == "kuzu":
        return functools.partial(open_kuzu, settings.database_path)
    raise ConfigurationError(f"Unknown database backend: {settings.backend}")
