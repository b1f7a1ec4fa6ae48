"""
Shared, reference-counted database connection management.

One connection is opened on the first acquire(), reused while any caller
holds a reference, and closed when the last reference is released.
"""

import logging
import threading
from collections.abc import Callable, Generator, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Protocol

from shareddb.config import get_settings
from shareddb.db.openers import opener_from_settings
from shareddb.errors import UnbalancedReleaseError

logger = logging.getLogger(__name__)


class SharedConnection(Protocol):
    """What the manager needs from a connection."""

    def is_open(self) -> bool: ...

    def close(self) -> None: ...


@dataclass
class ManagerStats:
    """Snapshot of a SharedConnectionManager.

    Attributes:
        reference_count: Callers currently holding the connection
        is_open: Whether a connection is currently held open
        opens: Connections opened over the manager's lifetime
        closes: Connections closed over the manager's lifetime
    """

    reference_count: int
    is_open: bool
    opens: int
    closes: int


class SharedConnectionManager:
    """
    Reference-counted owner of a single shared connection.

    The handle and the reference count are guarded by one lock, so
    "check open, reopen, increment" and "decrement, check zero, close" are
    each atomic with respect to other acquire/release calls.

    Every successful acquire() must be paired with exactly one release().
    Prefer the connection() context manager, which releases on all exit paths:

        >>> manager = SharedConnectionManager(lambda: open_sqlite("app.db"))
        >>> with manager.connection() as conn:
        ...     conn.execute("SELECT 1")
    """

    def __init__(self, opener: Callable[[], SharedConnection], name: str = "default"):
        """
        Initialize connection manager.

        Args:
            opener: Zero-argument factory opening the database for writing
            name: Label used in log messages
        """
        self._opener = opener
        self.name = name
        self._lock = threading.Lock()
        self._connection: SharedConnection | None = None
        self._references = 0
        self._opens = 0
        self._closes = 0

    @property
    def reference_count(self) -> int:
        return self._references

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    def stats(self) -> ManagerStats:
        with self._lock:
            return ManagerStats(
                reference_count=self._references,
                is_open=self._connection is not None,
                opens=self._opens,
                closes=self._closes,
            )

    def acquire(self) -> Any:
        """
        Take a reference to the shared connection, opening it if needed.

        Returns:
            The shared connection, valid until the matching release()

        Raises:
            Whatever the opener raises; the reference count is left unchanged.
        """
        with self._lock:
            if self._connection is not None and not self._connection.is_open():
                logger.warning(f"[{self.name}] Shared connection was closed externally, reopening")
                self._connection = None

            if self._connection is None:
                try:
                    self._connection = self._opener()
                except Exception as e:
                    logger.error(f"[{self.name}] Failed to open shared connection: {e}")
                    raise
                self._opens += 1
                logger.info(f"[{self.name}] Opened shared connection")

            self._references += 1
            logger.debug(f"[{self.name}] Acquired connection (references={self._references})")
            return self._connection

    def release(self) -> None:
        """
        Drop a reference; close the connection when the last one goes.

        Raises:
            UnbalancedReleaseError: If no reference is held
        """
        with self._lock:
            if self._references == 0:
                logger.error(f"[{self.name}] release() called without a matching acquire()")
                raise UnbalancedReleaseError(
                    f"release() called on {self.name!r} with no outstanding references"
                )

            self._references -= 1
            logger.debug(f"[{self.name}] Released connection (references={self._references})")

            if self._references == 0 and self._connection is not None:
                self._close_locked()

    @contextmanager
    def connection(self) -> Iterator[Any]:
        """Acquire the shared connection for the duration of a with-block."""
        conn = self.acquire()
        try:
            yield conn
        finally:
            self.release()

    def close(self) -> None:
        """Force-close the connection and drop all references (shutdown only)."""
        with self._lock:
            if self._references:
                logger.warning(
                    f"[{self.name}] Closing with {self._references} outstanding references"
                )
            self._references = 0
            if self._connection is not None:
                self._close_locked()

    def _close_locked(self) -> None:
        conn = self._connection
        # Clear first so a failing close() never leaves a stale handle.
        self._connection = None
        self._closes += 1
        conn.close()
        logger.info(f"[{self.name}] Closed shared connection")


# Process-wide default manager
_manager: SharedConnectionManager | None = None
_manager_lock = threading.Lock()


def get_manager() -> SharedConnectionManager:
    """Return the default manager, building it from settings on first use."""
    global _manager
    if _manager is None:
        with _manager_lock:
            if _manager is None:
                settings = get_settings()
                logger.info(f"Using {settings.backend} database: {settings.database_path}")
                _manager = SharedConnectionManager(opener_from_settings(settings))
    return _manager


def reset_manager() -> None:
    """Close and forget the default manager."""
    global _manager
    with _manager_lock:
        if _manager is not None:
            try:
                _manager.close()
            finally:
                _manager = None


def get_db() -> Generator[Any, None, None]:
    """
    Dependency-style accessor for the default shared connection.

    Yields:
        The shared connection; released when the generator finishes
    """
    manager = get_manager()
    conn = manager.acquire()
    try:
        yield conn
    except Exception as e:
        logger.error(f"Database error: {e}")
        raise
    finally:
        manager.release()
