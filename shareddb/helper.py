"""Base class for record helpers built on a shared connection.

Subclasses implement single-record insert/update plus delete and query for
one record type. The base class supplies list variants, WHERE building and
scoped access to the shared connection.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from typing import Any, Generic, TypeVar

from shareddb.db.connection import SharedConnectionManager
from shareddb.db.where import build_where_clause

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DatabaseHelper(ABC, Generic[T]):
    """
    Abstract CRUD helper for records of type T.

    Typical use inside a subclass method:

        >>> with self.transaction() as conn:
        ...     conn.execute("INSERT INTO notes (id) VALUES (?)", (1,))

    Attributes:
        manager: Shared connection manager all operations go through
    """

    def __init__(self, manager: SharedConnectionManager):
        self.manager = manager

    # ------------------------------------------------------------------
    # Connection access
    # ------------------------------------------------------------------

    def acquire(self) -> Any:
        """Take a reference to the shared connection. Pair with release()."""
        return self.manager.acquire()

    def release(self) -> None:
        self.manager.release()

    @contextmanager
    def connection(self) -> Iterator[Any]:
        """Shared connection for the duration of a with-block."""
        with self.manager.connection() as conn:
            yield conn

    @contextmanager
    def transaction(self) -> Iterator[Any]:
        """
        Shared connection inside an explicit transaction.

        Commits when the block completes and rolls back if the block or the
        commit raises. The original exception is re-raised either way.

        The connection's transaction_lock is held from begin() to commit or
        rollback, so other threads' statements and transactions on the shared
        connection wait instead of joining this one.
        """
        with self.manager.connection() as conn, conn.transaction_lock:
            conn.begin()
            try:
                yield conn
            except Exception:
                logger.debug("Rolling back transaction")
                conn.rollback()
                raise
            try:
                conn.commit()
            except Exception as e:
                logger.warning(f"Commit failed, rolling back: {e}")
                self._rollback_after_failed_commit(conn)
                raise

    def _rollback_after_failed_commit(self, conn: Any) -> None:
        try:
            conn.rollback()
        except Exception as e:
            # The commit error is the one the caller sees.
            logger.error(f"Rollback after failed commit also failed: {e}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def build_where_clause(
        self, conditions: Mapping[str, Any] | Iterable[tuple[str, Any]] | None
    ) -> tuple[str | None, list[Any] | None]:
        """See shareddb.db.where.build_where_clause."""
        return build_where_clause(conditions)

    def check_data(self, items: list[T] | None) -> bool:
        """
        Return True if items is worth processing.

        Only checks for None or empty; override for stricter validation.
        """
        return bool(items)

    # ------------------------------------------------------------------
    # List operations
    # ------------------------------------------------------------------

    def insert_many(self, items: list[T] | None) -> None:
        """
        Insert items one at a time.

        No batching and no transaction: if one insert raises, earlier items
        stay inserted and later ones are not attempted.
        """
        if not self.check_data(items):
            return
        for item in items:
            self.insert(item)

    def update_many(self, items: list[T] | None) -> None:
        """Update items one at a time, with the same failure semantics as insert_many."""
        if not self.check_data(items):
            return
        for item in items:
            self.update(item)

    # ------------------------------------------------------------------
    # Record operations
    # ------------------------------------------------------------------

    @abstractmethod
    def insert(self, item: T) -> None:
        """Insert a single record."""

    @abstractmethod
    def update(self, item: T) -> Any:
        """Update a single record."""

    @abstractmethod
    def delete(self, conditions: Mapping[str, Any] | None) -> Any:
        """Delete records matching all conditions (AND-joined)."""

    @abstractmethod
    def query(self, conditions: Mapping[str, Any] | None, order_by: str | None) -> list[T]:
        """Return records matching all conditions (AND-joined), optionally ordered."""
