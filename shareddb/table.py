"""
SQLite table helper for pydantic models.

Maps one table onto one pydantic model: field names are column names and
key_columns identify a row for updates.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any, TypeVar

from pydantic import BaseModel

from shareddb.db.connection import SharedConnectionManager
from shareddb.db.where import validate_identifier
from shareddb.helper import DatabaseHelper

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class TableHelper(DatabaseHelper[ModelT]):
    """
    CRUD for a single SQLite table.

    Every call acquires the shared connection and releases it before
    returning. The table must already exist.

    Example:
        >>> class Note(BaseModel):
        ...     id: int
        ...     title: str
        >>> notes = TableHelper(manager, "notes", Note, key_columns=("id",))
        >>> notes.insert_many([Note(id=1, title="a"), Note(id=2, title="b")])
        >>> notes.query({"title": "a"})
        [Note(id=1, title='a')]
    """

    def __init__(
        self,
        manager: SharedConnectionManager,
        table: str,
        model: type[ModelT],
        key_columns: Sequence[str] = ("id",),
    ):
        """
        Initialize table helper.

        Args:
            manager: Shared connection manager
            table: Table name
            model: Pydantic model rows are validated into
            key_columns: Columns identifying a row (used by update)

        Raises:
            ValueError: If a name is not a plain identifier or no key is given
        """
        super().__init__(manager)
        if not key_columns:
            raise ValueError("At least one key column is required")

        self.table = validate_identifier(table)
        self.model = model
        self.key_columns = tuple(validate_identifier(c) for c in key_columns)

        for column in self.key_columns:
            if column not in model.model_fields:
                raise ValueError(f"Key column {column!r} is not a field of {model.__name__}")

    def _row(self, item: ModelT) -> dict[str, Any]:
        row = item.model_dump()
        for column in row:
            validate_identifier(column)
        return row

    def insert(self, item: ModelT) -> None:
        row = self._row(item)
        columns = ", ".join(row)
        placeholders = ", ".join("?" for _ in row)
        sql = f"INSERT INTO {self.table} ({columns}) VALUES ({placeholders})"

        with self.connection() as conn:
            conn.execute(sql, list(row.values()))

    def update(self, item: ModelT) -> int:
        """Update the row matching the item's key columns.

        Returns:
            Number of rows changed
        """
        row = self._row(item)
        assignments = {c: v for c, v in row.items() if c not in self.key_columns}
        if not assignments:
            return 0

        where, where_values = self.build_where_clause([(c, row[c]) for c in self.key_columns])
        set_clause = ", ".join(f"{c}=?" for c in assignments)
        sql = f"UPDATE {self.table} SET {set_clause} WHERE {where}"

        with self.connection() as conn:
            cursor = conn.execute(sql, [*assignments.values(), *where_values])
            return cursor.rowcount

    def delete(self, conditions: Mapping[str, Any] | None = None) -> int:
        """Delete matching rows (all rows if conditions is empty).

        Returns:
            Number of rows deleted
        """
        where, values = self.build_where_clause(conditions)
        sql = f"DELETE FROM {self.table}"
        if where:
            sql += f" WHERE {where}"

        with self.connection() as conn:
            cursor = conn.execute(sql, values or [])
            logger.debug(f"Deleted {cursor.rowcount} rows from {self.table}")
            return cursor.rowcount

    def query(
        self,
        conditions: Mapping[str, Any] | None = None,
        order_by: str | None = None,
    ) -> list[ModelT]:
        """Return matching rows as models.

        Args:
            conditions: Column/value pairs, AND-joined
            order_by: Raw ORDER BY expression, e.g. "title DESC". It is
                inserted into the SQL as-is and must come from trusted code,
                never from user input.
        """
        where, values = self.build_where_clause(conditions)
        sql = f"SELECT * FROM {self.table}"
        if where:
            sql += f" WHERE {where}"
        if order_by:
            sql += f" ORDER BY {order_by}"

        with self.connection() as conn:
            rows = conn.execute(sql, values or []).fetchall()

        return [self.model.model_validate(dict(row)) for row in rows]
