"""AND-joined WHERE clause builder."""

import re
from collections.abc import Iterable, Mapping
from typing import Any

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def validate_identifier(name: str) -> str:
    """Return name unchanged if it is a plain SQL identifier.

    Raises:
        ValueError: If name could not be safely concatenated into SQL
    """
    if not isinstance(name, str) or not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return name


def build_where_clause(
    conditions: Mapping[str, Any] | Iterable[tuple[str, Any]] | None,
) -> tuple[str | None, list[Any] | None]:
    """
    Build a "col1=? AND col2=?" clause with positional values.

    Args:
        conditions: Mapping of column to expected value, or (column, value)
            pairs when a fixed order is needed. None or empty means no filter.

    Returns:
        (clause, values), or (None, None) for no conditions. The clause has
        exactly len(values) placeholders, in the same order as values.

    Raises:
        ValueError: If a column name is not a plain identifier

    Example:
        >>> build_where_clause({"name": "a", "kind": "b"})
        ('name=? AND kind=?', ['a', 'b'])
    """
    if not conditions:
        return None, None

    pairs = conditions.items() if isinstance(conditions, Mapping) else conditions

    columns = []
    values = []
    for column, value in pairs:
        columns.append(f"{validate_identifier(column)}=?")
        values.append(value)

    if not columns:
        return None, None

    return " AND ".join(columns), values
