"""Shared database connection management."""

from .connection import (
    ManagerStats,
    SharedConnectionManager,
    get_db,
    get_manager,
    reset_manager,
)
from .openers import KuzuConnection, SQLiteConnection, open_kuzu, open_sqlite, opener_from_settings
from .where import build_where_clause

__all__ = [
    "KuzuConnection",
    "ManagerStats",
    "SQLiteConnection",
    "SharedConnectionManager",
    "build_where_clause",
    "get_db",
    "get_manager",
    "open_kuzu",
    "open_sqlite",
    "opener_from_settings",
    "reset_manager",
]
