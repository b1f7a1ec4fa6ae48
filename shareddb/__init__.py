"""Shared, reference-counted embedded database connections and record helpers."""

from .db import SharedConnectionManager, build_where_clause, get_manager, open_kuzu, open_sqlite
from .errors import ConfigurationError, SharedDBError, UnbalancedReleaseError
from .helper import DatabaseHelper
from .table import TableHelper

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "DatabaseHelper",
    "SharedConnectionManager",
    "SharedDBError",
    "TableHelper",
    "UnbalancedReleaseError",
    "build_where_clause",
    "get_manager",
    "open_kuzu",
    "open_sqlite",
]
