"""Exceptions raised by shareddb.

Engine errors (sqlite3.Error, kuzu RuntimeError, OSError) are never wrapped;
they reach the caller unchanged.
"""


class SharedDBError(Exception):
    """Base exception for shareddb errors."""


class UnbalancedReleaseError(SharedDBError):
    """release() called more times than acquire()."""


class ConfigurationError(SharedDBError):
    """Unknown backend or invalid settings."""
