"""Tests for the process-wide default manager and get_db()."""

from unittest.mock import Mock

import pytest

from shareddb.db import connection
from shareddb.db.openers import SQLiteConnection


@pytest.fixture
def env_database(tmp_path, monkeypatch):
    """Point the default manager at a temporary SQLite file."""
    db_path = tmp_path / "default.sqlite3"
    monkeypatch.setenv("SHAREDDB_DATABASE_PATH", str(db_path))
    return db_path


class TestDefaultManager:
    """Tests for get_manager / reset_manager."""

    def test_get_manager_is_cached(self, env_database):
        """Test that repeated calls return the same manager."""
        assert connection.get_manager() is connection.get_manager()

    def test_manager_uses_settings(self, env_database):
        """Test that the default manager opens the configured database."""
        manager = connection.get_manager()

        with manager.connection() as conn:
            assert isinstance(conn, SQLiteConnection)
            assert conn.path == str(env_database)

    def test_reset_closes_and_rebuilds(self, env_database):
        """Test that reset_manager closes held connections and drops the manager."""
        manager = connection.get_manager()
        manager.acquire()

        connection.reset_manager()

        assert manager.is_open is False
        assert manager.reference_count == 0
        assert connection.get_manager() is not manager

    def test_reset_forgets_manager_when_close_fails(self, env_database, monkeypatch):
        """Test that a failing close still drops the default manager."""
        manager = connection.get_manager()
        monkeypatch.setattr(manager, "close", Mock(side_effect=OSError("close failed")))

        with pytest.raises(OSError, match="close failed"):
            connection.reset_manager()

        assert connection._manager is None


class TestGetDb:
    """Tests for the get_db generator."""

    def test_yields_and_releases(self, env_database):
        """Test that the connection is released when the generator finishes."""
        gen = connection.get_db()
        conn = next(gen)
        result = conn.execute("SELECT 1 AS test").fetchone()
        assert result["test"] == 1
        assert connection.get_manager().reference_count == 1

        with pytest.raises(StopIteration):
            next(gen)

        assert connection.get_manager().reference_count == 0

    def test_releases_on_error(self, env_database):
        """Test that an error thrown into the generator still releases."""
        gen = connection.get_db()
        next(gen)

        with pytest.raises(RuntimeError, match="request failed"):
            gen.throw(RuntimeError("request failed"))

        assert connection.get_manager().reference_count == 0
