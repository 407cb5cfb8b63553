"""Tests for the SQL backends and the backend registry."""

import datetime
import decimal
import json
import sqlite3

import pytest
from unittest.mock import Mock, patch

from conftest import APP_NAME
from profiledb.backends import (
    MySQLBackend,
    PostgresBackend,
    SQLiteBackend,
    available_backends,
    get_backend_factory,
    register_backend,
    unregister_backend,
)
from profiledb.backends.base import _json_default
from profiledb.core.exceptions import (
    AuthError,
    ConnectionError as ProfileDBConnectionError,
    StatementError,
    UnknownBackendError,
)
from profiledb.profiles import DatabaseProfile


@pytest.fixture
def sqlite_profile(tmp_path):
    return DatabaseProfile(name="local", backend="sqlite", database=str(tmp_path / "test.db"))


@pytest.fixture
def backend():
    return SQLiteBackend()


@pytest.fixture
def connection(backend, sqlite_profile):
    conn = backend.connect(sqlite_profile)
    backend.create(conn, "users", "CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT)")
    yield conn
    backend.disconnect(conn)


class TestSQLiteBackend:
    """Test cases for SQLiteBackend."""

    def test_connect_wraps_native_connection(self, backend, sqlite_profile):
        conn = backend.connect(sqlite_profile)

        assert isinstance(conn.native, sqlite3.Connection)
        assert conn.profile_name == "local"
        assert conn.provider is backend
        assert not conn.closed
        backend.disconnect(conn)
        assert conn.closed

    def test_insert_and_search(self, backend, connection):
        backend.insert(connection, "users", "INSERT INTO users (id, name) VALUES (1, 'Ada')")

        result = backend.read_as_json(connection, "users", "SELECT id, name FROM users")

        assert json.loads(result) == [{"id": 1, "name": "Ada"}]

    def test_search_empty_table(self, backend, connection):
        assert backend.read_as_json(connection, "users", "SELECT * FROM users") == "[]"

    def test_update_and_delete(self, backend, connection):
        backend.insert_batch(
            connection,
            "users",
            [
                "INSERT INTO users (id, name) VALUES (1, 'Ada')",
                "INSERT INTO users (id, name) VALUES (2, 'Lin')",
            ],
        )
        backend.update(connection, "users", "UPDATE users SET name = 'Grace' WHERE id = 1")
        backend.delete(connection, "users", "DELETE FROM users WHERE id = 2")

        rows = json.loads(backend.read_as_json(connection, "users", "SELECT * FROM users"))
        assert rows == [{"id": 1, "name": "Grace"}]

    def test_changes_are_committed(self, backend, connection, sqlite_profile):
        """Data written through one connection is visible to a new one."""
        backend.insert(connection, "users", "INSERT INTO users (id, name) VALUES (7, 'Kay')")

        other = backend.connect(sqlite_profile)
        try:
            rows = json.loads(backend.read_as_json(other, "users", "SELECT name FROM users"))
        finally:
            backend.disconnect(other)
        assert rows == [{"name": "Kay"}]

    def test_batch_insert_rolls_back_on_error(self, backend, connection):
        """A failing statement undoes the whole batch."""
        with pytest.raises(StatementError, match="batch insert on 'users'"):
            backend.insert_batch(
                connection,
                "users",
                [
                    "INSERT INTO users (id, name) VALUES (1, 'Ada')",
                    "INSERT INTO users (id, name) VALUES (1, 'Duplicate')",
                ],
            )

        assert backend.read_as_json(connection, "users", "SELECT * FROM users") == "[]"

    def test_empty_batch_is_noop(self, backend, connection):
        backend.insert_batch(connection, "users", [])

        assert backend.read_as_json(connection, "users", "SELECT * FROM users") == "[]"

    def test_invalid_search_raises_statement_error(self, backend, connection):
        with pytest.raises(StatementError) as excinfo:
            backend.read_as_json(connection, "missing", "SELECT * FROM missing")
        assert isinstance(excinfo.value.__cause__, sqlite3.Error)

    def test_blank_statement_rejected(self, backend, connection):
        with pytest.raises(StatementError, match="Empty update statement"):
            backend.update(connection, "users", "   ")

    def test_drop(self, backend, connection):
        backend.drop(connection, "users", "DROP TABLE users")

        with pytest.raises(StatementError):
            backend.read_as_json(connection, "users", "SELECT * FROM users")

    def test_closed_connection_rejected(self, backend, sqlite_profile):
        conn = backend.connect(sqlite_profile)
        backend.disconnect(conn)

        with pytest.raises(ProfileDBConnectionError, match="is closed"):
            backend.read_as_json(conn, "users", "SELECT 1")

    def test_disconnect_twice_closes_once(self, backend, sqlite_profile):
        conn = backend.connect(sqlite_profile)
        native = Mock()
        conn.native = native

        backend.disconnect(conn)
        backend.disconnect(conn)

        native.close.assert_called_once()

    def test_close_failure_is_logged_not_raised(self, backend, sqlite_profile, caplog):
        conn = backend.connect(sqlite_profile)
        conn.native.close()
        conn.native = Mock()
        conn.native.close.side_effect = sqlite3.ProgrammingError("boom")

        backend.disconnect(conn)

        assert conn.closed
        assert "Error closing SQLite connection" in caplog.text

    def test_default_in_memory_database(self, backend):
        conn = backend.connect(DatabaseProfile(name="mem", backend="sqlite"))
        try:
            assert backend.read_as_json(conn, "dual", "SELECT 1 AS one") == '[{"one": 1}]'
        finally:
            backend.disconnect(conn)


class TestJsonEncoding:
    """Test cases for encoding driver values in search results."""

    def test_datetime_values(self):
        assert _json_default(datetime.date(2025, 1, 15)) == "2025-01-15"
        assert _json_default(datetime.datetime(2025, 1, 15, 12, 0)) == "2025-01-15T12:00:00"

    def test_decimal_keeps_precision(self):
        assert _json_default(decimal.Decimal("10.10")) == "10.10"

    def test_bytes_are_base64(self):
        assert _json_default(b"\x00\x01") == "AAE="

    def test_unknown_type_raises(self):
        with pytest.raises(TypeError):
            _json_default(object())


class TestDriverBackends:
    """Test cases for the lazily imported PostgreSQL and MySQL drivers."""

    def test_postgres_connect_arguments(self):
        profile = DatabaseProfile(
            name="qa",
            backend="postgres",
            host="db.internal",
            port=6543,
            database="orders",
            username="reader",
            password="secret",
            options={"sslmode": "require"},
        )
        driver = Mock()

        with patch("profiledb.backends.postgres._import_driver", return_value=driver):
            conn = PostgresBackend().connect(profile)

        driver.connect.assert_called_once_with(
            host="db.internal",
            port=6543,
            dbname="orders",
            user="reader",
            password="secret",
            sslmode="require",
        )
        assert conn.native is driver.connect.return_value

    def test_postgres_authentication_failure(self):
        class OperationalError(Exception):
            pass

        driver = Mock()
        driver.OperationalError = OperationalError
        driver.Error = Exception
        driver.connect.side_effect = OperationalError('password authentication failed for user "x"')
        profile = DatabaseProfile(name="qa", backend="postgres", username="x", password="bad")

        with patch("profiledb.backends.postgres._import_driver", return_value=driver):
            with pytest.raises(AuthError):
                PostgresBackend().connect(profile)

    def test_mysql_connect_arguments(self):
        profile = DatabaseProfile(name="qa", backend="mysql", database="shop", username="u", password="p")
        driver = Mock()

        with patch("profiledb.backends.mysql._import_driver", return_value=driver):
            MySQLBackend().connect(profile)

        driver.connect.assert_called_once_with(
            host="localhost",
            port=3306,
            database="shop",
            autocommit=False,
            user="u",
            password="p",
        )

    def test_mysql_access_denied(self):
        class OperationalError(Exception):
            pass

        driver = Mock()
        driver.err.OperationalError = OperationalError
        driver.MySQLError = Exception
        driver.connect.side_effect = OperationalError(1045, "Access denied")
        profile = DatabaseProfile(name="qa", backend="mysql", username="u", password="p")

        with patch("profiledb.backends.mysql._import_driver", return_value=driver):
            with pytest.raises(AuthError):
                MySQLBackend().connect(profile)

    def test_missing_driver_has_install_hint(self):
        profile = DatabaseProfile(name="qa", backend="mysql")

        with patch.dict("sys.modules", {"pymysql": None}):
            with pytest.raises(ProfileDBConnectionError, match=r"profiledb\[mysql\]"):
                MySQLBackend().connect(profile)


class TestRegistry:
    """Test cases for the backend registry."""

    def test_builtin_backends(self):
        assert {"sqlite", "postgres", "postgresql", "mysql", "mariadb"} <= set(available_backends())
        assert get_backend_factory("SQLite") is SQLiteBackend

    def test_unknown_backend(self):
        with pytest.raises(UnknownBackendError, match="oracle"):
            get_backend_factory("oracle")

    def test_register_custom_backend(self):
        factory = Mock()
        register_backend("custom", factory)
        try:
            assert get_backend_factory("custom") is factory
        finally:
            unregister_backend("custom")
        assert "custom" not in available_backends()


class TestSQLiteThroughHandler:
    """End-to-end tests: manager + handler + SQLite."""

    def test_crud_round(self, sqlite_manager):
        with sqlite_manager.create_handler(APP_NAME) as db:
            db.set_active_profile("local")
            db.create("users", "CREATE TABLE users (id INTEGER PRIMARY KEY, email TEXT)")
            db.insert_data_in_batch(
                "users",
                [
                    "INSERT INTO users VALUES (1, 'ada@example.com')",
                    "INSERT INTO users VALUES (2, 'lin@example.com')",
                ],
            )
            db.update_data("users", "UPDATE users SET email = 'grace@example.com' WHERE id = 1")
            db.delete_data("users", "DELETE FROM users WHERE id = 2")

            doc = db.get_data_as_json_document("users", "SELECT * FROM users ORDER BY id")

            assert doc.read_one("$[0].email") == "grace@example.com"
            assert len(doc) == 1
            db.drop("users", "DROP TABLE users")

    def test_data_survives_session_expiry(self, sqlite_manager):
        """A reconnect after expiry sees previously committed rows."""
        db = sqlite_manager.create_handler(APP_NAME, session_expiry_seconds=0)
        db.set_active_profile("local")
        db.create("notes", "CREATE TABLE notes (body TEXT)")
        first_connection = db.connection
        db.insert_data("notes", "INSERT INTO notes VALUES ('kept')")

        doc = db.get_data_as_json_document("notes", "SELECT body FROM notes")

        assert doc.read("$[*].body") == ["kept"]
        assert first_connection.closed
        assert db.connection is not first_connection
        db.close()

    def test_fixed_backend_handler(self, sqlite_manager):
        db = sqlite_manager.create_handler(APP_NAME, backend="sqlite")
        db.set_active_profile("local")

        assert json.loads(db.get_data_as_json_string("dual", "SELECT 2 AS two")) == [{"two": 2}]
        db.close()
