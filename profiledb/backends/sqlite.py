"""SQLite backend — returns a native ``sqlite3`` connection for file or in-memory databases."""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Optional

from profiledb.backends.base import DBAPIBackend
from profiledb.core.exceptions import ConnectionError as ProfileDBConnectionError
from profiledb.credentials import DatabaseCredentials
from profiledb.profiles import DatabaseProfile

logger = logging.getLogger("profiledb.backends.sqlite")


class SQLiteBackend(DBAPIBackend):
    """Backend for SQLite databases.

    ``profile.database`` is the database file path (``":memory:"`` when
    unset); ``profile.options`` are passed to :func:`sqlite3.connect`.
    Credentials are ignored.

    Usage::

        profile = DatabaseProfile(name="local", backend="sqlite", database="shop.db")
        backend = SQLiteBackend()
        conn = backend.connect(profile)
        backend.read_as_json(conn, "users", "SELECT * FROM users")
        backend.disconnect(conn)
    """

    _db_label = "SQLite"

    def _connect_native(
        self, profile: DatabaseProfile, credentials: Optional[DatabaseCredentials]
    ) -> Any:
        path = profile.database or ":memory:"
        try:
            return sqlite3.connect(path, **profile.options)
        except sqlite3.Error as exc:
            raise ProfileDBConnectionError(f"SQLite connection to {path} failed: {exc}") from exc

    def _driver_errors(self) -> tuple[type[BaseException], ...]:
        return (sqlite3.Error,)
