"""PostgreSQL backend — returns a native psycopg2 connection."""

from __future__ import annotations

import logging
from typing import Any, Optional

from profiledb.backends.base import DBAPIBackend
from profiledb.core.exceptions import AuthError
from profiledb.core.exceptions import ConnectionError as ProfileDBConnectionError
from profiledb.credentials import DatabaseCredentials
from profiledb.profiles import DatabaseProfile

logger = logging.getLogger("profiledb.backends.postgres")


def _import_driver() -> Any:
    try:
        import psycopg2  # type: ignore[import-untyped]
    except ImportError as exc:
        raise ProfileDBConnectionError(
            "psycopg2 is required for PostgreSQL support. "
            "Install it with: pip install profiledb[postgres]"
        ) from exc
    return psycopg2


class PostgresBackend(DBAPIBackend):
    """Backend for PostgreSQL through ``psycopg2``."""

    _db_label = "PostgreSQL"

    def _connect_native(
        self, profile: DatabaseProfile, credentials: Optional[DatabaseCredentials]
    ) -> Any:
        psycopg2 = _import_driver()

        kwargs: dict[str, Any] = {
            "host": profile.host or "localhost",
            "port": profile.port or 5432,
            "dbname": profile.database or "postgres",
        }
        if credentials is not None:
            kwargs["user"] = credentials.username
            kwargs["password"] = credentials.password
        kwargs.update(profile.options)

        try:
            return psycopg2.connect(**kwargs)
        except psycopg2.OperationalError as exc:
            if "authentication failed" in str(exc):
                raise AuthError(f"PostgreSQL rejected credentials for profile {profile.name!r}") from exc
            raise ProfileDBConnectionError(f"PostgreSQL connection failed: {exc}") from exc
        except psycopg2.Error as exc:
            raise ProfileDBConnectionError(f"PostgreSQL connection failed: {exc}") from exc

    def _driver_errors(self) -> tuple[type[BaseException], ...]:
        return (_import_driver().Error,)
