"""MySQL backend — returns a native pymysql connection."""

from __future__ import annotations

import logging
from typing import Any, Optional

from profiledb.backends.base import DBAPIBackend
from profiledb.core.exceptions import AuthError
from profiledb.core.exceptions import ConnectionError as ProfileDBConnectionError
from profiledb.credentials import DatabaseCredentials
from profiledb.profiles import DatabaseProfile

logger = logging.getLogger("profiledb.backends.mysql")

# ER_ACCESS_DENIED_ERROR, ER_DBACCESS_DENIED_ERROR
_ACCESS_DENIED_CODES = frozenset({1044, 1045})


def _import_driver() -> Any:
    try:
        import pymysql  # type: ignore[import-untyped]
    except ImportError as exc:
        raise ProfileDBConnectionError(
            "pymysql is required for MySQL support. "
            "Install it with: pip install profiledb[mysql]"
        ) from exc
    return pymysql


class MySQLBackend(DBAPIBackend):
    """Backend for MySQL and MariaDB through ``pymysql``."""

    _db_label = "MySQL"

    def _connect_native(
        self, profile: DatabaseProfile, credentials: Optional[DatabaseCredentials]
    ) -> Any:
        pymysql = _import_driver()

        kwargs: dict[str, Any] = {
            "host": profile.host or "localhost",
            "port": profile.port or 3306,
            "database": profile.database or "",
            "autocommit": False,
        }
        if credentials is not None:
            kwargs["user"] = credentials.username
            kwargs["password"] = credentials.password
        kwargs.update(profile.options)

        try:
            return pymysql.connect(**kwargs)
        except pymysql.err.OperationalError as exc:
            if exc.args and exc.args[0] in _ACCESS_DENIED_CODES:
                raise AuthError(f"MySQL rejected credentials for profile {profile.name!r}") from exc
            raise ProfileDBConnectionError(f"MySQL connection failed: {exc}") from exc
        except pymysql.MySQLError as exc:
            raise ProfileDBConnectionError(f"MySQL connection failed: {exc}") from exc

    def _driver_errors(self) -> tuple[type[BaseException], ...]:
        return (_import_driver().MySQLError,)
