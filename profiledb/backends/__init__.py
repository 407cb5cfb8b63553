"""Backend registry.

Each backend variant is created through an explicit factory registered under
the name profiles use in their ``backend`` field.  Factories are called with
keyword options (``credentials_timeout`` and friends) and must accept them.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from profiledb.backends.base import DBAPIBackend
from profiledb.backends.mysql import MySQLBackend
from profiledb.backends.postgres import PostgresBackend
from profiledb.backends.sqlite import SQLiteBackend
from profiledb.core.exceptions import UnknownBackendError

logger = logging.getLogger("profiledb.backends")

BackendFactory = Callable[..., Any]

_FACTORIES: dict[str, BackendFactory] = {
    "sqlite": SQLiteBackend,
    "postgres": PostgresBackend,
    "postgresql": PostgresBackend,
    "mysql": MySQLBackend,
    "mariadb": MySQLBackend,
}


def register_backend(name: str, factory: BackendFactory) -> None:
    """Register (or replace) the factory for backend *name*."""
    key = name.strip().lower()
    if key in _FACTORIES:
        logger.debug("Replacing backend factory for %s", key)
    _FACTORIES[key] = factory


def unregister_backend(name: str) -> None:
    _FACTORIES.pop(name.strip().lower(), None)


def get_backend_factory(name: str) -> BackendFactory:
    try:
        return _FACTORIES[name.strip().lower()]
    except KeyError:
        raise UnknownBackendError(
            f"No backend registered for {name!r} (available: {', '.join(available_backends())})"
        ) from None


def available_backends() -> list[str]:
    return sorted(_FACTORIES)


__all__ = [
    "BackendFactory",
    "DBAPIBackend",
    "MySQLBackend",
    "PostgresBackend",
    "SQLiteBackend",
    "available_backends",
    "get_backend_factory",
    "register_backend",
    "unregister_backend",
]
