"""Connection handle and the two contracts every backend implements.

DatabaseConnectionProvider — opens and closes connections for a profile.
DatabaseActions            — runs CRUD statements over an open connection.

A backend class usually implements both, but the handler only depends on the
protocols, so tests and callers can swap either side independently.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from profiledb.profiles import DatabaseProfile


@dataclass(slots=True)
class DatabaseConnection:
    """Opaque connection handle owned by exactly one handler.

    ``native`` is whatever the driver returned (a DB-API connection for the
    bundled SQL backends).  ``provider`` remembers who opened it so the same
    provider closes it.
    """

    profile_name: str
    native: Any
    provider: Optional["DatabaseConnectionProvider"] = None
    opened_at: float = field(default_factory=time.time)
    closed: bool = False
    # Backend-private bookkeeping, e.g. leased credentials to release.
    extras: dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class DatabaseConnectionProvider(Protocol):
    """Opens and closes connections for a :class:`DatabaseProfile`."""

    def connect(self, profile: "DatabaseProfile") -> DatabaseConnection:
        ...

    def disconnect(self, connection: DatabaseConnection) -> None:
        ...


@runtime_checkable
class DatabaseActions(Protocol):
    """CRUD capabilities of one backend variant.

    Every method receives the live connection handle, the entity (table or
    collection) name and the free-form statement text.
    """

    def disconnect(self, connection: DatabaseConnection) -> None:
        ...

    def read_as_json(self, connection: DatabaseConnection, entity_name: str, statement: str) -> str:
        ...

    def update(self, connection: DatabaseConnection, entity_name: str, statement: str) -> None:
        ...

    def delete(self, connection: DatabaseConnection, entity_name: str, statement: str) -> None:
        ...

    def insert(self, connection: DatabaseConnection, entity_name: str, statement: str) -> None:
        ...

    def insert_batch(
        self, connection: DatabaseConnection, entity_name: str, statements: list[str]
    ) -> None:
        ...

    def create(self, connection: DatabaseConnection, entity_name: str, statement: str) -> None:
        ...

    def drop(self, connection: DatabaseConnection, entity_name: str, statement: str) -> None:
        ...
