"""Sessioned database handler.

``SessionedDatabaseHandler`` keeps one connection for the active profile and
re-authenticates when the session has been idle for too long:

    set_active_profile(name) → authenticate via the manager's provider
    CRUD call               → expired?  disconnect + re-authenticate
                                        otherwise refresh last access
                            → forward to the backend's DatabaseActions

The handler never executes statements itself; the backend does.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any, Callable, Optional

from profiledb.core.connection import DatabaseActions, DatabaseConnection
from profiledb.core.document import JsonDocument
from profiledb.core.exceptions import (
    ConfigurationError,
    HandlerCloneError,
    NoActiveProfileError,
)

if TYPE_CHECKING:
    from profiledb.manager import DatabaseManager
    from profiledb.profiles import DatabaseProfile

logger = logging.getLogger("profiledb.core.handler")


class SessionedDatabaseHandler:
    """Session-tracking facade over a database backend.

    Parameters
    ----------
    app_name:
        Application whose profiles this handler activates.
    session_expiry_seconds:
        Idle time after which the next call closes and reopens the
        connection.
    backend_factory:
        Zero-argument factory returning the :class:`DatabaseActions` used for
        CRUD calls.  When omitted, the provider that opened the connection
        must implement :class:`DatabaseActions` itself.
    manager:
        The :class:`DatabaseManager` that resolves profiles and providers.
        May be set later with :meth:`set_database_manager`.
    target_server_name:
        Optional server name passed to the manager when choosing a provider.
    clock:
        Monotonic time source in seconds.
    """

    def __init__(
        self,
        app_name: str,
        session_expiry_seconds: int,
        *,
        backend_factory: Optional[Callable[[], DatabaseActions]] = None,
        manager: Optional["DatabaseManager"] = None,
        target_server_name: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if session_expiry_seconds < 0:
            raise ConfigurationError("session_expiry_seconds must not be negative")

        self._app_name = app_name
        self._session_expiry_seconds = session_expiry_seconds
        self._backend_factory = backend_factory
        self._backend: Optional[DatabaseActions] = (
            backend_factory() if backend_factory is not None else None
        )
        self._manager = manager
        self._target_server_name = target_server_name
        self._clock = clock

        self._active_profile_name: Optional[str] = None
        self._active_profile: Optional["DatabaseProfile"] = None
        self._connection: Optional[DatabaseConnection] = None
        self._last_access: float = 0.0

    # -- wiring ------------------------------------------------------------

    def set_database_manager(self, manager: "DatabaseManager") -> None:
        self._manager = manager

    def set_target_server_name(self, target_server_name: Optional[str]) -> None:
        self._target_server_name = target_server_name

    # -- properties --------------------------------------------------------

    @property
    def app_name(self) -> str:
        return self._app_name

    @property
    def database_manager(self) -> Optional["DatabaseManager"]:
        return self._manager

    @property
    def target_server_name(self) -> Optional[str]:
        return self._target_server_name

    @property
    def session_expiry_seconds(self) -> int:
        return self._session_expiry_seconds

    @property
    def active_profile_name(self) -> Optional[str]:
        return self._active_profile_name

    @property
    def active_profile(self) -> Optional["DatabaseProfile"]:
        return self._active_profile

    @property
    def connection(self) -> Optional[DatabaseConnection]:
        return self._connection

    @property
    def last_access(self) -> float:
        return self._last_access

    @property
    def connected(self) -> bool:
        return self._connection is not None and not self._connection.closed

    # -- session -----------------------------------------------------------

    def set_active_profile(self, profile_name: str) -> DatabaseConnection:
        """Activate *profile_name* and return its connection.

        Re-activating the profile that is already active is a no-op while its
        connection is open, and reconnects it otherwise.  Switching to another
        profile closes the current connection first.
        """
        if not profile_name:
            raise ConfigurationError("Profile name must not be empty")

        if self._active_profile_name is None:
            return self._authenticate(profile_name)
        elif self._active_profile_name != profile_name:
            logger.info(
                "Switching %s from profile %s to %s",
                self._app_name,
                self._active_profile_name,
                profile_name,
            )
            self.close()
            return self._authenticate(profile_name)

        if self._connection is None or self._connection.closed:
            logger.info("Reconnecting profile %s for %s", profile_name, self._app_name)
            self.disconnect()
            return self._authenticate(profile_name)

        return self._connection

    def is_session_expired(self) -> bool:
        """Return ``True`` once whole idle seconds reach the expiry duration."""
        elapsed = int(self._clock() - self._last_access)
        return elapsed >= self._session_expiry_seconds

    def ensure_fresh(self) -> None:
        """Reconnect if the session expired, otherwise mark it as used now."""
        if self._active_profile_name is None:
            raise NoActiveProfileError(
                f"No active database profile for {self._app_name!r}; call set_active_profile() first"
            )

        if self.is_session_expired() or not self.connected:
            logger.info(
                "Session for profile %s expired or closed, reconnecting",
                self._active_profile_name,
            )
            self.disconnect()
            self._authenticate(self._active_profile_name)
        else:
            self._last_access = self._clock()

    def disconnect(self) -> None:
        """Close the current connection but keep the active profile."""
        connection = self._connection
        if connection is None:
            return
        self._connection = None

        provider = connection.provider if connection.provider is not None else self._backend
        if provider is None:
            raise ConfigurationError("Connection has no provider to close it with")
        provider.disconnect(connection)

    def close(self) -> None:
        """Disconnect and forget the active profile."""
        try:
            self.disconnect()
        finally:
            self._active_profile_name = None
            self._active_profile = None

    # -- CRUD --------------------------------------------------------------

    def get_data_as_json_string(self, entity_name: str, search_statement: str) -> str:
        self.ensure_fresh()
        return self._actions().read_as_json(self._connection, entity_name, search_statement)

    def get_data_as_json_document(self, entity_name: str, search_statement: str) -> JsonDocument:
        return JsonDocument(self.get_data_as_json_string(entity_name, search_statement))

    def update_data(self, entity_name: str, update_statement: str) -> None:
        self.ensure_fresh()
        self._actions().update(self._connection, entity_name, update_statement)

    def delete_data(self, entity_name: str, delete_statement: str) -> None:
        self.ensure_fresh()
        self._actions().delete(self._connection, entity_name, delete_statement)

    def insert_data(self, entity_name: str, insert_statement: str) -> None:
        self.ensure_fresh()
        self._actions().insert(self._connection, entity_name, insert_statement)

    def insert_data_in_batch(self, entity_name: str, insert_statements: list[str]) -> None:
        self.ensure_fresh()
        self._actions().insert_batch(self._connection, entity_name, insert_statements)

    def create(self, entity_name: str, create_statement: str) -> None:
        self.ensure_fresh()
        self._actions().create(self._connection, entity_name, create_statement)

    def drop(self, entity_name: str, drop_statement: str) -> None:
        self.ensure_fresh()
        self._actions().drop(self._connection, entity_name, drop_statement)

    # -- copies ------------------------------------------------------------

    def clone(self) -> "SessionedDatabaseHandler":
        """Return a fresh, unconnected handler with the same wiring."""
        try:
            return type(self)(
                self._app_name,
                self._session_expiry_seconds,
                backend_factory=self._backend_factory,
                manager=self._manager,
                target_server_name=self._target_server_name,
                clock=self._clock,
            )
        except Exception as exc:
            raise HandlerCloneError(
                f"Failed to clone {type(self).__name__} for {self._app_name!r}: {exc}"
            ) from exc

    # -- context manager ---------------------------------------------------

    def __enter__(self) -> "SessionedDatabaseHandler":
        return self

    def __exit__(self, *_exc: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(app={self._app_name!r}, "
            f"profile={self._active_profile_name!r}, connected={self.connected})"
        )

    # -- private -----------------------------------------------------------

    def _authenticate(self, profile_name: str) -> DatabaseConnection:
        if self._manager is None:
            raise ConfigurationError(
                f"No DatabaseManager configured for {self._app_name!r}; "
                "pass manager= or call set_database_manager()"
            )

        profile = self._manager.get_database_profile(self._app_name, profile_name)
        provider = self._manager.get_connection_provider(
            self._app_name, self._target_server_name, profile_name
        )
        connection = provider.connect(profile)
        if connection.provider is None:
            connection.provider = provider

        self._connection = connection
        self._active_profile_name = profile_name
        self._active_profile = profile
        self._last_access = self._clock()
        logger.info("Profile %s active for %s", profile_name, self._app_name)
        return connection

    def _actions(self) -> DatabaseActions:
        if self._backend is not None:
            return self._backend
        provider = self._connection.provider if self._connection is not None else None
        if isinstance(provider, DatabaseActions):
            return provider
        raise ConfigurationError(
            f"No backend configured for {self._app_name!r} and the connection "
            "provider does not implement DatabaseActions"
        )
