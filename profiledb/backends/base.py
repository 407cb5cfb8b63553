"""Shared implementation for DB-API 2.0 backends.

``DBAPIBackend`` is both a :class:`DatabaseConnectionProvider` and a
:class:`DatabaseActions` implementation.  The lifecycle is::

    connect(profile) → resolve credentials → connect native driver
    → wrap in DatabaseConnection

    disconnect(connection) → close native → release credential lease

Subclasses only implement the driver hooks:
    ``_connect_native``  — create and return the real DB-API connection
    ``_driver_errors``   — exception classes the driver raises
    ``_close_native``    — tear down the connection (default: ``.close()``)
"""

from __future__ import annotations

import base64
import datetime
import decimal
import json
import logging
import uuid
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx

from profiledb.core.connection import DatabaseConnection
from profiledb.core.exceptions import ConnectionError as ProfileDBConnectionError
from profiledb.core.exceptions import StatementError
from profiledb.credentials import CredentialClient, DatabaseCredentials
from profiledb.profiles import DatabaseProfile

logger = logging.getLogger("profiledb.backends.base")


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, decimal.Decimal):
        return str(value)
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return base64.b64encode(bytes(value)).decode("ascii")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class DBAPIBackend(ABC):
    """Abstract base for SQL backends built on a DB-API 2.0 driver.

    Parameters
    ----------
    credentials_timeout:
        HTTP timeout for profiles that lease credentials from a service.
    credential_transport:
        Optional :mod:`httpx` transport for the credential client (tests).
    """

    # Subclasses should set this to a human‑friendly label for logging.
    _db_label: str = "unknown"

    def __init__(
        self,
        *,
        credentials_timeout: float = 10.0,
        credential_transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._credentials_timeout = credentials_timeout
        self._credential_transport = credential_transport
        self._credential_clients: dict[str, CredentialClient] = {}

    # -- abstract hooks (subclass contract) --------------------------------

    @abstractmethod
    def _connect_native(
        self, profile: DatabaseProfile, credentials: Optional[DatabaseCredentials]
    ) -> Any:
        """Create and **return** the native DB-API connection."""

    @abstractmethod
    def _driver_errors(self) -> tuple[type[BaseException], ...]:
        """Return the driver's base error classes."""

    def _close_native(self, native: Any) -> None:
        native.close()

    # -- DatabaseConnectionProvider ----------------------------------------

    def connect(self, profile: DatabaseProfile) -> DatabaseConnection:
        """Open a connection for *profile*."""
        client: Optional[CredentialClient] = None
        credentials: Optional[DatabaseCredentials] = None

        if profile.credentials_url:
            client = self._credential_client(profile.credentials_url)
            credentials = client.fetch(profile.name, profile.database)
        elif profile.username is not None:
            credentials = DatabaseCredentials(
                username=profile.username,
                password=profile.password.get_secret_value(),
            )

        try:
            native = self._connect_native(profile, credentials)
        except Exception:
            if client is not None and credentials is not None:
                client.release(credentials)
            raise

        connection = DatabaseConnection(profile_name=profile.name, native=native, provider=self)
        if client is not None and credentials is not None:
            connection.extras["credential_client"] = client
            connection.extras["credentials"] = credentials

        logger.info("%s connection opened for profile %s", self._db_label, profile.name)
        return connection

    def disconnect(self, connection: DatabaseConnection) -> None:
        """Close *connection* and release its credential lease (idempotent)."""
        if connection.closed:
            return
        connection.closed = True

        try:
            self._close_native(connection.native)
        except Exception:
            logger.warning(
                "Error closing %s connection for profile %s",
                self._db_label,
                connection.profile_name,
                exc_info=True,
            )

        client = connection.extras.pop("credential_client", None)
        credentials = connection.extras.pop("credentials", None)
        if client is not None and credentials is not None:
            client.release(credentials)

        logger.info("%s connection closed for profile %s", self._db_label, connection.profile_name)

    # -- DatabaseActions ---------------------------------------------------

    def read_as_json(self, connection: DatabaseConnection, entity_name: str, statement: str) -> str:
        """Run a search statement and return its rows as a JSON array of objects."""
        native = self._native(connection)
        self._check_statement(statement, "search", entity_name)
        logger.debug("%s search on %s: %s", self._db_label, entity_name, statement)

        cursor = native.cursor()
        try:
            cursor.execute(statement)
            columns = [desc[0] for desc in cursor.description] if cursor.description else []
            rows = cursor.fetchall() if cursor.description else []
            native.commit()
        except self._driver_errors() as exc:
            self._rollback(native)
            raise StatementError(
                f"{self._db_label} search on {entity_name!r} failed: {exc}"
            ) from exc
        finally:
            cursor.close()

        records = [dict(zip(columns, row)) for row in rows]
        logger.debug("%s search on %s returned %d row(s)", self._db_label, entity_name, len(records))
        return json.dumps(records, default=_json_default)

    def update(self, connection: DatabaseConnection, entity_name: str, statement: str) -> None:
        self._execute(connection, entity_name, [statement], "update")

    def delete(self, connection: DatabaseConnection, entity_name: str, statement: str) -> None:
        self._execute(connection, entity_name, [statement], "delete")

    def insert(self, connection: DatabaseConnection, entity_name: str, statement: str) -> None:
        self._execute(connection, entity_name, [statement], "insert")

    def insert_batch(
        self, connection: DatabaseConnection, entity_name: str, statements: list[str]
    ) -> None:
        """Run every insert statement in a single transaction."""
        self._execute(connection, entity_name, list(statements), "batch insert")

    def create(self, connection: DatabaseConnection, entity_name: str, statement: str) -> None:
        self._execute(connection, entity_name, [statement], "create")

    def drop(self, connection: DatabaseConnection, entity_name: str, statement: str) -> None:
        self._execute(connection, entity_name, [statement], "drop")

    # -- private -----------------------------------------------------------

    def _execute(
        self,
        connection: DatabaseConnection,
        entity_name: str,
        statements: list[str],
        action: str,
    ) -> None:
        native = self._native(connection)
        if not statements:
            logger.debug("%s %s on %s: nothing to run", self._db_label, action, entity_name)
            return
        for statement in statements:
            self._check_statement(statement, action, entity_name)

        cursor = native.cursor()
        try:
            for statement in statements:
                logger.debug("%s %s on %s: %s", self._db_label, action, entity_name, statement)
                cursor.execute(statement)
            native.commit()
        except self._driver_errors() as exc:
            self._rollback(native)
            raise StatementError(
                f"{self._db_label} {action} on {entity_name!r} failed: {exc}"
            ) from exc
        finally:
            cursor.close()

    def _native(self, connection: DatabaseConnection) -> Any:
        if connection.closed:
            raise ProfileDBConnectionError(
                f"{self._db_label} connection for profile {connection.profile_name!r} is closed"
            )
        return connection.native

    def _rollback(self, native: Any) -> None:
        try:
            native.rollback()
        except self._driver_errors():
            logger.warning("%s rollback failed", self._db_label, exc_info=True)

    def _check_statement(self, statement: str, action: str, entity_name: str) -> None:
        if not isinstance(statement, str) or not statement.strip():
            raise StatementError(f"Empty {action} statement for {entity_name!r}")

    def _credential_client(self, url: str) -> CredentialClient:
        client = self._credential_clients.get(url)
        if client is None:
            client = CredentialClient(
                url,
                timeout=self._credentials_timeout,
                transport=self._credential_transport,
            )
            self._credential_clients[url] = client
        return client
