"""profiledb — profile-based database sessions for test automation.

Quick start::

    from profiledb import DatabaseManager

    manager = DatabaseManager.from_file("profiles.yaml")

    with manager.create_handler("shop-ui", session_expiry_seconds=120) as db:
        db.set_active_profile("qa-orders")
        db.insert_data("orders", "INSERT INTO orders (id, status) VALUES (1, 'new')")
        doc = db.get_data_as_json_document("orders", "SELECT * FROM orders")
        assert doc.read_one("$[0].status") == "new"
"""

from __future__ import annotations

import logging

from profiledb.backends import (
    DBAPIBackend,
    MySQLBackend,
    PostgresBackend,
    SQLiteBackend,
    available_backends,
    get_backend_factory,
    register_backend,
)
from profiledb.core import (
    AuthError,
    ConfigurationError,
    ConnectionError,
    CredentialError,
    DatabaseActions,
    DatabaseConnection,
    DatabaseConnectionProvider,
    HandlerCloneError,
    JsonDocument,
    JsonDocumentError,
    NoActiveProfileError,
    ProfileDBError,
    ProfileNotFoundError,
    SessionedDatabaseHandler,
    StatementError,
    UnknownBackendError,
)
from profiledb.credentials import CredentialClient, DatabaseCredentials
from profiledb.manager import DatabaseManager
from profiledb.profiles import DatabaseProfile, load_profiles, parse_profiles
from profiledb.settings import ProfileDBSettings, configure_logging

logger = logging.getLogger("profiledb")
logger.addHandler(logging.NullHandler())

__all__ = [
    # Entry points
    "DatabaseManager",
    "SessionedDatabaseHandler",
    # Profiles & settings
    "DatabaseProfile",
    "load_profiles",
    "parse_profiles",
    "ProfileDBSettings",
    "configure_logging",
    # Connections & backends
    "DatabaseConnection",
    "DatabaseConnectionProvider",
    "DatabaseActions",
    "DBAPIBackend",
    "SQLiteBackend",
    "PostgresBackend",
    "MySQLBackend",
    "register_backend",
    "get_backend_factory",
    "available_backends",
    # Credentials
    "CredentialClient",
    "DatabaseCredentials",
    # Documents
    "JsonDocument",
    # Exceptions
    "ProfileDBError",
    "ConfigurationError",
    "ProfileNotFoundError",
    "UnknownBackendError",
    "AuthError",
    "ConnectionError",
    "CredentialError",
    "NoActiveProfileError",
    "StatementError",
    "HandlerCloneError",
    "JsonDocumentError",
]

__version__ = "0.1.0"
