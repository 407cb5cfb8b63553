"""profiledb core — backend-agnostic session handling.

* SessionedDatabaseHandler — expiring profile session that forwards CRUD calls
* DatabaseConnection — connection handle owned by one handler
* DatabaseConnectionProvider / DatabaseActions — contracts backends implement
* JsonDocument — JSONPath view over search results
* Exception hierarchy — all profiledb errors
"""

from __future__ import annotations

from profiledb.core.connection import (
    DatabaseActions,
    DatabaseConnection,
    DatabaseConnectionProvider,
)
from profiledb.core.document import JsonDocument
from profiledb.core.exceptions import (
    AuthError,
    ConfigurationError,
    ConnectionError,
    CredentialError,
    HandlerCloneError,
    JsonDocumentError,
    NoActiveProfileError,
    ProfileDBError,
    ProfileNotFoundError,
    StatementError,
    UnknownBackendError,
)
from profiledb.core.handler import SessionedDatabaseHandler

__all__ = [
    # Handler
    "SessionedDatabaseHandler",
    # Connection contracts
    "DatabaseConnection",
    "DatabaseConnectionProvider",
    "DatabaseActions",
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
