"""Custom exceptions for profiledb.

All exceptions inherit from ProfileDBError to allow catching any library error.
Secrets (passwords, credential tokens) are never included in exception messages.
"""

from __future__ import annotations


class ProfileDBError(Exception):
    """Base exception for all profiledb errors."""


class ConfigurationError(ProfileDBError):
    """Raised when the handler or manager is wired or configured incorrectly."""


class ProfileNotFoundError(ConfigurationError):
    """Raised when a profile name is not registered for an application."""


class UnknownBackendError(ConfigurationError):
    """Raised when a profile names a backend that has no registered factory."""


class AuthError(ProfileDBError):
    """Raised when the database or credential service rejects authentication."""


class ConnectionError(ProfileDBError):  # noqa: A001
    """Raised when the native database connection fails."""


class CredentialError(ProfileDBError):
    """Raised when credential retrieval or release fails."""


class NoActiveProfileError(ProfileDBError):
    """Raised when a CRUD call is made before any profile was activated."""


class StatementError(ProfileDBError):
    """Raised when the backend fails to execute a statement."""


class HandlerCloneError(ProfileDBError):
    """Raised when a handler cannot be cloned because its backend factory failed."""


class JsonDocumentError(ProfileDBError):
    """Raised when search results cannot be parsed or queried as JSON."""
