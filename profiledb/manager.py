"""Database manager — profile lookup and connection providers.

The manager is constructed explicitly and handed to every handler that needs
it; there is no process-wide instance.

Usage::

    manager = DatabaseManager.from_file("profiles.yaml")
    with manager.create_handler("shop-ui", session_expiry_seconds=120) as db:
        db.set_active_profile("qa-orders")
        doc = db.get_data_as_json_document("orders", "SELECT id, status FROM orders")
"""

from __future__ import annotations

import functools
import logging
from pathlib import Path
from typing import Any, Callable, Optional, Union

from profiledb.backends import get_backend_factory
from profiledb.core.connection import DatabaseActions, DatabaseConnectionProvider
from profiledb.core.exceptions import ConfigurationError, ProfileNotFoundError
from profiledb.core.handler import SessionedDatabaseHandler
from profiledb.profiles import DatabaseProfile, ProfileTable, load_profiles
from profiledb.settings import ProfileDBSettings

logger = logging.getLogger("profiledb.manager")

_DEFAULT_SESSION_EXPIRY_SECONDS = 300


class DatabaseManager:
    """Resolves profiles and hands out one provider per (app, server, profile).

    Parameters
    ----------
    profiles:
        Optional ``{app_name: {profile_name: DatabaseProfile}}`` table.
    session_expiry_seconds:
        Default expiry for handlers created by :meth:`create_handler`.
    backend_options:
        Keyword options passed to every backend factory.
    """

    def __init__(
        self,
        profiles: Optional[ProfileTable] = None,
        *,
        session_expiry_seconds: int = _DEFAULT_SESSION_EXPIRY_SECONDS,
        backend_options: Optional[dict[str, Any]] = None,
    ) -> None:
        self._profiles: ProfileTable = {}
        self._session_expiry_seconds = session_expiry_seconds
        self._backend_options = dict(backend_options or {})
        self._providers: dict[tuple[str, Optional[str], str], DatabaseConnectionProvider] = {}

        for app_name, by_name in (profiles or {}).items():
            for profile in by_name.values():
                self.register_profile(app_name, profile)

    # -- constructors ------------------------------------------------------

    @classmethod
    def from_file(cls, path: Union[str, Path], **kwargs: Any) -> "DatabaseManager":
        return cls(load_profiles(path), **kwargs)

    @classmethod
    def from_settings(cls, settings: Optional[ProfileDBSettings] = None) -> "DatabaseManager":
        """Build a manager from :class:`ProfileDBSettings` (environment by default)."""
        settings = settings or ProfileDBSettings()
        profiles = load_profiles(settings.profiles_file) if settings.profiles_file else None
        return cls(
            profiles,
            session_expiry_seconds=settings.session_expiry_seconds,
            backend_options={"credentials_timeout": settings.credentials_timeout},
        )

    # -- profiles ----------------------------------------------------------

    def register_profile(self, app_name: str, profile: DatabaseProfile) -> None:
        """Add or replace *profile* for *app_name*."""
        app_profiles = self._profiles.setdefault(app_name, {})
        if profile.name in app_profiles:
            logger.debug("Replacing profile %s for %s", profile.name, app_name)
            self._forget_providers(app_name, profile.name)
        app_profiles[profile.name] = profile

    def get_database_profile(self, app_name: str, profile_name: str) -> DatabaseProfile:
        try:
            return self._profiles[app_name][profile_name]
        except KeyError:
            raise ProfileNotFoundError(
                f"Profile {profile_name!r} is not defined for application {app_name!r}"
            ) from None

    def profile_names(self, app_name: str) -> list[str]:
        return sorted(self._profiles.get(app_name, {}))

    @property
    def app_names(self) -> list[str]:
        return sorted(self._profiles)

    # -- providers ---------------------------------------------------------

    def get_connection_provider(
        self,
        app_name: str,
        target_server_name: Optional[str],
        profile_name: str,
    ) -> DatabaseConnectionProvider:
        """Return the provider for the profile's backend, creating it on first use."""
        key = (app_name, target_server_name, profile_name)
        provider = self._providers.get(key)
        if provider is not None:
            return provider

        profile = self.get_database_profile(app_name, profile_name)
        if not profile.allows_server(target_server_name):
            raise ConfigurationError(
                f"Profile {profile_name!r} of {app_name!r} is not available "
                f"on server {target_server_name!r}"
            )

        provider = self._build_backend(profile.backend)
        self._providers[key] = provider
        logger.debug(
            "Created %s provider for %s/%s/%s",
            profile.backend,
            app_name,
            target_server_name,
            profile_name,
        )
        return provider

    # -- handlers ----------------------------------------------------------

    def create_handler(
        self,
        app_name: str,
        session_expiry_seconds: Optional[int] = None,
        *,
        backend: Optional[str] = None,
        target_server_name: Optional[str] = None,
    ) -> SessionedDatabaseHandler:
        """Create a handler wired to this manager.

        With *backend* set, CRUD calls always go through a dedicated instance
        of that backend; otherwise they go through the provider of whichever
        profile is active.
        """
        backend_factory: Optional[Callable[[], DatabaseActions]] = None
        if backend is not None:
            backend_factory = functools.partial(
                get_backend_factory(backend), **self._backend_options
            )

        return SessionedDatabaseHandler(
            app_name,
            self._session_expiry_seconds if session_expiry_seconds is None else session_expiry_seconds,
            backend_factory=backend_factory,
            manager=self,
            target_server_name=target_server_name,
        )

    # -- private -----------------------------------------------------------

    def _build_backend(self, backend_name: str) -> Any:
        factory = get_backend_factory(backend_name)
        return factory(**self._backend_options)

    def _forget_providers(self, app_name: str, profile_name: str) -> None:
        for key in [k for k in self._providers if k[0] == app_name and k[2] == profile_name]:
            del self._providers[key]
