"""Credential retrieval and release via a remote credential service.

Profiles that set ``credentials_url`` do not carry a password.  Before a
backend connects it asks the service for a lease; the lease is released
when the connection is closed so the service can rotate it.

Wire format (JSON over HTTPS)::

    POST {credentials_url}/lease    {"profile": ..., "database": ...}
        -> 200 {"username": ..., "password": ..., "lease_id": ...}
    POST {credentials_url}/release  {"lease_id": ...}
        -> 200
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from profiledb.core.exceptions import AuthError, CredentialError

logger = logging.getLogger("profiledb.credentials")

_LEASE_PATH = "/lease"
_RELEASE_PATH = "/release"


@dataclass(frozen=True, slots=True)
class DatabaseCredentials:
    """Credential lease returned by the credential service."""

    username: str
    password: str
    lease_id: Optional[str] = None

    def __repr__(self) -> str:
        return f"DatabaseCredentials(username={self.username!r}, lease_id={self.lease_id!r})"


class CredentialClient:
    """Fetches and releases database credentials.

    A single instance can be shared by every profile that points at the same
    service.  ``transport`` is handed to :class:`httpx.Client` and exists so
    tests can plug in :class:`httpx.MockTransport`.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self._base_url

    # -- public ------------------------------------------------------------

    def fetch(self, profile_name: str, database: Optional[str] = None) -> DatabaseCredentials:
        """Lease a credential set for *profile_name*."""
        url = f"{self._base_url}{_LEASE_PATH}"
        body: dict[str, str] = {"profile": profile_name}
        if database is not None:
            body["database"] = database

        logger.debug("Requesting credentials (profile=%s, database=%s)", profile_name, database)

        try:
            with self._client() as client:
                resp = client.post(url, json=body)
        except httpx.HTTPError as exc:
            raise CredentialError(f"Credential request failed: {exc}") from exc

        if resp.status_code in (401, 403):
            raise AuthError(f"Credential service refused profile {profile_name!r}")
        if resp.status_code != 200:
            raise CredentialError(
                f"Credential service returned HTTP {resp.status_code}: {resp.text}"
            )

        try:
            data = resp.json()
            creds = DatabaseCredentials(
                username=data["username"],
                password=data["password"],
                lease_id=data.get("lease_id"),
            )
        except (KeyError, ValueError, TypeError, AttributeError) as exc:
            raise CredentialError(f"Malformed credential response: {exc}") from exc

        logger.debug("Credentials obtained for user=%s", creds.username)
        return creds

    def release(self, credentials: DatabaseCredentials) -> None:
        """Return a lease to the service.  Best-effort: failures are logged."""
        if credentials.lease_id is None:
            return

        url = f"{self._base_url}{_RELEASE_PATH}"
        logger.debug("Releasing credential lease %s", credentials.lease_id)

        try:
            with self._client() as client:
                resp = client.post(url, json={"lease_id": credentials.lease_id})
        except httpx.HTTPError as exc:
            logger.warning("Credential release request failed: %s", exc)
            return

        if resp.status_code != 200:
            logger.warning(
                "Credential release returned HTTP %d: %s",
                resp.status_code,
                resp.text,
            )
        else:
            logger.debug("Credential lease released")

    # -- private -----------------------------------------------------------

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=self._timeout, transport=self._transport)
