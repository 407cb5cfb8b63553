"""Database profiles — named descriptions of how to reach a database target.

Profiles are grouped per application and usually loaded from YAML::

    apps:
      shop-ui:
        profiles:
          - name: qa-orders
            backend: postgres
            host: qa-db.internal
            port: 5432
            database: orders
            username: qa_reader
            password: "..."
          - name: local
            backend: sqlite
            database: ./test-data/shop.db
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator

from profiledb.core.exceptions import ConfigurationError

logger = logging.getLogger("profiledb.profiles")


class DatabaseProfile(BaseModel):
    """Connection settings for one named database target."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1)
    backend: str = Field(min_length=1)
    host: Optional[str] = None
    port: Optional[int] = Field(default=None, gt=0, lt=65536)
    database: Optional[str] = None
    username: Optional[str] = None
    password: SecretStr = SecretStr("")
    credentials_url: Optional[str] = None
    options: dict[str, Any] = Field(default_factory=dict)
    target_servers: list[str] = Field(default_factory=list)

    @field_validator("backend")
    @classmethod
    def _normalize_backend(cls, value: str) -> str:
        return value.strip().lower()

    def allows_server(self, server_name: Optional[str]) -> bool:
        """Return ``True`` if *server_name* may use this profile.

        An empty ``target_servers`` list allows every server, and a ``None``
        server is always allowed.
        """
        if server_name is None or not self.target_servers:
            return True
        return server_name in self.target_servers


class _AppProfiles(BaseModel):
    model_config = ConfigDict(extra="forbid")

    profiles: list[DatabaseProfile] = Field(default_factory=list)


class _ProfilesDocument(BaseModel):
    model_config = ConfigDict(extra="forbid")

    apps: dict[str, _AppProfiles] = Field(default_factory=dict)


ProfileTable = dict[str, dict[str, DatabaseProfile]]


def parse_profiles(raw: Any) -> ProfileTable:
    """Validate an already-decoded profiles document.

    Returns ``{app_name: {profile_name: DatabaseProfile}}``.
    """
    if raw is None:
        return {}
    try:
        doc = _ProfilesDocument.model_validate(raw)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid profiles document: {exc}") from exc

    table: ProfileTable = {}
    for app_name, app in doc.apps.items():
        by_name: dict[str, DatabaseProfile] = {}
        for profile in app.profiles:
            if profile.name in by_name:
                raise ConfigurationError(
                    f"Duplicate profile {profile.name!r} for application {app_name!r}"
                )
            by_name[profile.name] = profile
        table[app_name] = by_name
    return table


def load_profiles(path: Union[str, Path]) -> ProfileTable:
    """Read and validate a YAML profiles file."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read profiles file {path}: {exc}") from exc

    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Profiles file {path} is not valid YAML: {exc}") from exc

    table = parse_profiles(raw)
    logger.debug(
        "Loaded %d profile(s) for %d application(s) from %s",
        sum(len(p) for p in table.values()),
        len(table),
        path,
    )
    return table
