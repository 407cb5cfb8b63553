"""Environment-driven settings for profiledb.

Every field can be set with a ``PROFILEDB_`` prefixed environment variable or
in a ``.env`` file, e.g. ``PROFILEDB_SESSION_EXPIRY_SECONDS=120``.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional, Union

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_handler: Optional[logging.Handler] = None


class ProfileDBSettings(BaseSettings):
    """Settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PROFILEDB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    profiles_file: Optional[Path] = None
    session_expiry_seconds: int = Field(default=300, ge=0)
    credentials_timeout: float = Field(default=10.0, gt=0)
    log_level: str = "INFO"


def configure_logging(level: Union[int, str, None] = None) -> None:
    """Attach a stream handler to the ``profiledb`` logger.

    The library itself never configures handlers; test suites call this once
    to see session and statement logs.
    """
    if level is None:
        level = ProfileDBSettings().log_level
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    global _handler
    if _handler is None:
        _handler = logging.StreamHandler(sys.stderr)
        _handler.setFormatter(logging.Formatter(_LOG_FORMAT))

    logger = logging.getLogger("profiledb")
    logger.setLevel(level)
    if _handler not in logger.handlers:
        logger.addHandler(_handler)
