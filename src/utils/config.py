# environment driven settings
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

from utils.logger import get_logger

Env = Literal["development", "production", "test"]

_ENVS = ("development", "production", "test")
_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}

_log = get_logger(__name__)


@dataclass(frozen=True)
class Settings:
    """
    Runtime configuration.

    Fields:
      - db_path: sqlite file, created on first use
      - env: "development" | "production" | "test"
      - seed_demo: load demo catalog and accounts into a fresh database
      - db_timeout: seconds a writer waits on the sqlite lock

    Log verbosity is not part of Settings; utils.logger reads DEBUG and
    MEDSTORE_ENV itself so it works before settings are loaded.
    """

    db_path: str = "data/medstore.sqlite"
    env: Env = "development"
    seed_demo: bool = True
    db_timeout: float = 30.0


def _get_env(key: str, fallback: str) -> str:
    value = os.getenv(key)
    return value if value else fallback


def _get_env_bool(key: str, fallback: bool) -> bool:
    value = os.getenv(key)
    if not value:
        return fallback
    lowered = value.strip().lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    _log.warning(f"Invalid boolean value for {key}: {value}, using fallback: {fallback}")
    return fallback


def _get_env_float(key: str, fallback: float) -> float:
    value = os.getenv(key)
    if not value:
        return fallback
    try:
        return float(value)
    except ValueError:
        _log.warning(f"Invalid number for {key}: {value}, using fallback: {fallback}")
        return fallback


def load_settings() -> Settings:
    """Build Settings from MEDSTORE_* environment variables."""
    env = _get_env("MEDSTORE_ENV", "development")
    if env not in _ENVS:
        _log.warning(f"Unknown MEDSTORE_ENV {env!r}, using development")
        env = "development"
    return Settings(
        db_path=_get_env("MEDSTORE_DB_PATH", Settings.db_path),
        env=env,  # type: ignore[arg-type]
        seed_demo=_get_env_bool("MEDSTORE_SEED_DEMO", True),
        db_timeout=_get_env_float("MEDSTORE_DB_TIMEOUT", 30.0),
    )
