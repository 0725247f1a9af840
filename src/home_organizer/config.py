# src/home_organizer/config.py

"""
Settings from HOMEORG_* environment variables (a local .env is loaded first).

Nothing here requires secrets at import time; Matrix credentials are only
checked when the connector starts.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "HOMEORG_"
DEFAULT_DATA_DIR = Path(".local/home_organizer")
DEFAULT_UPCOMING_DAYS = 30

logger = logging.getLogger(__name__)

_TRUE = {"1", "true", "yes", "y", "on"}

load_dotenv(override=False)


class _Env:
    """Typed reads of prefixed environment variables; blanks count as unset."""

    def __init__(self, prefix: str = ENV_PREFIX) -> None:
        self.prefix = prefix

    def raw(self, name: str) -> str | None:
        value = os.getenv(self.prefix + name)
        if value is None or not value.strip():
            return None
        return value.strip()

    def get_str(self, name: str, default: str = "") -> str:
        value = self.raw(name)
        return default if value is None else value

    def get_bool(self, name: str, default: bool) -> bool:
        value = self.raw(name)
        return default if value is None else value.lower() in _TRUE

    def get_int(self, name: str, default: int) -> int:
        value = self.raw(name)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            logger.warning("%s%s=%r is not an integer, using %s", self.prefix, name, value, default)
            return default

    def get_list(self, name: str) -> list[str]:
        value = self.raw(name) or ""
        return [p for p in value.replace(",", " ").split() if p]

    def get_path(self, name: str, default: Path) -> Path:
        value = self.raw(name)
        return default if value is None else Path(value).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    app_name: str
    log_level: str

    console_enabled: bool
    matrix_enabled: bool

    matrix_homeserver: str
    matrix_user_id: str
    matrix_password: str
    matrix_rooms: list[str]

    data_dir: Path
    db_path: Path
    matrix_store_path: Path

    # Default lookahead for /upcoming.
    upcoming_days: int
    # Stored on new rules; date math never converts zones.
    timezone: str | None

    @staticmethod
    def from_env() -> Settings:
        env = _Env()
        data_dir = env.get_path("DATA_DIR", DEFAULT_DATA_DIR)
        return Settings(
            app_name=env.get_str("APP_NAME", "home-organizer"),
            log_level=env.get_str("LOG_LEVEL", "INFO").upper(),
            console_enabled=env.get_bool("CONSOLE_ENABLED", True),
            matrix_enabled=env.get_bool("MATRIX_ENABLED", False),
            matrix_homeserver=env.get_str("MATRIX_HOMESERVER"),
            matrix_user_id=env.get_str("MATRIX_USER_ID"),
            matrix_password=env.get_str("MATRIX_PASSWORD"),
            matrix_rooms=env.get_list("MATRIX_ROOMS"),
            data_dir=data_dir,
            db_path=env.get_path("DB_PATH", data_dir / "home-organizer.sqlite3"),
            matrix_store_path=env.get_path("MATRIX_STORE_PATH", data_dir / "matrix_store"),
            upcoming_days=max(0, env.get_int("UPCOMING_DAYS", DEFAULT_UPCOMING_DAYS)),
            timezone=env.raw("TIMEZONE"),
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
