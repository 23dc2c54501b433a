"""Configuration helpers for the jot CLI."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent
ENV_PATH = PROJECT_ROOT / ".env"

DEFAULT_DATABASE_FILE = "jot.db"
DEFAULT_LOG_LEVEL = "WARNING"

# Load .env from the project root (if present) regardless of current working dir
if ENV_PATH.exists():
    load_dotenv(ENV_PATH)
else:
    load_dotenv()


@dataclass(frozen=True)
class Settings:
    """Runtime configuration loaded from environment variables."""

    database_url: str
    log_level: str


def _resolve_database_url(raw_value: str | None) -> str:
    if not raw_value:
        return str(Path.cwd() / DEFAULT_DATABASE_FILE)
    if raw_value == ":memory:" or raw_value.startswith("file:"):
        return raw_value
    return str(Path(raw_value).expanduser())


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings(
        database_url=_resolve_database_url(os.getenv("DB_URL")),
        log_level=os.getenv("JOT_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
    )


__all__ = ["Settings", "get_settings", "PROJECT_ROOT", "DEFAULT_DATABASE_FILE"]
