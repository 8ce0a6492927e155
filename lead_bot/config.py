"""Application configuration handling."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

ENV_PATH = Path(__file__).resolve().parent / ".env"
load_dotenv(ENV_PATH, encoding="utf-8-sig")

DEFAULT_DATABASE_PATH = Path(__file__).resolve().parent / "data" / "leads.db"
_TRUTHY = {"1", "true", "yes", "on"}


def _env(key: str, default: str | None = None) -> str:
    value = os.getenv(key, default)
    if value is None:
        raise RuntimeError(f"Missing required environment variable: {key}")
    return value


def _env_int(key: str, default: int | None = None) -> int:
    value = _env(key, str(default) if default is not None else None)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise RuntimeError(f"Environment variable {key} must be an integer") from None


def _env_bool(key: str, default: bool = False) -> bool:
    value = os.getenv(key)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in _TRUTHY


@dataclass(frozen=True)
class Settings:
    green_api_instance_id: str
    green_api_token: str
    green_api_url: str
    green_api_buttons: bool
    database_path: Path
    authorized_phone: Optional[str]
    port: int
    log_level: str
    http_timeout_seconds: int

    @classmethod
    def from_env(cls) -> "Settings":
        raw_phone = os.getenv("AUTHORIZED_PHONE") or os.getenv("TEST_USER_PHONE") or ""
        authorized_phone = "".join(ch for ch in raw_phone if ch.isdigit()) or None
        database_value = os.getenv("DATABASE_PATH")
        database_path = Path(database_value).expanduser() if database_value else DEFAULT_DATABASE_PATH
        return cls(
            green_api_instance_id=_env("GREEN_API_INSTANCE_ID"),
            green_api_token=_env("GREEN_API_TOKEN"),
            green_api_url=_env("GREEN_API_URL", "https://api.green-api.com"),
            green_api_buttons=_env_bool("GREEN_API_BUTTONS"),
            database_path=database_path,
            authorized_phone=authorized_phone,
            port=_env_int("PORT", 3000),
            log_level=_env("LOG_LEVEL", "INFO").upper(),
            http_timeout_seconds=_env_int("HTTP_TIMEOUT_SECONDS", 15),
        )
