# src/bulk_outreach/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time (the API token is optional).
- Invalid numeric values fall back to defaults instead of crashing startup.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

ENV_PREFIX = "OUTREACH"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env locally if python-dotenv is installed. Safe no-op otherwise."""
    try:
        from dotenv import load_dotenv  # type: ignore
    except ImportError:
        return
    load_dotenv(override=False)


_load_dotenv_if_available()


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_optional_int(name: str) -> int | None:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Remote job service ----
    api_base_url: str
    api_token: Optional[str]
    auth_scheme: str
    connect_timeout_seconds: float
    read_timeout_seconds: float

    # ---- Polling ----
    poll_interval_seconds: float
    poll_max_errors: Optional[int]
    poll_backoff_factor: float
    poll_max_interval_seconds: float

    # ---- Notifications ----
    notification_ttl_seconds: float

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    credentials_path: Path
    persist_credentials: bool

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "bulk-outreach") or "bulk-outreach"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        api_base_url = _env(_k("API_BASE_URL"), "http://localhost:8000/api").rstrip("/")
        api_token = (_env(_k("API_TOKEN"), "") or "").strip() or None
        auth_scheme = (_env(_k("AUTH_SCHEME"), "Token") or "Token").strip()

        connect_timeout_seconds = _env_float(_k("CONNECT_TIMEOUT_SECONDS"), 5.0)
        read_timeout_seconds = _env_float(_k("READ_TIMEOUT_SECONDS"), 30.0)

        poll_interval_seconds = _env_float(_k("POLL_INTERVAL_SECONDS"), 2.0)
        poll_max_errors = _env_optional_int(_k("POLL_MAX_ERRORS"))
        poll_backoff_factor = _env_float(_k("POLL_BACKOFF_FACTOR"), 1.0)
        poll_max_interval_seconds = _env_float(_k("POLL_MAX_INTERVAL_SECONDS"), 30.0)

        notification_ttl_seconds = _env_float(_k("NOTIFICATION_TTL_SECONDS"), 5.0)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/outreach"))
        credentials_path = _env_path(_k("CREDENTIALS_PATH"), data_dir / "auth.json")
        persist_credentials = _env_bool(_k("PERSIST_CREDENTIALS"), True)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            api_base_url=api_base_url,
            api_token=api_token,
            auth_scheme=auth_scheme,
            connect_timeout_seconds=connect_timeout_seconds,
            read_timeout_seconds=read_timeout_seconds,
            poll_interval_seconds=poll_interval_seconds,
            poll_max_errors=poll_max_errors,
            poll_backoff_factor=poll_backoff_factor,
            poll_max_interval_seconds=poll_max_interval_seconds,
            notification_ttl_seconds=notification_ttl_seconds,
            data_dir=data_dir,
            credentials_path=credentials_path,
            persist_credentials=persist_credentials,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
