# src/todo_app/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (server and console client).
- Nothing required at import time; every value has a local-dev default.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List

ENV_PREFIX = "TODO"

DEFAULT_API_BASE_URL = "http://localhost:4000"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env locally (values already in the environment win)."""
    from dotenv import load_dotenv

    load_dotenv(override=False)


_load_dotenv_if_available()


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    parts = [p.strip() for p in raw.replace(",", " ").split() if p.strip()]
    return parts


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def normalize_base_url(raw: str | None) -> str:
    """Strip whitespace and trailing slashes; empty -> the local default."""
    base = (raw or "").strip().rstrip("/")
    return base or DEFAULT_API_BASE_URL


def normalize_path(raw: str | None, default: str) -> str:
    p = (raw or "").strip() or default
    return p if p.startswith("/") else f"/{p}"


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    env: str

    # ---- HTTP server ----
    host: str
    port: int
    healthcheck_path: str
    cors_allow_origins: List[str]

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    db_path: Path

    # ---- Console client ----
    api_base_url: str
    api_timeout_seconds: float

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "todo-app") or "todo-app"
        log_level = _env(_k("LOG_LEVEL"), "INFO")
        env = _first_env(_k("ENV"), "NODE_ENV", default="development") or "development"

        host = _env(_k("HOST"), "0.0.0.0")
        port = _env_int(_k("PORT"), _env_int("PORT", 4000))
        healthcheck_path = normalize_path(_env(_k("HEALTHCHECK_PATH")), "/healthz")
        cors_allow_origins = _env_list(_k("CORS_ALLOW_ORIGINS"), ["*"])

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/todo"))
        db_path = _env_path(_k("DB_PATH"), data_dir / "todo.sqlite3")

        # Explicit API base wins over the backend URL.
        api_base_url = normalize_base_url(_first_env(_k("API_BASE"), _k("BACKEND_URL")))
        api_timeout_seconds = _env_float(_k("API_TIMEOUT_SECONDS"), 10.0)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            env=env,
            host=host,
            port=port,
            healthcheck_path=healthcheck_path,
            cors_allow_origins=cors_allow_origins,
            data_dir=data_dir,
            db_path=db_path,
            api_base_url=api_base_url,
            api_timeout_seconds=api_timeout_seconds,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
