from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional

_SQLITE_SCHEME = "sqlite:///"


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'sqlite' (default) or 'memory'
    - DATABASE_URL: 'sqlite:///<path>' or a bare file path. Default 'sqlite:///./data/tasks.db'
    - APP_ENV: deployment environment name; schema auto-sync is off for 'production'
    - DB_SCHEMA_SYNC: explicit true/false override for schema auto-sync
    - API_PREFIX: common path prefix for the task routes. Default '/api'
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - LOG_LEVEL: root log level name. Default 'INFO'
    - HOST / PORT: bind address used by the 'task-api' entry point
    """

    persistence_backend: str
    database_url: Optional[str]
    sqlite_db_path: str
    app_env: str
    schema_sync: bool
    api_prefix: str
    cors_allow_origins: List[str]
    log_level: str
    host: str
    port: int


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_bool(value: str, default: bool = False) -> bool:
    v = value.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


def _parse_sqlite_path(url: str) -> str:
    """
    Turn a DATABASE_URL into a filesystem path for sqlite3.

    'sqlite:///./data/tasks.db' -> './data/tasks.db'
    'sqlite:////var/lib/tasks.db' -> '/var/lib/tasks.db'
    Anything without the scheme is taken as a path as-is.
    """
    value = url.strip()
    if value.startswith(_SQLITE_SCHEME):
        return value[len(_SQLITE_SCHEME):]
    if "://" in value:
        raise ValueError(f"Unsupported DATABASE_URL scheme: {value.split('://', 1)[0]!r}")
    return value


def _normalize_prefix(prefix: str) -> str:
    p = prefix.strip().rstrip("/")
    if p and not p.startswith("/"):
        p = "/" + p
    return p


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("PERSISTENCE_BACKEND", "sqlite").strip().lower()
    if backend not in {"memory", "sqlite"}:
        # Fallback to sqlite if unsupported
        backend = "sqlite"

    database_url = os.getenv("DATABASE_URL") or None
    sqlite_path = _parse_sqlite_path(database_url or "sqlite:///./data/tasks.db")

    app_env = _get_env("APP_ENV", "development").strip().lower()
    schema_sync = _parse_bool(_get_env("DB_SCHEMA_SYNC", ""), app_env != "production")

    port_raw = _get_env("PORT", "3000").strip()
    try:
        port = int(port_raw)
    except ValueError as e:
        raise ValueError(f"PORT must be an integer, got {port_raw!r}") from e

    return Settings(
        persistence_backend=backend,
        database_url=database_url,
        sqlite_db_path=sqlite_path,
        app_env=app_env,
        schema_sync=schema_sync,
        api_prefix=_normalize_prefix(_get_env("API_PREFIX", "/api")),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
        host=_get_env("HOST", "0.0.0.0").strip(),
        port=port,
    )
