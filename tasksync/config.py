from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def _first_existing(name: str) -> Path | None:
    for base in (Path.cwd(), PROJECT_ROOT):
        candidate = base / name
        if candidate.is_file():
            return candidate
    return None


def load_env() -> None:
    """Load `.env`, then let `.env.<APP_ENV>` override it."""
    base_env = _first_existing(".env")
    if base_env is not None:
        load_dotenv(base_env)
    app_env = os.getenv("APP_ENV", "development")
    overlay = _first_existing(f".env.{app_env}")
    if overlay is not None:
        load_dotenv(overlay, override=True)


@dataclass(frozen=True)
class Settings:
    cache_database_url: str | None
    remote_url: str | None = None
    store_database_url: str | None = None
    document_key: str = "project-manager-data"
    cache_prefix: str = "pm"
    debounce_seconds: float = 1.0
    max_deleted_tasks: int = 20
    remote_timeout: float | None = None
    server_host: str = "127.0.0.1"
    server_port: int = 8765
    log_level: str = "INFO"
    log_dir: str = "logs"


def _optional(name: str) -> str | None:
    return os.getenv(name, "").strip() or None


load_env()

_default_cache_url = f"sqlite:///{PROJECT_ROOT / 'data' / 'cache.db'}"
_remote_timeout = _optional("REMOTE_TIMEOUT")

SETTINGS = Settings(
    cache_database_url=os.getenv("CACHE_DATABASE_URL", _default_cache_url).strip() or None,
    remote_url=_optional("REMOTE_URL"),
    store_database_url=_optional("STORE_DATABASE_URL"),
    document_key=os.getenv("DOCUMENT_KEY", "project-manager-data"),
    cache_prefix=os.getenv("CACHE_PREFIX", "pm"),
    debounce_seconds=int(os.getenv("SYNC_DEBOUNCE_MS", "1000")) / 1000,
    max_deleted_tasks=int(os.getenv("MAX_DELETED_TASKS", "20")),
    remote_timeout=float(_remote_timeout) if _remote_timeout else None,
    server_host=os.getenv("SERVER_HOST", "127.0.0.1"),
    server_port=int(os.getenv("SERVER_PORT", "8765")),
    log_level=os.getenv("LOG_LEVEL", "INFO"),
    log_dir=os.getenv("LOG_DIR", "logs"),
)
