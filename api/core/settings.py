"""
Environment-driven configuration.

Everything is read from plain environment variables so the same image runs
locally, in docker compose and in CI. Nothing here talks to the database.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import quote

DEFAULT_API_PORT = 3000
DEFAULT_POOL_MIN = 0
DEFAULT_POOL_MAX = 5
DEFAULT_POOL_IDLE_SECONDS = 10.0
DEFAULT_UPLOAD_DIR = "/img/"
DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10 MiB


def _env_str(name: str, default: str) -> str:
    return os.environ.get(name, default).strip() or default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


def normalize_upload_dir(value: str) -> str:
    """
    Return the upload dir as a URL prefix with leading and trailing slash.

    "img", "/img" and "img/" all become "/img/".
    """
    inner = value.strip().strip("/")
    if not inner:
        return "/"
    return f"/{inner}/"


def database_url() -> str:
    """
    Return the configured DSN.

    DATABASE_URL wins; otherwise the DSN is assembled from DB_HOST/DB_PORT/
    DB_NAME/DB_USER/DB_PASSWORD.
    """
    url = os.environ.get("DATABASE_URL", "").strip()
    if url:
        return url

    host = _env_str("DB_HOST", "localhost")
    port = _env_int("DB_PORT", 5432)
    name = _env_str("DB_NAME", "comicstore")
    user = quote(_env_str("DB_USER", "postgres"), safe="")
    password = quote(os.environ.get("DB_PASSWORD", ""), safe="")
    credentials = f"{user}:{password}" if password else user
    return f"postgresql://{credentials}@{host}:{port}/{name}"


@dataclass(frozen=True)
class Settings:
    database_url: str = ""
    pool_min_size: int = DEFAULT_POOL_MIN
    pool_max_size: int = DEFAULT_POOL_MAX
    pool_idle_seconds: float = DEFAULT_POOL_IDLE_SECONDS
    auto_create_schema: bool = True
    host: str = "0.0.0.0"
    port: int = DEFAULT_API_PORT
    public_dir: Path = Path("public")
    upload_dir: str = DEFAULT_UPLOAD_DIR
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    log_level: str = "INFO"

    @property
    def upload_path(self) -> Path:
        """Filesystem directory that receives uploaded images."""
        return self.public_dir / self.upload_dir.strip("/")

    @classmethod
    def from_env(cls) -> Settings:
        max_upload_bytes = _env_int("MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES)
        if max_upload_bytes <= 0:
            max_upload_bytes = DEFAULT_MAX_UPLOAD_BYTES

        pool_max_size = _env_int("DB_POOL_MAX", DEFAULT_POOL_MAX)
        if pool_max_size <= 0:
            pool_max_size = DEFAULT_POOL_MAX
        pool_min_size = max(0, min(_env_int("DB_POOL_MIN", DEFAULT_POOL_MIN), pool_max_size))

        return cls(
            database_url=database_url(),
            pool_min_size=pool_min_size,
            pool_max_size=pool_max_size,
            pool_idle_seconds=_env_float("DB_POOL_IDLE_SECONDS", DEFAULT_POOL_IDLE_SECONDS),
            auto_create_schema=_env_bool("DB_AUTO_CREATE_SCHEMA", True),
            host=_env_str("API_HOST", "0.0.0.0"),
            port=_env_int("API_PORT", DEFAULT_API_PORT),
            public_dir=Path(_env_str("PUBLIC_DIR", "public")),
            upload_dir=normalize_upload_dir(_env_str("UPLOAD_DIR", DEFAULT_UPLOAD_DIR)),
            max_upload_bytes=max_upload_bytes,
            log_level=_env_str("LOG_LEVEL", "INFO").upper(),
        )
