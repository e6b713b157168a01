"""Application settings, single file, Pydantic-based.

DB selection:
  - DATABASE_URL set and non-empty -> PostgreSQL
  - DATABASE_URL absent/empty -> SQLite (DB_SQLITE_PATH, default data/kureno.db)
"""

import re
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _backend_root() -> Path:
    """Project root. config.py lives at the top level."""
    return Path(__file__).resolve().parent


def _ensure_env_loaded() -> None:
    """Load .env from the project root (then its parent). Idempotent."""
    root: Path = _backend_root()
    for candidate in (root / ".env", root.parent / ".env"):
        if candidate.exists():
            load_dotenv(candidate, override=False)


_ensure_env_loaded()


class DatabaseSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=(str(_backend_root() / ".env"), ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_url: str | None = Field(
        default=None,
        description="PostgreSQL DSN; when set, uses Postgres.",
        validation_alias="DATABASE_URL",
    )
    sqlite_path: str | None = Field(default="data/kureno.db")
    pool_size: int = Field(default=5)
    pool_timeout: int = Field(default=30)
    pool_recycle: int = Field(default=1800)

    def _use_postgres(self) -> bool:
        return bool((self.database_url or "").strip())

    def _resolved_sqlite_path(self) -> Path:
        raw: str = (self.sqlite_path or "data/kureno.db").strip()
        path: Path = Path(raw)
        if not path.is_absolute():
            path = (_backend_root() / path).resolve()
        return path

    def _redacted_postgres_dsn(self) -> str:
        url: str = (self.database_url or "").strip()
        return re.sub(r":([^:@]+)@", r":***@", url) if url else ""

    @property
    def url(self) -> str:
        if self._use_postgres():
            return (self.database_url or "").strip()
        path = self._resolved_sqlite_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        return f"sqlite:///{path.as_posix()}"

    def db_info_for_logging(self) -> str:
        if self._use_postgres():
            return f"PostgreSQL @ {self._redacted_postgres_dsn()}"
        return f"SQLite @ {self._resolved_sqlite_path().as_posix()}"


class TransferSettings(BaseSettings):
    """Limits for export/import requests."""

    model_config = SettingsConfigDict(
        env_prefix="KURENO_",
        env_file=(str(_backend_root() / ".env"), ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    max_upload_bytes: int = Field(default=10 * 1024 * 1024)
    export_timeout_seconds: float = Field(default=120.0)
    export_workers: int = Field(default=7, ge=1)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="KURENO_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    environment: str = Field(
        default="production",
        description="\"development\" opens admin routes when no API key is set",
    )
    debug: bool = Field(default=False)
    app_name: str = Field(default="kureno", description="Prefix for export filenames")
    api_key: str | None = Field(default=None, description="API key for admin endpoints")
    admin_email: str = Field(default="admin@kureno.local")
    export_dir: Path = Field(default=Path("exports"))

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    transfer: TransferSettings = Field(default_factory=TransferSettings)


@lru_cache
def get_settings() -> Settings:
    return Settings()
