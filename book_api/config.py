"""
Application configuration — loads from environment variables and an optional .env file.
No secrets are ever hardcoded.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Environment ──
    environment: str = "development"
    service_name: str = "book-api"

    # ── HTTP server ──
    host: str = "0.0.0.0"
    port: int = 5000
    idle_timeout_seconds: int = 60
    shutdown_timeout_seconds: int = 15

    # ── Postgres ──
    postgres_user: str = "bookapi"
    postgres_password: str = "changeme"
    postgres_db: str = "bookapi"
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    database_url: Optional[str] = None

    # ── Connection pool ──
    db_pool_size: int = 10
    db_max_overflow: int = 10
    db_pool_recycle_seconds: int = 300

    # ── Monitoring ──
    metrics_interval_seconds: float = 15.0
    log_level: str = "INFO"
    log_format: str = "json"  # json | console

    @property
    def database_dsn(self) -> str:
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
