"""Centralised settings: reads .env / env vars via pydantic-settings."""
from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """All configuration for the DB gateway, sourced from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Postgres ──
    # DATABASE_URL wins when set; otherwise the URL is composed from the
    # POSTGRES_* variables shared with the docker-compose `db` service.
    DATABASE_URL: str | None = None
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "postgres"
    DB_BOOTSTRAP: bool = True

    # ── Celery ──
    CELERY_BROKER_URL: str = "redis://redis:6379/0"
    REDIS_URL: str = "redis://redis:6379/1"

    # ── App ──
    APP_ENV: str = "development"
    APP_LOG_LEVEL: str = "INFO"
    APP_CORS_ORIGINS: list[str] = ["http://localhost:5173"]

    # ── Crawler ──
    CRAWLER_ENABLED: bool = True
    CRAWL_INTERVAL_S: float = 60.0
    CRAWL_RETRY_AFTER_S: float = 600.0
    FETCH_TIMEOUT_S: float = 30.0
    FETCH_MAX_BYTES: int = 5_000_000
    FETCH_USER_AGENT: str = "DbGateway/1.0 (+snapshot crawler)"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )


settings = Settings()
