"""Application settings and configuration.

This module defines all configuration options for the Topic Pulse scoring
subsystem. Settings are loaded from environment variables with sensible defaults.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Topic Pulse", alias="APP_NAME")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./topic_pulse.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Redis configuration for cross-process hit locks
    redis_url: str = Field(default="redis://localhost:6379", alias="REDIS_URL")

    # Hit recording serialization
    hit_lock_backend: Literal["local", "redis"] = Field(default="local", alias="HIT_LOCK_BACKEND")
    hit_lock_timeout_seconds: float = Field(default=5.0, alias="HIT_LOCK_TIMEOUT_SECONDS")
    hit_max_attempts: int = Field(default=5, alias="HIT_MAX_ATTEMPTS")

    # Rolling windows and score weights
    day_window_size: int = Field(default=24, alias="DAY_WINDOW_SIZE")
    week_window_size: int = Field(default=7, alias="WEEK_WINDOW_SIZE")
    reply_weight: int = Field(default=3, alias="REPLY_WEIGHT")
    ranking_page_size: int = Field(default=20, alias="RANKING_PAGE_SIZE")

    # Deferred score recomputation
    score_worker_poll_interval_seconds: float = Field(
        default=1.0,
        alias="SCORE_WORKER_POLL_INTERVAL_SECONDS",
    )
    score_worker_batch_size: int = Field(default=50, alias="SCORE_WORKER_BATCH_SIZE")
    score_job_max_retries: int = Field(default=5, alias="SCORE_JOB_MAX_RETRIES")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.

        Returns:
            Database URL compatible with synchronous database drivers
        """
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides.

        Returns:
            The active database URL (test database if in testing mode, otherwise production)
        """
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url


settings = Settings()
