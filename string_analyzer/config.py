from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App environment
    env: str = Field(default="development", alias="ENV")
    debug: bool = Field(default=False, alias="DEBUG")
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")

    # Database
    database_url: str = Field(default="sqlite+aiosqlite:///./dev.db", alias="DATABASE_URL")
    db_echo: bool = Field(default=False, alias="DB_ECHO")
    db_pool_size: int = Field(default=10, alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=5, alias="DB_MAX_OVERFLOW")

    # Retry policy for transient database failures
    db_max_retries: int = Field(default=3, alias="DB_MAX_RETRIES")
    db_retry_base_delay: float = Field(default=1.0, alias="DB_RETRY_BASE_DELAY")  # seconds, doubles per attempt

    # Logging configuration used by string_analyzer.logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    console_log_level: str = Field(default="INFO", alias="CONSOLE_LOG_LEVEL")
    slow_query_ms: int = Field(default=200, alias="SLOW_QUERY_MS")

    # Rate limiting: 100 requests per 15 minutes per client address.
    # If REDIS_URL is not provided, limits are kept in process memory.
    rate_limit_enabled: bool = Field(default=True, alias="RATE_LIMIT_ENABLED")
    rate_limit: int = Field(default=100, alias="RATE_LIMIT")
    rate_limit_window: int = Field(default=900, alias="RATE_LIMIT_WINDOW")
    redis_url: Optional[str] = Field(default=None, alias="REDIS_URL")

    cors_origins: List[str] = Field(default=["*"], alias="CORS_ORIGINS")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_development(self) -> bool:
        return self.env.lower() == "development"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
