"""
Application configuration using Pydantic Settings.
Loads configuration from environment variables with sensible defaults.
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Backing store
    store_backend: Literal["redis", "memory"] = "redis"
    redis_host: str = "127.0.0.1"
    redis_port: int = 6379
    redis_database: int = 0
    redis_password: str | None = None

    # Connection pool
    redis_max_idle: int = 10
    redis_max_active: int = 50
    redis_idle_timeout_seconds: int = 300
    redis_conn_max_lifetime_seconds: int = 3600
    redis_pool_wait_timeout_seconds: float = 5.0

    # Queue defaults
    default_ready_max_lifetime_seconds: int = 86400

    # Promoter Configuration
    promoter_interval_seconds: float = 1.0
    promoter_batch_size: int = 100

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_max_blocking_timeout_seconds: int = 30

    # Observability
    otel_exporter_otlp_endpoint: str = "http://localhost:4317"
    otel_service_name: str = "delayer"
    log_level: str = "INFO"
    log_format: str = "json"  # json or console


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
