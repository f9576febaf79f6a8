"""Application configuration."""
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_env: str = "development"
    database_url: str = "sqlite:///./webhook_capture.db"

    # Redis (webhook id cache, Celery broker, sweep lock)
    redis_url: str = "redis://localhost:6379/0"

    # Data retention
    retention_days: int = 30
    cache_ttl_seconds: int = 3600
    max_user_storage_bytes: int = 100 * 1024 * 1024
    retention_sweep_hour: int = 3
    sweep_lock_ttl_seconds: int = 900

    # Admin
    admin_notify_address: Optional[str] = None
    admin_api_token: Optional[str] = None

    # Resend
    resend_api_key: Optional[str] = None
    from_email: str = "noreply@webhook-capture.local"

    class Config:
        env_file = ".env"
        extra = "ignore"


@dataclass(frozen=True)
class RetentionConfig:
    """Explicit configuration handed to the cache and the retention sweep."""

    retention_days: int = 30
    cache_ttl_seconds: int = 3600
    admin_notify_address: Optional[str] = None
    max_user_storage_bytes: int = 0

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetentionConfig":
        return cls(
            retention_days=settings.retention_days,
            cache_ttl_seconds=settings.cache_ttl_seconds,
            admin_notify_address=settings.admin_notify_address,
            max_user_storage_bytes=settings.max_user_storage_bytes,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
