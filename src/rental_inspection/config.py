"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    notification_webhook_url: str
    photo_bucket: str = "return-photos"
    max_photo_bytes: int = 2 * 1024 * 1024
    max_photos: int = 5
    upload_max_attempts: int = 3
    upload_attempt_timeout_seconds: float = 30.0
    upload_backoff_seconds: float = 1.0
    photo_pause_seconds: float = 0.1
    max_tracked_sessions: int = 1000
    report_timezone: str = "Europe/Vienna"
    default_language: str = "de"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
