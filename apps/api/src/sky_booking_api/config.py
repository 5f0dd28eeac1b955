"""Booking service configuration via environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class BookingSettings(BaseSettings):
    """Application settings loaded from environment / .env file."""

    redis_url: str = "redis://localhost:6379/0"
    jwt_secret: str = "change-me-in-production-0123456789abcdef"
    jwt_algorithm: str = "HS256"
    cors_origins: list[str] = ["http://localhost:3000"]
    log_level: str = "INFO"

    # Retention / lock TTLs in seconds
    booking_ttl_seconds: int = 30 * 24 * 60 * 60  # 30 days
    price_lock_seconds: int = 15 * 60  # 15 min

    # Price confirmation
    price_tolerance: float = 0.10
    price_confirm_retries: int = 2
    price_confirm_retry_delay: float = 0.5

    # Listing
    default_page_size: int = 20

    model_config = SettingsConfigDict(
        env_prefix="BOOKING_", env_file=".env", extra="ignore"
    )


settings = BookingSettings()
