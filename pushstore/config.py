"""
Application configuration using Pydantic Settings
"""
from datetime import timedelta
from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Web push store settings loaded from environment variables
    """
    # Database file (created if absent)
    WEBPUSH_DATABASE_PATH: str = "webpush.db"

    # Seconds the SQLite driver waits on a locked database before failing
    WEBPUSH_BUSY_TIMEOUT: float = 5.0

    # Expiry sweep thresholds, measured from the last upsert
    WEBPUSH_WARNING_DURATION: timedelta = timedelta(days=55)
    WEBPUSH_EXPIRY_DURATION: timedelta = timedelta(days=60)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @model_validator(mode="after")
    def _check_durations(self) -> "Settings":
        if self.WEBPUSH_WARNING_DURATION >= self.WEBPUSH_EXPIRY_DURATION:
            raise ValueError("WEBPUSH_WARNING_DURATION must be shorter than WEBPUSH_EXPIRY_DURATION")
        return self


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings instance (singleton)
    """
    return Settings()
