"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from notification_center.domain.entities import DispatchMode

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    database_url: str = Field(
        description="Database connection URL used by SQLAlchemy to connect to the DB",
        min_length=1,
    )
    secret_key: str = Field(
        description="Secret key used to verify identity tokens", min_length=1
    )
    app_timezone: str = Field(
        default="America/Mexico_City",
        description="IANA timezone used for stored timestamps",
    )
    notification_dispatch_mode: DispatchMode = Field(
        default=DispatchMode.CLIENT,
        description="Whether this service fans out events (client) or defers to a consumer (server)",
    )
    notification_dedupe_window_seconds: float = Field(
        default=15.0,
        description="Window during which repeated emissions with the same key are dropped",
        gt=0,
    )
    notification_max_batch_size: int = Field(
        default=400,
        description="Maximum number of writes committed in a single batch",
        gt=0,
        le=500,
    )
    notification_feed_limit: int = Field(
        default=100,
        description="Number of most recent notifications delivered to a feed",
        gt=0,
    )
    identity_timeout_seconds: float = Field(
        default=5.0,
        description="Seconds to wait for an authenticated session before giving up",
        gt=0,
    )
    log_level: str = Field(default="INFO", description="Root logging level")

    @field_validator("notification_dispatch_mode", mode="before")
    @classmethod
    def _normalize_dispatch_mode(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower() or DispatchMode.CLIENT.value
        return value


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
