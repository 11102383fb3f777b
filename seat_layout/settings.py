from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SEAT_LAYOUT_",
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    # Quiescence window for change notifications.
    debounce_seconds: float = Field(default=0.5, ge=0.05, le=5.0)
    log_level: str = "INFO"
    default_file: str = "seat_layout.json"

    price_multiplier_premium: float = Field(default=1.5, ge=0)
    price_multiplier_standard: float = Field(default=1.0, ge=0)


@lru_cache
def get_settings() -> Settings:
    return Settings()
