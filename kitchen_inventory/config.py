"""Configuration management for the inventory core."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "staging", "production"] = Field(
        default="development"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["json", "text"] = Field(default="json", description="Log format")

    # Redis Configuration (settings store and event sink)
    redis_url: str = Field(default="redis://localhost:6379/0", description="Redis URL")
    event_stream_prefix: str = Field(
        default="events", description="Key prefix for appended inventory events"
    )

    # Oversell Settings
    oversell_policy_default: Literal["block", "allow_negative_alert"] = Field(
        default="block", description="System default oversell policy"
    )
    low_stock_threshold: float = Field(
        default=5.0, ge=0, description="Quantity at or below which a sale warns"
    )

    # Batch Settings
    expiration_warning_days: int = Field(
        default=7, ge=0, description="Days ahead to warn about expiring batches"
    )
    expiration_check_interval: float = Field(
        default=3600.0, gt=0, description="Expiration scan interval in seconds"
    )

    # Reorder Settings
    reorder_check_interval: float = Field(
        default=60.0, gt=0, description="Reorder scan interval in seconds"
    )
    default_location_id: str = Field(default="main", description="Default stock location")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v_upper


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
