"""Configuration management for Salon OS."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BufferMinutes(BaseModel):
    """Buffer override for a single service or location."""

    before: int = Field(default=0, ge=0)
    after: int = Field(default=0, ge=0)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/salon.db",
        description="SQLAlchemy async DSN for appointments and staff",
    )

    # Buffer time
    buffer_before_minutes: int = Field(
        default=0,
        ge=0,
        description="Static buffer applied before every existing appointment",
    )
    buffer_after_minutes: int = Field(
        default=0,
        ge=0,
        description="Static buffer applied after every existing appointment",
    )
    dynamic_buffers_enabled: bool = Field(
        default=False,
        description="Consult service/location buffer overrides when checking conflicts",
    )
    service_buffers: dict[str, BufferMinutes] = Field(default_factory=dict)
    location_buffers: dict[str, BufferMinutes] = Field(default_factory=dict)

    # Booking warnings
    business_open_hour: int = Field(default=9, ge=0, le=23)
    business_close_hour: int = Field(default=20, ge=0, le=24)
    travel_warning_minutes: int = Field(
        default=30,
        ge=0,
        description="Gap below which back-to-back bookings at different locations get a travel warning",
    )
    business_timezone: str = Field(
        default="UTC",
        description="IANA zone used for business-hour warnings and message clock times",
    )

    # Observability
    events_enabled: bool = Field(
        default=False,
        description="Write scheduling events to JSON Lines files",
    )
    event_log_dir: Path = Field(default=Path("data/logs"))

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
