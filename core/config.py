"""
Application settings and configuration management using Pydantic Settings.
"""
from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application Settings
    app_name: str = Field(default="Amenity Booking Core", description="Application name")
    app_env: str = Field(default="development", description="Environment (development, staging, production)")
    log_level: str = Field(default="INFO", description="Logging level")

    # Local wall clock
    local_utc_offset_minutes: int = Field(
        default=-360,
        ge=-720,
        le=840,
        description="Fixed offset of the building's local time from UTC, in minutes"
    )

    # Scheduling
    slot_step_minutes: int = Field(default=30, ge=5, le=240, description="Granularity of offered slot start times")
    max_reservation_hours: int = Field(default=4, ge=1, le=24, description="Hard cap on any reservation's length")
    max_notes_length: int = Field(default=1000, ge=0, description="Maximum length of reservation notes")

    # Policy switches
    enforce_auto_approval_rules: bool = Field(
        default=False,
        description="Also apply amenity maxDurationMinutes/maxReservationsPerDay to auto-approval"
    )
    edit_resets_approval: bool = Field(
        default=False,
        description="Send an approved reservation back to pending when its time changes"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the allowed values."""
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in allowed_levels:
            raise ValueError(f"log_level must be one of {allowed_levels}")
        return v_upper

    @field_validator("app_env")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        """Validate environment is one of the allowed values."""
        allowed_envs = ["development", "staging", "production"]
        v_lower = v.lower()
        if v_lower not in allowed_envs:
            raise ValueError(f"app_env must be one of {allowed_envs}")
        return v_lower

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.app_env == "development"

    @property
    def json_log_environments(self) -> List[str]:
        return ["production", "staging"]


@lru_cache()
def get_settings() -> Settings:
    """Get the settings singleton."""
    return Settings()
