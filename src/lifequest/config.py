"""Configuration settings for LifeQuest."""

from functools import lru_cache
from pathlib import Path
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="LIFEQUEST_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Bot Configuration
    bot_token: str | None = Field(default=None, description="Telegram Bot API token")

    # Storage Configuration
    database_url: str = Field(
        default="sqlite+aiosqlite:///lifequest.db",
        description="Local snapshot database URL",
    )
    redis_url: str | None = Field(
        default=None,
        description="Redis URL for the remote snapshot mirror (sync disabled when unset)",
    )

    # Installation identity
    installation_id: str | None = Field(default=None, description="Override the generated installation id")
    installation_id_path: Path = Field(default=Path.home() / ".lifequest" / "installation_id")

    # Calendar Configuration
    timezone: str | None = Field(default=None, description="IANA zone for day/week/month boundaries")

    # Sync & Scheduling
    save_debounce_seconds: float = Field(default=2.0, ge=0)
    reset_check_interval_seconds: float = Field(default=60.0, gt=0)
    midnight_grace_seconds: float = Field(default=5.0, ge=0)

    # Logging Configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO"
    )
    log_format: Literal["console", "json"] = Field(default="console")

    # Development
    debug: bool = Field(default=False)

    @field_validator("timezone")
    @classmethod
    def _check_timezone(cls, value: str | None) -> str | None:
        if value:
            try:
                ZoneInfo(value)
            except (ZoneInfoNotFoundError, ValueError) as e:
                raise ValueError(f"Unknown time zone: {value}") from e
        return value or None

    @property
    def tzinfo(self) -> ZoneInfo | None:
        """Configured time zone, or None for the host's local zone."""
        return ZoneInfo(self.timezone) if self.timezone else None


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
