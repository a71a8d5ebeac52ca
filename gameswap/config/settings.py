"""
Configuration Management for GameSwap

Uses pydantic-settings for type-safe configuration from environment variables.

All configuration is centralized here: where the account blob lives,
how long an idle session survives, and the runtime environment.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Persistence slot configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GAMESWAP_STORAGE_",
        extra="ignore"
    )

    backend: Literal["json", "memory"] = Field(
        default="json",
        description="Storage backend for the account blob"
    )
    path: str = Field(
        default="gameswap-data.json",
        description="Path of the JSON file holding the account blob"
    )
    slot_key: str = Field(
        default="userData",
        min_length=1,
        description="Fixed key under which the account list is stored"
    )
    write_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="How many times a failed blob write is attempted"
    )

    @field_validator('path')
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Reject an empty path."""
        if not v.strip():
            raise ValueError("Storage path cannot be empty")
        return v.strip()


class SessionSettings(BaseSettings):
    """Session lifetime configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GAMESWAP_SESSION_",
        extra="ignore"
    )

    idle_timeout_seconds: int = Field(
        default=180,
        ge=10,
        description="Seconds of inactivity before the session is logged out"
    )
    expiry_message: str = Field(
        default="You have been logged out due to inactivity.",
        description="Notification shown when the session expires"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def session(self) -> SessionSettings:
        return SessionSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus a
    `<name>_error` entry for each section that failed to load.
    """
    results = {}

    settings = get_settings()

    for name in ("storage", "session", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
