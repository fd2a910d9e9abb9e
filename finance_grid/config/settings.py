"""
Configuration Management for Finance Grid

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Request and probe timeouts are explicit settings rather than whatever the
transport happens to default to, so a slow remote store has a known budget.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RemoteStoreSettings(BaseSettings):
    """Remote record store (HTTP API) configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FINANCE_GRID_REMOTE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    base_url: str = Field(
        default="http://localhost:5000/api",
        description="Base URL of the remote store API"
    )
    request_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="Timeout budget for create/update/delete/submit/load requests"
    )
    probe_timeout_seconds: float = Field(
        default=3.0,
        gt=0,
        le=30,
        description="Timeout budget for the connectivity probe"
    )

    @field_validator('base_url')
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Endpoints are joined with a leading slash."""
        return v.rstrip("/")


class CacheSettings(BaseSettings):
    """Durable cache mirror configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FINANCE_GRID_CACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    enabled: bool = Field(
        default=True,
        description="Persist snapshots to disk (False keeps them in memory only)"
    )
    directory: Path = Field(
        default=Path(".finance_grid_cache"),
        description="Directory holding one JSON snapshot per dataset"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="FINANCE_GRID_",
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

    default_dataset: str = Field(
        default="projects",
        description="Dataset opened when the editor starts"
    )
    event_history_size: int = Field(
        default=200,
        ge=0,
        le=10000,
        description="How many sync events to keep in memory"
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
    def remote(self) -> RemoteStoreSettings:
        return RemoteStoreSettings()

    @property
    def cache(self) -> CacheSettings:
        return CacheSettings()

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
    "<setting_name>_error" entry for each failure.
    """
    results = {}
    settings = get_settings()

    for name in ("remote", "cache", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
