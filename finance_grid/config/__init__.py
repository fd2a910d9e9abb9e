"""Configuration package."""

from finance_grid.config.settings import (
    AppSettings,
    CacheSettings,
    RemoteStoreSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "CacheSettings",
    "RemoteStoreSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
