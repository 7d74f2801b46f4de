"""Configuration package."""

from confia.config.settings import (
    AppSettings,
    GeminiSettings,
    LocalStoreSettings,
    Settings,
    SupabaseSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "GeminiSettings",
    "LocalStoreSettings",
    "Settings",
    "SupabaseSettings",
    "get_settings",
    "validate_all_settings",
]
