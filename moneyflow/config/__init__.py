"""Configuration package."""

from moneyflow.config.settings import (
    AppSettings,
    ModelSettings,
    Settings,
    StorageSettings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "ModelSettings",
    "Settings",
    "StorageSettings",
    "get_settings",
    "validate_all_settings",
]
