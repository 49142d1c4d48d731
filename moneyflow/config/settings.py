"""
Configuration Management for Money Flow

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Model defaults (default profile, default rates) live next to the storage
settings so a fresh graph and a migrated document agree on them.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Snapshot storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="MONEYFLOW_STORAGE_",
        extra="ignore"
    )

    data_dir: Path = Field(
        default=Path("data"),
        description="Directory holding the JSON file backend"
    )
    storage_key: str = Field(
        default="money_flow_v2",
        min_length=1,
        description="Key the graph document is stored under"
    )
    backup_prefix: str = Field(
        default="money_flow_backup_",
        description="Filename prefix for exported backups"
    )

    @field_validator('storage_key')
    @classmethod
    def validate_storage_key(cls, v: str) -> str:
        """Keys become file names, so path separators are not allowed."""
        if "/" in v or "\\" in v:
            raise ValueError(f"Storage key must not contain path separators: {v}")
        return v


class ModelSettings(BaseSettings):
    """Defaults applied when creating or migrating graph data."""

    model_config = SettingsConfigDict(
        env_prefix="MONEYFLOW_MODEL_",
        extra="ignore"
    )

    default_profile: str = Field(
        default="나",
        min_length=1,
        description="Profile created for a fresh graph and used by migration"
    )
    default_asset_interest_rate: float = Field(
        default=0.025,
        description="Annual rate given to asset nodes without one"
    )
    default_inflation_rate: float = Field(
        default=0.025,
        ge=0.0,
        le=1.0,
        description="Annual inflation used for real-value projections"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="MONEYFLOW_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum level for structured log output"
    )
    seed_defaults: bool = Field(
        default=True,
        description="Seed the sample graph when nothing is stored"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Unsupported log level: {v}. Allowed: {sorted(allowed)}")
        return v.upper()


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
    def model(self) -> ModelSettings:
        return ModelSettings()

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
    `<name>_error` entry for every group that failed.
    """
    results = {}
    settings = get_settings()

    for name in ("storage", "model", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
