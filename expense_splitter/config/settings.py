"""
Configuration Management for Expense Splitter

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see what can be tuned and ensures all
configuration is validated at startup.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """JSON file storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SPLITTER_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    state_path: str = Field(
        default="splitter_state.json",
        description="Path to the JSON file holding the shared state"
    )
    audit_path: Optional[str] = Field(
        default="splitter_audit.jsonl",
        description="Path to the JSON-lines audit log (empty disables it)"
    )

    @field_validator('state_path')
    @classmethod
    def validate_state_dir(cls, v: str) -> str:
        """Warn if the state directory doesn't exist (but don't fail - might be mounted later)."""
        parent = Path(v).expanduser().parent
        if not parent.exists():
            import warnings
            warnings.warn(
                f"State directory not found at {parent}. "
                "Make sure it exists before running the application."
            )
        return v


class SharingSettings(BaseSettings):
    """Share link configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SPLITTER_SHARE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    base_url: str = Field(
        default="http://localhost:8501",
        description="Base URL share links point to"
    )
    # Conservative for browser compatibility
    max_url_length: int = Field(
        default=2000,
        ge=100,
        le=65536,
        description="Longest share URL we hand out"
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

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Root log level"
    )

    # Validation thresholds
    max_expense_amount: float = Field(
        default=1000000.0,
        gt=0,
        description="Maximum reasonable expense amount (for sanity checking)"
    )
    max_participants: int = Field(
        default=50,
        ge=1,
        description="Maximum number of participants in one group"
    )
    reject_unknown_groups: bool = Field(
        default=False,
        description="Reject expenses whose group id doesn't resolve instead of sharing them with everyone"
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

    # Note: These are loaded lazily to allow partial configuration

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def sharing(self) -> SharingSettings:
        return SharingSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("storage", "sharing", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
