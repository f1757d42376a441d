"""
Configuration Management for Balance

Uses pydantic-settings for type-safe configuration from environment variables.

All configuration is centralized here so the two values that parameterize
the backend connection (endpoint and public key) are validated in one place.
"""

from functools import lru_cache
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SupabaseSettings(BaseSettings):
    """Hosted data service configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SUPABASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    url: str = Field(
        ...,
        description="Project endpoint, e.g. https://xyz.supabase.co"
    )
    anon_key: str = Field(
        ...,
        description="Public (anon) access key"
    )

    # Tables
    transactions_table: str = Field(
        default="transactions",
        description="Table holding transaction rows"
    )
    ledger_table: str = Field(
        default="account_balances",
        description="Table holding per-account ledger entries"
    )

    # Computed views (read-only)
    transactions_view: str = Field(
        default="transactions_with_balance",
        description="View yielding transactions with a running balance"
    )
    balance_view: str = Field(
        default="balance_view",
        description="View yielding the single aggregate balance row"
    )
    account_balance_view: str = Field(
        default="balance_per_account",
        description="View yielding one balance row per account"
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError("SUPABASE_URL must start with http:// or https://")
        return v


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
    log_level: str = Field(
        default="INFO",
        description="Stdlib logging level for structlog output"
    )

    storage_backend: Literal["supabase", "memory"] = Field(
        default="supabase",
        description="Which storage implementation to wire into the app"
    )

    # Display
    display_timezone: str = Field(
        default="Asia/Jakarta",
        description="Timezone used for calendar-day attribution and labels"
    )
    chart_window_days: int = Field(
        default=14,
        ge=1,
        le=90,
        description="Number of days shown in the expense trend chart"
    )

    # Validation thresholds
    max_transaction_amount_idr: float = Field(
        default=100_000_000.0,
        gt=0,
        description="Totals above this get a 'please double-check' warning"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.upper()
        if v not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return v

    @field_validator("display_timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {v}")
        return v

    @property
    def tzinfo(self) -> ZoneInfo:
        """Get the display timezone as a tzinfo object."""
        return ZoneInfo(self.display_timezone)


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

    # Sub-settings are loaded lazily so the app can start without a backend
    # configured (memory storage, settings page).

    @property
    def supabase(self) -> SupabaseSettings:
        return SupabaseSettings()

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

    Returns a dict of {setting_name: is_valid}, with a
    "<name>_error" entry describing each failure.
    """
    results = {}

    settings = get_settings()

    for name in ("supabase", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
