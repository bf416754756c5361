"""
Configuration Management for the Monthly Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Every group has a working default so the ledger runs locally with no
environment at all; only the Google Sheets backend needs real values.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Key-value storage backend selection."""

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        extra="ignore"
    )

    backend: Literal["memory", "file", "google_sheets"] = Field(
        default="file",
        description="Which key-value backend to use"
    )
    data_path: str = Field(
        default="ledger_data.json",
        description="Path of the JSON file used by the file backend"
    )
    lock_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="How long to wait for the data file lock"
    )


class LedgerSettings(BaseSettings):
    """Key layout and defaults for the month-partitioned ledger."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        extra="ignore"
    )

    key_prefix: str = Field(
        default="budget_app_",
        min_length=1,
        description="Prefix for partition, rule, category and portfolio keys"
    )
    budget_key_prefix: str = Field(
        default="budget_limit_",
        min_length=1,
        description="Prefix for per-month budget keys"
    )
    default_monthly_budget: Decimal = Field(
        default=Decimal("5000"),
        ge=0,
        description="Budget returned for months that never had one set"
    )

    @field_validator('budget_key_prefix')
    @classmethod
    def budget_prefix_differs(cls, v: str, info: ValidationInfo) -> str:
        """Budget keys must never be mistaken for partition keys."""
        if v == info.data.get("key_prefix"):
            raise ValueError("budget_key_prefix must differ from key_prefix")
        return v


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )
    kv_sheet_name: str = Field(
        default="KeyValueStore",
        description="Name of the worksheet holding key/value rows"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class CoinGeckoSettings(BaseSettings):
    """CoinGecko market data API configuration."""

    model_config = SettingsConfigDict(
        env_prefix="COINGECKO_",
        extra="ignore"
    )

    base_url: str = Field(
        default="https://api.coingecko.com/api/v3",
        description="API root"
    )
    api_key: Optional[str] = Field(
        default=None,
        description="Demo API key, sent as x_cg_demo_api_key"
    )
    vs_currency: str = Field(
        default="usd",
        description="Quote currency"
    )
    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Per-request timeout"
    )
    max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per request on transport errors"
    )
    retry_wait_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Base of the exponential backoff between attempts"
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

    log_level: str = Field(
        default="INFO",
        description="Minimum level for structured logs"
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

    # Sub-settings are loaded lazily so a missing Google Sheets
    # configuration does not stop the local backends from working.

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def coingecko(self) -> CoinGeckoSettings:
        return CoinGeckoSettings()

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
