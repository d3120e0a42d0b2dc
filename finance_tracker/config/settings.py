"""
Configuration Management for Finance Tracker

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Defaults for a first run (currency table, budget, categories) and the
storage location live in one place and are validated at startup.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Key-value persistence configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FINANCE_TRACKER_STORAGE_",
        extra="ignore"
    )

    data_dir: Path = Field(
        default=Path(".finance_tracker"),
        description="Directory holding one JSON document per storage key"
    )
    key_prefix: str = Field(
        default="sft_",
        max_length=20,
        description="Prefix applied to every storage key"
    )
    max_bytes_per_key: int = Field(
        default=5 * 1024 * 1024,
        ge=1024,
        description="Quota for a single stored document, in bytes"
    )
    save_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts for a save hitting a transient I/O error"
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

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Standard library level name for the package loggers"
    )
    log_json: bool = Field(
        default=True,
        description="Render log lines as JSON (console rendering otherwise)"
    )

    # First-run defaults for user settings
    default_base_currency: str = Field(
        default="USD",
        pattern=r"^[A-Z]{3}$",
        description="Base currency code used when no settings are stored"
    )
    default_currency_rates: str = Field(
        default="USD:1,EUR:0.92,GBP:0.79",
        description="Comma-separated CODE:RATE pairs relative to the base currency"
    )
    default_monthly_budget: Decimal = Field(
        default=Decimal("1000"),
        ge=0,
        description="Monthly budget used when no settings are stored"
    )
    default_categories: str = Field(
        default="Food,Books,Transport,Entertainment,Fees,Other",
        description="Comma-separated list of starting categories"
    )

    # Views
    recent_transactions_limit: int = Field(
        default=5,
        ge=1,
        le=100,
        description="How many transactions the recent-activity view shows"
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Only accept standard level names."""
        level = v.strip().upper()
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if level not in allowed:
            raise ValueError(f"Unsupported log level: {v}. Allowed: {sorted(allowed)}")
        return level

    @property
    def categories_list(self) -> list[str]:
        """Get default categories as a list, blanks and repeats dropped."""
        categories: list[str] = []
        for name in self.default_categories.split(","):
            name = name.strip()
            if name and name not in categories:
                categories.append(name)
        return categories

    @property
    def currency_rates(self) -> dict[str, Decimal]:
        """Get default currency rates as a mapping."""
        rates: dict[str, Decimal] = {}
        for pair in self.default_currency_rates.split(","):
            if not pair.strip():
                continue
            code, _, rate = pair.partition(":")
            rates[code.strip().upper()] = Decimal(rate.strip() or "1")
        return rates


class Config(BaseSettings):
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
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_config() -> Config:
    """
    Get application configuration (cached).

    Call get_config.cache_clear() to reload if needed.
    """
    return Config()


def validate_config() -> dict[str, object]:
    """
    Validate all configuration sections.

    Returns a dict of {section: is_valid} plus {section}_error entries.
    Useful for startup checks.
    """
    results: dict[str, object] = {}

    config = get_config()

    for section in ("storage", "app"):
        try:
            getattr(config, section)
            results[section] = True
        except ValueError as e:
            results[section] = False
            results[f"{section}_error"] = str(e)

    return results
