"""
Tests for configuration and logging setup.
"""

import logging

import pytest
from decimal import Decimal
from pathlib import Path

from pydantic import ValidationError

from finance_tracker.audit import AuditLogger, configure_logging
from finance_tracker.config import (
    AppSettings,
    StorageSettings,
    get_config,
    validate_config,
)
from finance_tracker.models import AuditEventBuilder


class TestAppSettings:
    """Tests for application settings."""

    def test_defaults(self):
        """Test the first-run defaults."""
        settings = AppSettings()

        assert settings.log_level == "INFO"
        assert settings.categories_list == [
            "Food", "Books", "Transport", "Entertainment", "Fees", "Other",
        ]
        assert settings.currency_rates == {
            "USD": Decimal("1"), "EUR": Decimal("0.92"), "GBP": Decimal("0.79"),
        }
        assert settings.default_monthly_budget == Decimal("1000")
        assert settings.recent_transactions_limit == 5

    def test_categories_list_cleans_input(self):
        """Test that blanks and repeats are dropped."""
        settings = AppSettings(default_categories="Food, Food ,,Travel")
        assert settings.categories_list == ["Food", "Travel"]

    def test_currency_rates_parsing(self):
        """Test CODE:RATE parsing."""
        settings = AppSettings(default_currency_rates="usd:1, jpy:150.5,")
        assert settings.currency_rates == {"USD": Decimal("1"), "JPY": Decimal("150.5")}

    def test_log_level_normalized(self):
        """Test that level names are case-insensitive."""
        assert AppSettings(log_level="debug").log_level == "DEBUG"

    def test_log_level_rejected(self):
        """Test that unknown level names fail."""
        with pytest.raises(ValidationError):
            AppSettings(log_level="verbose")

    def test_env_override(self, monkeypatch):
        """Test reading from the environment."""
        monkeypatch.setenv("DEFAULT_BASE_CURRENCY", "EUR")
        assert AppSettings().default_base_currency == "EUR"

    def test_env_file(self, tmp_path):
        """Test reading from a .env file in the working directory."""
        (tmp_path / ".env").write_text("DEFAULT_MONTHLY_BUDGET=321\n", encoding="utf-8")
        assert AppSettings().default_monthly_budget == Decimal("321")


class TestStorageSettings:
    """Tests for storage settings."""

    def test_defaults(self):
        """Test the default data location and quota."""
        settings = StorageSettings()
        assert settings.data_dir == Path(".finance_tracker")
        assert settings.key_prefix == "sft_"
        assert settings.max_bytes_per_key == 5 * 1024 * 1024

    def test_env_prefix(self, monkeypatch):
        """Test the FINANCE_TRACKER_STORAGE_ prefix."""
        monkeypatch.setenv("FINANCE_TRACKER_STORAGE_SAVE_ATTEMPTS", "5")
        assert StorageSettings().save_attempts == 5

    def test_bounds(self):
        """Test that silly values are rejected."""
        with pytest.raises(ValidationError):
            StorageSettings(save_attempts=0)
        with pytest.raises(ValidationError):
            StorageSettings(max_bytes_per_key=10)


class TestConfig:
    """Tests for the cached root config."""

    def test_get_config_cached(self):
        """Test that repeated calls share one instance."""
        assert get_config() is get_config()

    def test_validate_config_ok(self):
        """Test a clean environment."""
        assert validate_config() == {"storage": True, "app": True}

    def test_validate_config_reports_errors(self, monkeypatch):
        """Test that a bad section is reported instead of raised."""
        monkeypatch.setenv("LOG_LEVEL", "loud")

        results = validate_config()

        assert results["storage"] is True
        assert results["app"] is False
        assert "log level" in results["app_error"].lower()


class TestLogging:
    """Tests for the audit logger and logging setup."""

    def test_configure_logging(self):
        """Test that the package logger takes the configured level."""
        configure_logging(level="debug", json=False)
        try:
            assert logging.getLogger("finance_tracker").level == logging.DEBUG
        finally:
            configure_logging(level="WARNING", json=True)

    def test_audit_log_writes(self):
        """Test that a normal event is written."""
        assert AuditLogger().log(AuditEventBuilder.category_added("Books")) is True

    def test_audit_log_error_with_traceback(self):
        """Test error events carrying the active exception."""
        logger = AuditLogger()
        try:
            raise RuntimeError("boom")
        except RuntimeError as e:
            event = AuditEventBuilder.listener_failed("render", str(e))
            assert logger.log(event, exc_info=True) is True
