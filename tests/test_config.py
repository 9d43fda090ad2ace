"""
Tests for ledger settings
"""

import pytest

from expense_tracker.config import LedgerSettings, get_settings, validate_all_settings


class TestLedgerSettings:
    """Tests for LedgerSettings."""

    def test_defaults(self, settings):
        """Test the documented defaults."""
        assert settings.page_size == 10
        assert settings.max_amount == 1_000_000
        assert settings.min_description_length == 3
        assert settings.max_description_length == 100
        assert settings.future_date_limit_years == 1
        assert settings.strict_categories is True
        assert settings.trend_months == 12
        assert settings.validate_imports is False
        assert settings.audit_history_limit == 10_000

    def test_environment_overrides(self, monkeypatch):
        """Test that LEDGER_* variables are read."""
        monkeypatch.setenv("LEDGER_PAGE_SIZE", "25")
        monkeypatch.setenv("LEDGER_VALIDATE_IMPORTS", "true")
        settings = LedgerSettings(_env_file=None)
        assert settings.page_size == 25
        assert settings.validate_imports is True

    def test_log_level_is_normalised(self):
        assert LedgerSettings(_env_file=None, log_level="debug").log_level == "DEBUG"

    def test_rejects_unknown_log_level(self):
        with pytest.raises(ValueError):
            LedgerSettings(_env_file=None, log_level="LOUD")

    def test_rejects_inverted_description_bounds(self):
        with pytest.raises(ValueError):
            LedgerSettings(_env_file=None, min_description_length=10, max_description_length=5)

    def test_rejects_zero_page_size(self):
        with pytest.raises(ValueError):
            LedgerSettings(_env_file=None, page_size=0)


class TestSettingsAccess:
    """Tests for the cached accessor and startup check."""

    def test_get_settings_is_cached(self):
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()

    def test_validate_all_settings(self, monkeypatch):
        get_settings.cache_clear()
        try:
            assert validate_all_settings() == {"ledger": True}

            get_settings.cache_clear()
            monkeypatch.setenv("LEDGER_PAGE_SIZE", "-1")
            results = validate_all_settings()
            assert results["ledger"] is False
            assert "ledger_error" in results
        finally:
            get_settings.cache_clear()
