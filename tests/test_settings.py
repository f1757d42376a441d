"""
Tests for environment-driven configuration.
"""

import pytest
from pydantic import ValidationError

from balance_tracker.config import (
    AppSettings,
    SupabaseSettings,
    get_settings,
    validate_all_settings,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in (
        "SUPABASE_URL", "SUPABASE_ANON_KEY", "STORAGE_BACKEND",
        "DISPLAY_TIMEZONE", "CHART_WINDOW_DAYS", "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestAppSettings:

    def test_defaults(self):
        settings = AppSettings()
        assert settings.storage_backend == "supabase"
        assert settings.display_timezone == "Asia/Jakarta"
        assert settings.chart_window_days == 14
        assert settings.log_level == "INFO"

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("DISPLAY_TIMEZONE", "UTC")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        settings = AppSettings()
        assert settings.tzinfo.key == "UTC"
        assert settings.log_level == "DEBUG"

    def test_unknown_timezone_rejected(self, monkeypatch):
        monkeypatch.setenv("DISPLAY_TIMEZONE", "Mars/Olympus")
        with pytest.raises(ValidationError):
            AppSettings()

    def test_window_bounds(self, monkeypatch):
        monkeypatch.setenv("CHART_WINDOW_DAYS", "0")
        with pytest.raises(ValidationError):
            AppSettings()


class TestSupabaseSettings:

    def test_reads_prefixed_env(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", "https://abc.supabase.co")
        monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")
        settings = SupabaseSettings()
        assert settings.url == "https://abc.supabase.co"
        assert settings.ledger_table == "account_balances"

    def test_missing_values_rejected(self):
        with pytest.raises(ValidationError):
            SupabaseSettings()

    def test_url_scheme_required(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", "abc.supabase.co")
        monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")
        with pytest.raises(ValidationError):
            SupabaseSettings()

    def test_env_file_is_read(self, tmp_path):
        (tmp_path / ".env").write_text(
            "SUPABASE_URL=https://file.supabase.co\nSUPABASE_ANON_KEY=from-file\n"
        )
        assert SupabaseSettings().anon_key == "from-file"


class TestValidateAll:

    def test_reports_missing_backend(self):
        status = validate_all_settings()
        assert status["app"] is True
        assert status["supabase"] is False
        assert "supabase_error" in status

    def test_all_valid(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", "https://abc.supabase.co")
        monkeypatch.setenv("SUPABASE_ANON_KEY", "anon")
        assert validate_all_settings() == {"supabase": True, "app": True}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
