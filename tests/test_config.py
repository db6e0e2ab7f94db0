"""
Tests for the config module.

Tests cover:
- Loading complete settings
- Per-group diagnostics for missing variables
- Validation of log level and column layout
"""

import pytest

from grade_notifier.config import ConfigurationError, Settings, load_settings


class TestLoadSettings:
    """Tests for building settings."""

    def test_complete_settings(self, settings_kwargs):
        """Test that explicit values are used."""
        settings = load_settings(env_file=None, **settings_kwargs)

        assert isinstance(settings, Settings)
        assert settings.school_id == "21900001"
        assert settings.twilio_to == "+821012345678"
        assert settings.identity_column == 1
        assert settings.status_column == 2

    def test_reads_environment(self, monkeypatch):
        """Test that SCHOOL_* and TWILIO_* variables are read from the environment."""
        monkeypatch.setenv("SCHOOL_ID", "21900002")
        monkeypatch.setenv("SCHOOL_PW", "pw")
        monkeypatch.setenv("TWILIO_SID", "AC1")
        monkeypatch.setenv("TWILIO_AUTH", "tok")
        monkeypatch.setenv("TWILIO_FROM", "+1")
        monkeypatch.setenv("TWILIO_TO", "+2")

        settings = load_settings(env_file=None)

        assert settings.school_id == "21900002"
        assert settings.twilio_sid == "AC1"

    def test_portal_defaults(self, settings_kwargs):
        """Test defaults for the optional values."""
        for key in ("portal_login_url", "portal_login_fail_url", "portal_grades_url",
                    "identity_column", "status_column", "navigation_timeout_ms",
                    "page_timeout_ms"):
            settings_kwargs.pop(key)

        settings = load_settings(env_file=None, **settings_kwargs)

        assert settings.portal_login_url.endswith("/login/login.php")
        assert settings.portal_login_fail_url.endswith("/login/_login.php")
        assert settings.grade_table_selector == "#att_list"
        assert settings.identity_column == 2
        assert settings.status_column == 7
        assert settings.navigation_timeout_ms == 8000
        assert settings.page_timeout_ms == 8000
        assert settings.grade_row_selector == "tr"
        assert settings.grade_cell_selector == "td"


class TestMissingConfiguration:
    """Tests for the missing-variable diagnostics."""

    def test_missing_credentials(self, settings_kwargs):
        """Test that missing portal credentials are named as such."""
        del settings_kwargs["school_pw"]

        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(env_file=None, **settings_kwargs)

        message = str(exc_info.value)
        assert "SCHOOL_ID / SCHOOL_PW" in message
        assert "Twilio" not in message

    def test_missing_notifier(self, settings_kwargs):
        """Test that missing Twilio settings are named as such."""
        del settings_kwargs["twilio_to"]

        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(env_file=None, **settings_kwargs)

        message = str(exc_info.value)
        assert "Twilio" in message
        assert "SCHOOL_ID" not in message

    def test_missing_both_groups(self):
        """Test that both groups are reported when nothing is set."""
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(env_file=None)

        message = str(exc_info.value)
        assert "SCHOOL_ID / SCHOOL_PW" in message
        assert "Twilio" in message


class TestValidation:
    """Tests for value validation."""

    def test_log_level_normalised(self, settings_kwargs):
        settings = load_settings(env_file=None, log_level="debug", **settings_kwargs)

        assert settings.log_level == "DEBUG"

    def test_invalid_log_level(self, settings_kwargs):
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(env_file=None, log_level="LOUD", **settings_kwargs)

        assert "log_level" in str(exc_info.value)

    def test_same_identity_and_status_column(self, settings_kwargs):
        settings_kwargs["status_column"] = settings_kwargs["identity_column"]

        with pytest.raises(ConfigurationError):
            load_settings(env_file=None, **settings_kwargs)

    def test_negative_column(self, settings_kwargs):
        settings_kwargs["identity_column"] = -1

        with pytest.raises(ConfigurationError):
            load_settings(env_file=None, **settings_kwargs)

    def test_zero_page_timeout(self, settings_kwargs):
        settings_kwargs["page_timeout_ms"] = 0

        with pytest.raises(ConfigurationError):
            load_settings(env_file=None, **settings_kwargs)
