"""
Tests for configuration validation and defaults.

Tests cover:
- ServiceConfig.from_settings() - all sections
- Defaults class values
- ConfigValidationError on invalid values
- String log level coercion ("DEBUG" -> 4)
- load_settings() file handling and environment overrides
"""

import pytest

from voicegen.core.config import (
    ConfigValidationError,
    Defaults,
    ServiceConfig,
    Settings,
    load_settings,
)


class TestDefaults:
    """Tests for Defaults class values."""

    def test_provider_defaults(self):
        assert Defaults.PROVIDER_BASE_URL == "https://api.elevenlabs.io"
        assert Defaults.PROVIDER_CONTENT_TYPE == "audio/mpeg"

    def test_limits_and_history_defaults(self):
        assert Defaults.LIMITS_MAX_SCRIPT_CHARS == 10000
        assert Defaults.HISTORY_DISPLAY_LIMIT == 10
        assert Defaults.HISTORY_MAX_RECORDS == 0

    def test_empty_settings_use_defaults(self):
        """Missing sections fall back to Defaults."""
        config = Settings(raw={}).get_service_config()
        assert config.provider.base_url == Defaults.PROVIDER_BASE_URL
        assert config.limits.max_script_chars == 10000
        assert config.history.enabled is True
        assert config.server.cors_origins == ["*"]
        assert config.logging.level == 2


class TestServiceConfigFromSettings:
    """Tests for ServiceConfig.from_settings()."""

    def test_provider_section(self):
        settings = Settings(raw={"provider": {"base_url": "http://localhost:9000/", "timeout_s": 5}})
        config = ServiceConfig.from_settings(settings)
        assert config.provider.base_url == "http://localhost:9000"
        assert config.provider.timeout_s == 5.0

    def test_bad_provider_url(self):
        with pytest.raises(ConfigValidationError, match="base_url"):
            Settings(raw={"provider": {"base_url": "ftp://nope"}}).get_service_config()

    @pytest.mark.parametrize(
        "raw,name",
        [
            ({"provider": {"timeout_s": 0}}, "provider.timeout_s"),
            ({"limits": {"max_script_chars": -1}}, "limits.max_script_chars"),
            ({"history": {"display_limit": 0}}, "history.display_limit"),
            ({"history": {"max_records": -5}}, "history.max_records"),
            ({"logging": {"script_preview_chars": -1}}, "logging.script_preview_chars"),
            ({"logging": {"level": 7}}, "logging.level"),
        ],
    )
    def test_invalid_values(self, raw, name):
        with pytest.raises(ConfigValidationError, match=name):
            Settings(raw=raw).get_service_config()

    @pytest.mark.parametrize("raw,expected", [("DEBUG", 4), ("info", 2), ("VERBOSE", 3), ("3", 3), ("bogus", 2)])
    def test_string_log_levels(self, raw, expected):
        config = Settings(raw={"logging": {"level": raw}}).get_service_config()
        assert config.logging.level == expected

    def test_cors_origins_from_string(self):
        config = Settings(raw={"server": {"cors_origins": "http://a.test, http://b.test"}}).get_service_config()
        assert config.server.cors_origins == ["http://a.test", "http://b.test"]

    def test_history_section(self):
        config = Settings(raw={"history": {"enabled": False, "display_limit": 3, "max_records": 100}}).get_service_config()
        assert config.history.enabled is False
        assert config.history.display_limit == 3
        assert config.history.max_records == 100


class TestLoadSettings:
    """Tests for load_settings()."""

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(str(tmp_path / "absent.yaml"))

    def test_missing_file_ok(self, tmp_path):
        settings = load_settings(str(tmp_path / "absent.yaml"), missing_ok=True)
        assert settings.get_service_config().provider.base_url == Defaults.PROVIDER_BASE_URL

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("provider:\n  base_url: https://proxy.test\nhistory:\n  display_limit: 5\n", encoding="utf-8")
        settings = load_settings(str(path))
        assert settings.get_service_config().provider.base_url == "https://proxy.test"
        assert settings.get_service_config().history.display_limit == 5

    def test_empty_yaml_file(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("", encoding="utf-8")
        assert load_settings(str(path)).raw == {}

    def test_settings_env_path(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.yaml"
        path.write_text("limits:\n  max_script_chars: 500\n", encoding="utf-8")
        monkeypatch.setenv("VOICEGEN_SETTINGS", str(path))
        assert load_settings().get_service_config().limits.max_script_chars == 500

    def test_env_overrides(self, tmp_path, monkeypatch):
        path = tmp_path / "settings.yaml"
        path.write_text("provider:\n  base_url: https://file.test\n", encoding="utf-8")
        monkeypatch.setenv("VOICEGEN_PROVIDER_URL", "https://env.test")
        monkeypatch.setenv("VOICEGEN_PROVIDER_TIMEOUT", "12.5")
        monkeypatch.setenv("VOICEGEN_HISTORY_ENABLED", "0")

        settings = load_settings(str(path))
        config = settings.get_service_config()
        assert config.provider.base_url == "https://env.test"
        assert config.provider.timeout_s == 12.5
        assert config.history.enabled is False

    def test_bad_timeout_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("VOICEGEN_PROVIDER_TIMEOUT", "soon")
        with pytest.raises(ConfigValidationError):
            load_settings(str(tmp_path / "absent.yaml"), missing_ok=True)

    def test_shipped_settings_file_is_valid(self):
        """config/settings.yaml loads and validates."""
        from pathlib import Path

        path = Path(__file__).parent.parent / "config" / "settings.yaml"
        config = load_settings(str(path)).get_service_config()
        assert config.history.display_limit == 10
        assert config.limits.max_script_chars == 10000
