"""Tests for settings resolution, themes and persistence."""

import json
import logging
import os
from unittest.mock import patch

import pytest

from valtstorage import config
from valtstorage.config import (
    DEVELOPMENT_API_URL,
    MOCK_API_URL,
    PRODUCTION_API_URL,
    THEMES,
    Settings,
    coerce_value,
)


class TestSettingsDefaults:
    """Built-in defaults."""

    def test_defaults(self):
        settings = Settings()
        assert settings.api_url == PRODUCTION_API_URL
        assert settings.environment == "production"
        assert settings.timeout == 60
        assert settings.interactive_mode is True
        assert settings.use_dedicated_window is True
        assert settings.window_title == "ValStorage CLI"
        assert settings.terminal_theme == "default"
        assert settings.terminal_colors == THEMES["default"]

    def test_default_colors_are_a_copy(self):
        settings = Settings()
        settings.terminal_colors["primary"] = "magenta"
        assert THEMES["default"]["primary"] == "cyan"

    def test_missing_file_gives_defaults(self, config_path):
        settings = Settings.load(path=config_path, environ={})
        assert settings.environment == "production"
        assert settings.api_url == PRODUCTION_API_URL

    def test_config_path_env_var(self, tmp_path):
        target = tmp_path / "other.json"
        with patch.dict(os.environ, {"VALTSTORAGE_CONFIG": str(target)}):
            assert Settings().path == target


class TestSettingsFileLayer:
    """The persisted JSON record merged over defaults."""

    def test_file_overrides_defaults(self, config_path, write_config):
        write_config({"environment": "development", "timeout": 5})
        settings = Settings.load(path=config_path, environ={})
        assert settings.environment == "development"
        assert settings.timeout == 5
        assert settings.window_title == "ValStorage CLI"

    def test_unknown_keys_ignored(self, config_path, write_config):
        write_config({"maxConcurrentUploads": 3, "window_title": "Mine"})
        settings = Settings.load(path=config_path, environ={})
        assert settings.window_title == "Mine"
        assert not hasattr(settings, "maxConcurrentUploads")

    def test_unparsable_file_falls_back_to_defaults(self, config_path, write_config, caplog):
        write_config("{not json")
        with caplog.at_level(logging.WARNING, logger="valtstorage"):
            settings = Settings.load(path=config_path, environ={})
        assert settings == Settings()
        assert "Error loading configuration" in caplog.text

    def test_non_object_file_ignored(self, config_path, write_config):
        write_config("[1, 2, 3]")
        settings = Settings.load(path=config_path, environ={})
        assert settings == Settings()

    def test_wrongly_typed_value_ignored(self, config_path, write_config):
        write_config({"interactive_mode": "nope", "timeout": 10})
        settings = Settings.load(path=config_path, environ={})
        assert settings.interactive_mode is True
        assert settings.timeout == 10

    def test_invalid_persisted_colors_fall_back_to_default(self, config_path, write_config, caplog):
        write_config({"terminal_theme": "mine", "terminal_colors": {"primary": "not-a-color"}})
        with caplog.at_level(logging.WARNING):
            settings = Settings.load(path=config_path, environ={})
        assert settings.terminal_theme == "mine"
        assert settings.terminal_colors == THEMES["default"]
        assert "terminal_colors" in caplog.text

    def test_valid_custom_colors_survive(self, config_path, write_config):
        palette = dict(THEMES["default"], primary="#ff8800")
        write_config({"terminal_theme": "mine", "terminal_colors": palette})
        assert Settings.load(path=config_path, environ={}).terminal_colors == palette

    @pytest.mark.parametrize("key", ["timeout", "progress_update_interval"])
    @pytest.mark.parametrize("value", [0, -1])
    def test_non_positive_numbers_ignored(self, config_path, write_config, key, value):
        write_config({key: value})
        settings = Settings.load(path=config_path, environ={})
        assert getattr(settings, key) == getattr(Settings(), key)

    def test_env_applies_without_file(self, config_path):
        settings = Settings.load(path=config_path, environ={"VALTSTORAGE_WINDOW_TITLE": "Vault"})
        assert settings.window_title == "Vault"


class TestSettingsEnvLayer:
    """Environment variables win over file and defaults."""

    def test_precedence_env_over_file_over_default(self, config_path, write_config):
        write_config({"environment": "development", "api_url": "https://file.example/api"})
        settings = Settings.load(
            path=config_path,
            environ={"VALTSTORAGE_ENV": "demo", "VALTSTORAGE_API_URL": "https://env.example/api"},
        )
        assert settings.environment == "demo"
        assert settings.api_url == MOCK_API_URL
        assert settings.api_base_url == MOCK_API_URL

    def test_api_url_override(self, config_path, write_config):
        write_config({"api_url": "https://file.example/api"})
        settings = Settings.load(path=config_path, environ={"VALTSTORAGE_API_URL": "https://env.example/api"})
        assert settings.api_url == "https://env.example/api"

    @pytest.mark.parametrize("raw,expected", [("true", True), ("false", False), ("TRUE", False), ("1", False)])
    def test_interactive_only_accepts_literals(self, config_path, write_config, raw, expected):
        write_config({"interactive_mode": False})
        settings = Settings.load(path=config_path, environ={"VALTSTORAGE_INTERACTIVE": raw})
        assert settings.interactive_mode is expected

    def test_load_reads_os_environ_by_default(self, config_path):
        with patch.dict(os.environ, {"VALTSTORAGE_ENV": "development"}):
            settings = Settings.load(path=config_path)
        assert settings.environment == "development"


class TestThemes:
    """Named palettes replace the whole color mapping."""

    def test_known_theme_replaces_everything(self):
        settings = Settings()
        settings.terminal_colors = {"primary": "magenta", "extra": "pink"}
        assert settings.apply_theme("green") is True
        assert settings.terminal_colors == THEMES["green"]
        assert "extra" not in settings.terminal_colors

    def test_unknown_theme_is_a_no_op(self):
        settings = Settings()
        settings.apply_theme("dark")
        before = dict(settings.terminal_colors)
        assert settings.apply_theme("neon") is False
        assert settings.terminal_colors == before

    def test_theme_from_file_is_applied_on_load(self, config_path, write_config):
        write_config({"terminal_theme": "blue"})
        settings = Settings.load(path=config_path, environ={})
        assert settings.terminal_colors == THEMES["blue"]
        assert settings.color("primary") == "blue"

    def test_set_theme_reapplies_palette(self):
        settings = Settings()
        settings.set("terminal_theme", "dark")
        assert settings.terminal_colors == THEMES["dark"]

    def test_unknown_role_is_white(self):
        assert Settings().color("sparkle") == "white"


class TestMutation:
    """get/set/save/reset/set_environment."""

    def test_save_creates_directory(self, tmp_path):
        path = tmp_path / "deep" / "nested" / "config.json"
        settings = Settings(path=path)
        settings.window_title = "Saved"
        assert settings.save() is True
        data = json.loads(path.read_text())
        assert data["window_title"] == "Saved"
        assert "path" not in data

    def test_save_failure_returns_false(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")
        settings = Settings(path=blocker / "config.json")
        assert settings.save() is False

    def test_set_persist_round_trip(self, config_path):
        settings = Settings(path=config_path)
        assert settings.set("timeout", 15, persist=True) is True
        assert Settings.load(path=config_path, environ={}).timeout == 15

    def test_set_unknown_key_raises(self):
        with pytest.raises(KeyError):
            Settings().set("colour", "red")

    def test_get_with_default(self):
        settings = Settings()
        assert settings.get("window_title") == "ValStorage CLI"
        assert settings.get("missing", "fallback") == "fallback"

    @pytest.mark.parametrize("env,url", [
        ("production", PRODUCTION_API_URL),
        ("development", DEVELOPMENT_API_URL),
        ("demo", MOCK_API_URL),
    ])
    def test_set_environment_updates_url(self, env, url):
        settings = Settings()
        assert settings.set_environment(env) is True
        assert settings.environment == env
        assert settings.api_url == url

    def test_set_environment_rejects_unknown(self):
        settings = Settings()
        assert settings.set_environment("staging") is False
        assert settings.environment == "production"

    def test_demo_forces_mock_base_url(self):
        settings = Settings()
        settings.environment = "demo"
        assert settings.is_demo is True
        assert settings.api_base_url == MOCK_API_URL

    def test_reset(self, config_path):
        settings = Settings(path=config_path)
        settings.set_environment("development")
        settings.set("terminal_theme", "green")
        assert settings.reset(persist=True) is True
        assert settings == Settings()
        assert json.loads(config_path.read_text())["environment"] == "production"


class TestCoerceValue:
    """Command-line strings converted to setting types."""

    def test_bool(self):
        assert coerce_value("interactive_mode", "no") is False
        assert coerce_value("use_dedicated_window", "Yes") is True

    def test_bad_bool(self):
        with pytest.raises(ValueError):
            coerce_value("interactive_mode", "maybe")

    def test_numbers(self):
        assert coerce_value("timeout", "30") == 30
        assert coerce_value("progress_update_interval", "0.25") == 0.25

    @pytest.mark.parametrize("key,raw", [
        ("progress_update_interval", "0"),
        ("progress_update_interval", "-0.5"),
        ("timeout", "0"),
    ])
    def test_non_positive_numbers_rejected(self, key, raw):
        with pytest.raises(ValueError, match="greater than 0"):
            coerce_value(key, raw)

    def test_string(self):
        assert coerce_value("window_title", "My Vault") == "My Vault"

    def test_colors_not_settable(self):
        with pytest.raises(ValueError):
            coerce_value("terminal_colors", "red")

    def test_unknown(self):
        with pytest.raises(KeyError):
            coerce_value("nope", "1")


class TestProcessSettings:
    """The process-wide instance."""

    def test_get_settings_is_cached(self):
        assert config.get_settings() is config.get_settings()

    def test_get_settings_reads_environment(self):
        with patch.dict(os.environ, {"VALTSTORAGE_ENV": "demo"}):
            config.set_settings(None)
            assert config.get_settings().is_demo
