"""Tests for settings loading."""

import json

import pytest

from scriptcontinuity.config import settings as settings_module
from scriptcontinuity.config.settings import (
    ContinuitySettings,
    clear_settings_cache,
    get_settings,
    set_settings,
)
from scriptcontinuity.exceptions import ConfigurationError


class TestDefaults:
    """Test field defaults and validators."""

    def test_defaults(self):
        """Test defaults match the documented values."""
        settings = ContinuitySettings()
        assert settings.chunk_size == 60000
        assert settings.chunk_lookback == 5000
        assert settings.chunk_lookahead == 1000
        assert settings.max_script_length == 200000
        assert settings.retry_attempts == 3
        assert settings.llm_configured is False

    def test_log_level_case_insensitive(self):
        """Test log level is upper-cased."""
        assert ContinuitySettings(log_level="debug").log_level == "DEBUG"

    def test_placeholder_model_is_unset(self):
        """Test "default" means the endpoint picks the model."""
        assert ContinuitySettings(llm_model="default").llm_model is None

    def test_env_prefix(self, monkeypatch):
        """Test environment variables use the SCRIPTCONTINUITY_ prefix."""
        monkeypatch.setenv("SCRIPTCONTINUITY_CHUNK_SIZE", "2000")
        monkeypatch.setenv("SCRIPTCONTINUITY_LLM_ENDPOINT", "http://llm.test/v1")
        monkeypatch.setenv("SCRIPTCONTINUITY_LLM_API_KEY", "k")
        settings = ContinuitySettings()
        assert settings.chunk_size == 2000
        assert settings.llm_configured is True


class TestFromFile:
    """Test config file formats."""

    def test_yaml(self, tmp_path):
        """Test YAML config."""
        path = tmp_path / "config.yaml"
        path.write_text("chunk_size: 5000\nllm_model: small\n")
        settings = ContinuitySettings.from_file(path)
        assert settings.chunk_size == 5000
        assert settings.llm_model == "small"

    def test_toml(self, tmp_path):
        """Test TOML config."""
        path = tmp_path / "config.toml"
        path.write_text('log_level = "info"\nretry_attempts = 1\n')
        settings = ContinuitySettings.from_file(path)
        assert settings.log_level == "INFO"
        assert settings.retry_attempts == 1

    def test_json(self, tmp_path):
        """Test JSON config."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"inter_call_delay": 0.0}))
        assert ContinuitySettings.from_file(path).inter_call_delay == 0.0

    def test_empty_yaml(self, tmp_path):
        """Test an empty YAML file gives defaults."""
        path = tmp_path / "config.yml"
        path.write_text("")
        assert ContinuitySettings.from_file(path).chunk_size == 60000

    def test_unsupported_format(self, tmp_path):
        """Test unknown suffixes are rejected with a hint."""
        path = tmp_path / "config.ini"
        path.write_text("[x]\n")
        with pytest.raises(ConfigurationError) as exc_info:
            ContinuitySettings.from_file(path)
        assert exc_info.value.details["detected_format"] == ".ini"

    def test_missing_file(self, tmp_path):
        """Test a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            ContinuitySettings.from_file(tmp_path / "nope.yaml")

    def test_wrong_key(self, tmp_path):
        """Test common key mistakes are caught."""
        path = tmp_path / "config.yaml"
        path.write_text("api_key: secret\n")  # pragma: allowlist secret
        with pytest.raises(ConfigurationError, match="llm_api_key"):
            ContinuitySettings.from_file(path)


class TestFromMultipleSources:
    """Test precedence."""

    def test_later_files_override(self, tmp_path):
        """Test config files are applied in order."""
        first = tmp_path / "a.yaml"
        first.write_text("chunk_size: 5000\nretry_attempts: 2\n")
        second = tmp_path / "b.json"
        second.write_text(json.dumps({"chunk_size": 7000}))
        settings = ContinuitySettings.from_multiple_sources(
            config_files=[first, second]
        )
        assert settings.chunk_size == 7000
        assert settings.retry_attempts == 2

    def test_cli_args_win(self, tmp_path):
        """Test CLI values override files and None values are ignored."""
        path = tmp_path / "a.yaml"
        path.write_text("chunk_size: 5000\n")
        settings = ContinuitySettings.from_multiple_sources(
            config_files=[path],
            cli_args={"chunk_size": 9000, "llm_model": None},
        )
        assert settings.chunk_size == 9000
        assert settings.llm_model is None

    def test_missing_file_skipped(self, tmp_path):
        """Test absent config files fall back to defaults."""
        settings = ContinuitySettings.from_multiple_sources(
            config_files=[tmp_path / "missing.yaml"]
        )
        assert settings.chunk_size == 60000


class TestGlobalSettings:
    """Test the module-level instance."""

    def test_set_and_clear(self, monkeypatch, tmp_path):
        """Test set_settings wins until the cache is cleared."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(settings_module, "_get_config_paths", list)
        custom = ContinuitySettings(chunk_size=4000)
        set_settings(custom)
        assert get_settings() is custom
        clear_settings_cache()
        assert get_settings().chunk_size == 60000
