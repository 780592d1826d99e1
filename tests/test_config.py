"""Tests for configuration models and load/save behavior."""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from auth_mcp_tools.config import (
    AppConfig,
    HttpConfig,
    LoggingConfig,
    PollingConfig,
    get_config_path,
    get_default_credentials_path,
)
from auth_mcp_tools.exceptions import ConfigurationError


class TestPollingConfig:
    """Tests for PollingConfig validation."""

    def test_defaults_give_one_minute(self) -> None:
        """Default polling is 6 attempts at 10 second intervals."""
        # Act
        polling = PollingConfig()

        # Assert
        assert polling.interval_seconds == 10
        assert polling.max_attempts == 6
        assert polling.request_timeout_seconds == 15
        assert polling.ceiling_seconds == 60

    @pytest.mark.parametrize(
        "overrides",
        [
            {"max_attempts": 0},
            {"max_attempts": 101},
            {"interval_seconds": -1},
            {"request_timeout_seconds": 0},
        ],
        ids=["zero_attempts", "too_many_attempts", "negative_interval", "zero_timeout"],
    )
    def test_out_of_range_values_rejected(self, overrides: dict) -> None:
        """Given values outside the allowed range, raises ValidationError."""
        with pytest.raises(ValidationError):
            PollingConfig(**overrides)


class TestAppConfig:
    """Tests for AppConfig defaults and paths."""

    def test_defaults(self) -> None:
        """Default config verifies TLS and does not fall back on refresh failure."""
        # Act
        config = AppConfig()

        # Assert
        assert config.http == HttpConfig(verify_tls=True)
        assert config.refresh_fallback is False
        assert config.logging == LoggingConfig()
        assert config.resolve_credentials_path() == get_default_credentials_path()

    def test_default_paths_share_app_dir(self) -> None:
        """Config and credentials live in the same per-user directory."""
        assert get_config_path().parent == get_default_credentials_path().parent
        assert get_default_credentials_path().name == "credentials.json"

    def test_credentials_path_override_expands_user(self) -> None:
        """Configured credentials path expands ~."""
        config = AppConfig(credentials_path="~/creds.json")
        assert config.resolve_credentials_path() == Path.home() / "creds.json"

    def test_unknown_fields_ignored(self) -> None:
        """Unknown keys are accepted for forward compatibility."""
        config = AppConfig.model_validate({"future_option": 1})
        assert not hasattr(config, "future_option")

    def test_invalid_log_level_rejected(self) -> None:
        """Given an unsupported log level, raises ValidationError."""
        with pytest.raises(ValidationError):
            AppConfig.model_validate({"logging": {"log_level": "TRACE"}})


class TestConfigLoadSave:
    """Tests for reading and writing config files."""

    def test_save_then_load_roundtrip(self, tmp_path: Path) -> None:
        """Saved config reads back unchanged."""
        # Arrange
        path = tmp_path / "config.json"
        config = AppConfig(
            credentials_path="/tmp/creds.json",
            polling=PollingConfig(interval_seconds=2, max_attempts=30),
            refresh_fallback=True,
        )

        # Act
        config.save_to_file(path)
        loaded = AppConfig.load(path)

        # Assert
        assert loaded == config

    def test_save_writes_indented_json(self, tmp_path: Path) -> None:
        """Config file is human-editable JSON."""
        # Arrange
        path = tmp_path / "nested" / "config.json"

        # Act
        AppConfig().save_to_file(path)

        # Assert
        data = json.loads(path.read_text())
        assert data["polling"]["max_attempts"] == 6
        assert data["http"]["verify_tls"] is True

    def test_load_missing_raises_file_not_found(self, tmp_path: Path) -> None:
        """Given an explicit path that does not exist, raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError, match="config init"):
            AppConfig.load(tmp_path / "missing.json")

    def test_load_or_default_missing_returns_defaults(self, tmp_path: Path) -> None:
        """Given no config file, defaults apply."""
        assert AppConfig.load_or_default(tmp_path / "missing.json") == AppConfig()

    def test_load_invalid_json_raises_configuration_error(self, tmp_path: Path) -> None:
        """Given malformed JSON, raises ConfigurationError."""
        # Arrange
        path = tmp_path / "config.json"
        path.write_text("{not json")

        # Act & Assert
        with pytest.raises(ConfigurationError, match="Invalid JSON"):
            AppConfig.load(path)

    def test_load_invalid_values_lists_fields(self, tmp_path: Path) -> None:
        """Given invalid values, the error names the offending field."""
        # Arrange
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"polling": {"max_attempts": 0}}))

        # Act & Assert
        with pytest.raises(ConfigurationError, match="polling.max_attempts"):
            AppConfig.load(path)
