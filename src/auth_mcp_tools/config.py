"""Application configuration for auth-mcp-tools.

Defines configuration models for token polling, HTTP behavior and logging.
Configuration is optional: when no config file exists, defaults apply.
Config is stored at the OS-appropriate location next to credentials.json.

Example usage:
    # Load from config file (defaults if missing)
    config = AppConfig.load_or_default(get_config_path())

    # Save new configuration
    config.save_to_file(config_path)
"""

from __future__ import annotations

__all__ = [
    "AppConfig",
    "HttpConfig",
    "LoggingConfig",
    "PollingConfig",
    "get_config_path",
    "get_default_credentials_path",
]

import json
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

from auth_mcp_tools.constants import (
    CONFIG_FILENAME,
    CREDENTIALS_FILENAME,
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_POLL_MAX_ATTEMPTS,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    MAX_POLL_ATTEMPTS,
    MAX_POLL_INTERVAL_SECONDS,
    MAX_REQUEST_TIMEOUT_SECONDS,
)
from auth_mcp_tools.exceptions import ConfigurationError
from auth_mcp_tools.utils.file_helpers import (
    ensure_secure_directory,
    get_app_dir,
    load_validated_json,
    set_secure_permissions,
)


def get_config_path() -> Path:
    """Default location of config.json."""
    return get_app_dir() / CONFIG_FILENAME


def get_default_credentials_path() -> Path:
    """Default location of credentials.json."""
    return get_app_dir() / CREDENTIALS_FILENAME


# =============================================================================
# Token Flow Configuration
# =============================================================================


class PollingConfig(BaseModel):
    """Polling behavior for the interactive authorization flow.

    Defaults give the user one minute to finish logging in: 6 attempts,
    10 seconds apart, each request bounded by a 15 second timeout.

    Attributes:
        interval_seconds: Wait before each poll attempt.
        max_attempts: Number of poll attempts before giving up.
        request_timeout_seconds: Timeout for every HTTP request to the auth server.
    """

    interval_seconds: float = Field(
        default=DEFAULT_POLL_INTERVAL_SECONDS,
        ge=0,
        le=MAX_POLL_INTERVAL_SECONDS,
    )
    max_attempts: int = Field(
        default=DEFAULT_POLL_MAX_ATTEMPTS,
        ge=1,
        le=MAX_POLL_ATTEMPTS,
    )
    request_timeout_seconds: float = Field(
        default=DEFAULT_REQUEST_TIMEOUT_SECONDS,
        gt=0,
        le=MAX_REQUEST_TIMEOUT_SECONDS,
    )

    @property
    def ceiling_seconds(self) -> float:
        """Nominal total wait across all attempts."""
        return self.interval_seconds * self.max_attempts


class HttpConfig(BaseModel):
    """HTTP client settings for calls to the auth server.

    Attributes:
        verify_tls: Verify server TLS certificates. Disable only for auth
            servers with self-signed certificates.
    """

    verify_tls: bool = True


# =============================================================================
# Logging Configuration
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging configuration settings.

    Attributes:
        log_level: Minimum level for stderr output.
        log_file: Optional JSONL file receiving WARNING and above.
    """

    log_level: Literal["DEBUG", "INFO", "WARNING"] = "INFO"
    log_file: str | None = None


class AppConfig(BaseModel):
    """Main application configuration for auth-mcp-tools.

    Attributes:
        credentials_path: Override for the credentials.json location.
        polling: Interactive flow polling behavior.
        http: HTTP client settings.
        refresh_fallback: When a forced refresh fails, run the interactive
            flow instead of reporting the refresh error.
        logging: Logging configuration.
    """

    credentials_path: str | None = None
    polling: PollingConfig = Field(default_factory=PollingConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
    refresh_fallback: bool = False
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"extra": "ignore"}  # Ignore unknown fields for forward compat

    def resolve_credentials_path(self) -> Path:
        """Credentials file location (configured or platform default)."""
        if self.credentials_path:
            return Path(self.credentials_path).expanduser()
        return get_default_credentials_path()

    def save_to_file(self, config_path: Path) -> None:
        """Save configuration to JSON file.

        Creates parent directories if they don't exist.
        Sets secure permissions (0o600) on the file.

        Args:
            config_path: Path where the config JSON file should be saved.
        """
        ensure_secure_directory(config_path.parent)

        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(self.model_dump(), f, indent=2)
            f.write("\n")

        set_secure_permissions(config_path)

    @classmethod
    def load(cls, config_path: Path) -> "AppConfig":
        """Load configuration from JSON file.

        Args:
            config_path: Path to the config JSON file.

        Returns:
            AppConfig instance with loaded configuration.

        Raises:
            FileNotFoundError: If config file doesn't exist.
            ConfigurationError: If config file is invalid.
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found at {config_path}.\n"
                "Run 'auth-mcp-tools config init' to create one."
            )
        try:
            return load_validated_json(
                config_path,
                cls,
                file_type="config",
                recovery_hint="Fix the file or run 'auth-mcp-tools config init --force'.",
            )
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

    @classmethod
    def load_or_default(cls, config_path: Path | None = None) -> "AppConfig":
        """Load configuration, falling back to defaults when the file is absent.

        Args:
            config_path: Path to config.json (platform default if None).

        Raises:
            ConfigurationError: If the file exists but is invalid.
        """
        path = config_path or get_config_path()
        if not path.exists():
            return cls()
        return cls.load(path)
