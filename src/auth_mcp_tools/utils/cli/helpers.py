"""Shared CLI utility functions.

Provides common helpers for CLI commands to avoid duplication.
"""

from __future__ import annotations

__all__ = [
    "apply_logging_config",
    "load_config_or_exit",
]

from pathlib import Path

import click

from auth_mcp_tools.config import AppConfig
from auth_mcp_tools.exceptions import ConfigurationError
from auth_mcp_tools.telemetry.system_logger import configure_system_logger_file, set_system_log_level


def load_config_or_exit(config_path: Path | None, insecure: bool = False) -> AppConfig:
    """Load configuration or exit with a readable error.

    Args:
        config_path: Explicit config file (--config), platform default if None.
        insecure: Disable TLS verification regardless of the file (--insecure).

    Returns:
        Loaded (or default) AppConfig.

    Raises:
        click.ClickException: If the config file is invalid or an explicit path is missing.
    """
    try:
        if config_path is not None:
            config = AppConfig.load(config_path)
        else:
            config = AppConfig.load_or_default()
    except (ConfigurationError, FileNotFoundError) as e:
        raise click.ClickException(str(e)) from e

    if insecure:
        config = config.model_copy(update={"http": config.http.model_copy(update={"verify_tls": False})})
    return config


def apply_logging_config(config: AppConfig) -> None:
    """Apply level and optional log file from config to the system logger."""
    set_system_log_level(config.logging.log_level)
    if config.logging.log_file:
        configure_system_logger_file(Path(config.logging.log_file).expanduser())
