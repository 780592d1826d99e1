"""CLI utilities for auth-mcp-tools."""

from auth_mcp_tools.utils.cli.helpers import apply_logging_config, load_config_or_exit

__all__ = ["apply_logging_config", "load_config_or_exit"]
