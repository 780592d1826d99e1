"""Logging utilities (formatters)."""

from auth_mcp_tools.utils.logging.iso_formatter import ISO8601Formatter

__all__ = ["ISO8601Formatter"]
