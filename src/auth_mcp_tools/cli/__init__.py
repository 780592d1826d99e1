"""Command-line interface for auth-mcp-tools.

Provides commands for running the MCP server, resolving tokens from the
terminal, and managing configuration.
"""

from .main import cli, main

__all__ = ["cli", "main"]
