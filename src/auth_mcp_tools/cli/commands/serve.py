"""Serve command for auth-mcp-tools CLI.

Runs the MCP server on stdio so an agent runtime can call the token tools.
"""

from __future__ import annotations

__all__ = ["serve"]

from pathlib import Path

import click

from auth_mcp_tools.constants import APP_NAME
from auth_mcp_tools.server import create_server
from auth_mcp_tools.telemetry.system_logger import get_system_logger
from auth_mcp_tools.utils.cli import apply_logging_config, load_config_or_exit


@click.command()
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    help="Config file (default: platform config directory)",
)
@click.option(
    "--insecure",
    is_flag=True,
    help="Disable TLS certificate verification for auth server requests",
)
def serve(config_path: Path | None, insecure: bool) -> None:
    """Run the MCP server on stdio.

    stdout carries the MCP protocol; all logging goes to stderr.
    """
    config = load_config_or_exit(config_path, insecure=insecure)
    apply_logging_config(config)

    server = create_server(config)
    get_system_logger().info(
        {
            "event": "server_started",
            "message": f"{APP_NAME} MCP server running on stdio",
            "credentials_path": str(config.resolve_credentials_path()),
        }
    )
    server.run()
