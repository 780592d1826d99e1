"""Main CLI entry point for auth-mcp-tools.

Defines the CLI group and registers all subcommands.

Commands:
    config       - Configuration management (path, show, init)
    credentials  - Show the credential store
    serve        - Run the MCP server on stdio
    token        - Get an access token for an auth service URL

Subcommand help:
    auth-mcp-tools COMMAND -h   Show help for a specific command
"""

from __future__ import annotations

__all__ = ["cli", "main"]

import sys

import click

from auth_mcp_tools import __version__

from .commands.config import config
from .commands.credentials import credentials
from .commands.serve import serve
from .commands.token import token


class ReorderedGroup(click.Group):
    """Custom group that shows commands before custom help text."""

    def format_epilog(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        """Add extra help after commands section."""
        formatter.write(
            """
Quick Start:
  auth-mcp-tools serve                          Run as an MCP server (stdio)
  auth-mcp-tools token https://auth.example.com/svc
                                                Get a token from the terminal
  auth-mcp-tools credentials                    Show stored credentials

MCP client config:
  {"command": "auth-mcp-tools", "args": ["serve"]}
"""
        )


@click.group(
    cls=ReorderedGroup,
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option("--version", "-v", is_flag=True, help="Show version")
@click.pass_context
def cli(ctx: click.Context, version: bool) -> None:
    """auth-mcp-tools: OAuth token tools for MCP agents."""
    if version:
        click.echo(f"auth-mcp-tools {__version__}")
        sys.exit(0)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# Register commands
cli.add_command(config)
cli.add_command(credentials)
cli.add_command(serve)
cli.add_command(token)


def main() -> None:
    """CLI entry point."""
    cli()
