"""Config command group for auth-mcp-tools CLI.

Provides configuration management subcommands.
"""

from __future__ import annotations

__all__ = ["config"]

import json
from pathlib import Path

import click

from auth_mcp_tools.config import AppConfig, get_config_path
from auth_mcp_tools.utils.cli import load_config_or_exit

from ..styling import style_dim, style_header, style_success, style_warning

_CONFIG_OPTION_HELP = "Config file (default: platform config directory)"


@click.group()
def config() -> None:
    """Configuration management commands."""
    pass


@config.command("path")
def config_path_cmd() -> None:
    """Print the default config file location."""
    click.echo(str(get_config_path()))


@config.command("show")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    help=_CONFIG_OPTION_HELP,
)
def config_show(as_json: bool, config_path: Path | None) -> None:
    """Display effective configuration (file values over defaults)."""
    loaded = load_config_or_exit(config_path)
    source = config_path or get_config_path()

    if as_json:
        data = loaded.model_dump(mode="json")
        data["_computed"] = {
            "config_file": str(source),
            "credentials_file": str(loaded.resolve_credentials_path()),
        }
        click.echo(json.dumps(data, indent=2))
        return

    if not source.exists():
        click.echo(style_dim(f"No config file at {source}; using defaults."))
    click.echo()

    click.echo(style_header("Credentials"))
    click.echo(f"  credentials file: {loaded.resolve_credentials_path()}")
    click.echo(f"  refresh_fallback: {loaded.refresh_fallback}")
    click.echo()

    click.echo(style_header("Polling"))
    click.echo(f"  interval_seconds: {loaded.polling.interval_seconds:g}")
    click.echo(f"  max_attempts: {loaded.polling.max_attempts}")
    click.echo(f"  request_timeout_seconds: {loaded.polling.request_timeout_seconds:g}")
    click.echo()

    click.echo(style_header("HTTP"))
    click.echo(f"  verify_tls: {loaded.http.verify_tls}")
    if not loaded.http.verify_tls:
        click.echo("  " + style_warning("TLS certificate verification is disabled"))
    click.echo()

    click.echo(style_header("Logging"))
    click.echo(f"  log_level: {loaded.logging.log_level}")
    click.echo(f"  log_file: {loaded.logging.log_file or '(stderr only)'}")


@config.command("init")
@click.option("--force", is_flag=True, help="Overwrite an existing config file")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    help=_CONFIG_OPTION_HELP,
)
def config_init(force: bool, config_path: Path | None) -> None:
    """Write a config file with default settings."""
    target = config_path or get_config_path()

    if target.exists() and not force:
        raise click.ClickException(f"Config file already exists at {target}. Use --force to overwrite.")

    AppConfig().save_to_file(target)
    click.echo(style_success(f"Configuration saved to {target}"))
