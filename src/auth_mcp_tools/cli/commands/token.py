"""Token command for auth-mcp-tools CLI.

Resolves an access token from the terminal: cached, refreshed or acquired
through the browser flow. The token is printed to stdout, progress and
status messages go to stderr.
"""

from __future__ import annotations

__all__ = ["token"]

import asyncio
from pathlib import Path

import click

from auth_mcp_tools.config import AppConfig
from auth_mcp_tools.credentials.browser import BrowserLauncher
from auth_mcp_tools.credentials.resolver import create_http_client, create_token_resolver
from auth_mcp_tools.credentials.responses import TokenResult
from auth_mcp_tools.credentials.store import CredentialSink, TokenFileSink
from auth_mcp_tools.utils.cli import apply_logging_config, load_config_or_exit

from ..styling import style_success


async def _resolve(
    config: AppConfig,
    url: str,
    force: bool,
    sink: CredentialSink | None,
    launcher: BrowserLauncher,
) -> TokenResult:
    polled = False

    def notify(message: str) -> None:
        click.echo(message, err=True)
        click.echo("Waiting for authentication", nl=False, err=True)

    def on_poll(attempt: int) -> None:
        nonlocal polled
        polled = True
        click.echo(".", nl=False, err=True)

    async with create_http_client(config.http, config.polling) as client:
        resolver = create_token_resolver(
            config,
            client,
            sink=sink,
            launcher=launcher,
            notify=notify,
            on_poll=on_poll,
        )
        result = await resolver.resolve(url, force=force)

    if polled:
        click.echo(err=True)
    return result


@click.command()
@click.argument("url")
@click.option("--force", is_flag=True, help="Obtain a new token even if one is cached")
@click.option(
    "--output",
    "output_path",
    type=click.Path(path_type=Path, dir_okay=False),
    help="Write the raw token to this file instead of the credential store",
)
@click.option("--no-browser", is_flag=True, help="Don't automatically open browser")
@click.option(
    "--insecure",
    is_flag=True,
    help="Disable TLS certificate verification for auth server requests",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    help="Config file (default: platform config directory)",
)
def token(
    url: str,
    force: bool,
    output_path: Path | None,
    no_browser: bool,
    insecure: bool,
    config_path: Path | None,
) -> None:
    """Get an access token for the auth service at URL.

    With --output the token is kept in that file only; an existing file is
    reused without authenticating again (unless --force).
    """
    config = load_config_or_exit(config_path, insecure=insecure)
    apply_logging_config(config)

    sink = TokenFileSink(output_path) if output_path else None
    launcher = BrowserLauncher(enabled=not no_browser)

    result = asyncio.run(_resolve(config, url, force, sink, launcher))

    if not result.ok:
        raise click.ClickException(result.message)

    click.echo(style_success(result.message), err=True)
    click.echo(result.token)
