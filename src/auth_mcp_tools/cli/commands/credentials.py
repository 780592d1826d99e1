"""Credentials command for auth-mcp-tools CLI.

Prints the credential store document.
"""

from __future__ import annotations

__all__ = ["credentials"]

import json
from pathlib import Path

import click

from auth_mcp_tools.credentials.store import CredentialStore
from auth_mcp_tools.exceptions import StoreMissing, StoreUnreadable
from auth_mcp_tools.server import NO_CREDENTIALS_MESSAGE
from auth_mcp_tools.utils.cli import load_config_or_exit

from ..styling import style_dim


@click.command()
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    help="Config file (default: platform config directory)",
)
def credentials(config_path: Path | None) -> None:
    """Show stored tokens, API keys and credentials.

    Output contains secrets in plaintext.
    """
    config = load_config_or_exit(config_path)
    store = CredentialStore(config.resolve_credentials_path())

    try:
        doc = store.load()
    except StoreMissing:
        click.echo(style_dim(NO_CREDENTIALS_MESSAGE))
        return
    except StoreUnreadable as e:
        raise click.ClickException(str(e)) from e

    click.echo(json.dumps(doc, indent=2))
