"""MCP server exposing the token tools over stdio.

Tools are thin dispatch shells: they build the resolver for the current
configuration, run it, and return JSON text. No exception escapes a tool.

Tools:
    get-tokens-api-keys-credentials-from-store  - Dump the credential store
    get-auth-token                              - Cached, refreshed or newly acquired token
    save-auth-token-to-file                     - Same flow, raw token written to a file
"""

from __future__ import annotations

__all__ = [
    "NO_CREDENTIALS_MESSAGE",
    "create_server",
    "read_credentials_payload",
    "resolve_token_payload",
]

import asyncio
import json
from pathlib import Path
from typing import Annotated

from fastmcp import FastMCP
from pydantic import Field

from auth_mcp_tools.config import AppConfig
from auth_mcp_tools.constants import APP_NAME
from auth_mcp_tools.credentials.browser import BrowserLauncher
from auth_mcp_tools.credentials.resolver import create_http_client, create_token_resolver
from auth_mcp_tools.credentials.responses import TokenResult
from auth_mcp_tools.credentials.store import CredentialSink, CredentialStore, TokenFileSink
from auth_mcp_tools.exceptions import StoreMissing, StoreUnreadable
from auth_mcp_tools.telemetry.system_logger import get_system_logger

NO_CREDENTIALS_MESSAGE = "No credentials found in store. Please use the get-auth-token tool to get a token"


def read_credentials_payload(store: CredentialStore) -> str:
    """Credential store contents as JSON text for the store tool.

    Args:
        store: Credential store handle.

    Returns:
        The JSON document, the no-credentials message if the store is
        missing, or a JSON error payload if it cannot be parsed.
    """
    try:
        doc = store.load()
    except StoreMissing:
        return NO_CREDENTIALS_MESSAGE
    except StoreUnreadable as e:
        get_system_logger().warning({"event": "store_unreadable", "message": str(e)})
        return TokenResult.error(str(e)).to_payload()
    return json.dumps(doc)


async def resolve_token_payload(
    config: AppConfig,
    url: str,
    force: bool,
    sink: CredentialSink | None = None,
    launcher: BrowserLauncher | None = None,
) -> str:
    """Resolve a token and return the TokenResult as JSON text.

    Args:
        config: Application configuration.
        url: Service base URL.
        force: Obtain a new token even if one is cached.
        sink: Credential backend (default: JSON store).
        launcher: Browser launcher (default: system browser).
    """
    async with create_http_client(config.http, config.polling) as client:
        resolver = create_token_resolver(config, client, sink=sink, launcher=launcher)
        result = await resolver.resolve(url, force=force)
    return result.to_payload()


def create_server(config: AppConfig) -> FastMCP:
    """Create the FastMCP server with all token tools registered.

    Args:
        config: Application configuration shared by every tool call.

    Returns:
        FastMCP server (run with .run() for stdio transport).
    """
    mcp = FastMCP(APP_NAME)
    store = CredentialStore(config.resolve_credentials_path())

    @mcp.tool(
        name="get-tokens-api-keys-credentials-from-store",
        description="This tool will get the tokens, api keys, and credentials for the user from the store",
    )
    async def get_tokens_api_keys_credentials_from_store() -> str:
        return await asyncio.to_thread(read_credentials_payload, store)

    @mcp.tool(
        name="get-auth-token",
        description=(
            "Get an auth token for the user given auth url. This tool will check if token is already "
            "generated and saved to file. If not, it will generate a token and save it to file and "
            "return the token. If token is already generated and saved to file, it will return the token."
        ),
    )
    async def get_auth_token(
        url: Annotated[str, Field(description="The auth url to generate a token")],
        force_generate_new_token: Annotated[
            bool,
            Field(description="If true, the tool will generate a new token even if one already exists"),
        ],
    ) -> str:
        return await resolve_token_payload(config, url, force_generate_new_token)

    @mcp.tool(
        name="save-auth-token-to-file",
        description=(
            "Get an auth token for the user given auth url and write the raw token to the given file. "
            "If the file already exists, its token is returned without authenticating again."
        ),
    )
    async def save_auth_token_to_file(
        url: Annotated[str, Field(description="The auth url to generate a token")],
        file_path: Annotated[str, Field(description="File the access token is written to")],
    ) -> str:
        sink = TokenFileSink(Path(file_path))
        return await resolve_token_payload(config, url, force=False, sink=sink)

    return mcp
