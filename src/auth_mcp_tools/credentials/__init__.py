"""Credential store and token flows.

This module provides:
- Credential persistence (JSON store, raw token file)
- Interactive browser authorization with polling
- Refresh token exchange
- Resolution policy tying them together
"""

from auth_mcp_tools.credentials.acquirer import (
    AcquisitionResult,
    AuthEndpoints,
    TokenAcquirer,
)
from auth_mcp_tools.credentials.browser import BrowserLauncher
from auth_mcp_tools.credentials.refresher import TokenRefresher
from auth_mcp_tools.credentials.resolver import (
    TokenResolver,
    create_http_client,
    create_token_resolver,
)
from auth_mcp_tools.credentials.responses import (
    TokenResult,
    TokenStatusResponse,
    parse_status_response,
)
from auth_mcp_tools.credentials.store import (
    CredentialSink,
    CredentialStore,
    JsonCredentialSink,
    TokenFileSink,
    derive_store_key,
)

__all__ = [
    # Persistence
    "CredentialSink",
    "CredentialStore",
    "JsonCredentialSink",
    "TokenFileSink",
    "derive_store_key",
    # Browser
    "BrowserLauncher",
    # Interactive flow
    "AcquisitionResult",
    "AuthEndpoints",
    "TokenAcquirer",
    # Refresh
    "TokenRefresher",
    # Policy
    "TokenResolver",
    "create_http_client",
    "create_token_resolver",
    # Wire models
    "TokenResult",
    "TokenStatusResponse",
    "parse_status_response",
]
