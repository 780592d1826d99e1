"""Token refresh via the auth server's refresh-token endpoint.

When a caller forces a new token and a refresh token is cached, exchange it
without user interaction.

Flow:
1. GET {base}/refresh-token?refresh_token=...
2. Auth server answers {"status": "success", "access_token": ..., ...}
3. Merge returned fields into the credential sink

A single attempt, no retry: callers decide whether to fall back to the
interactive flow.
"""

from __future__ import annotations

__all__ = ["TokenRefresher"]

import asyncio
from typing import TYPE_CHECKING
from urllib.parse import urlencode

import httpx

from auth_mcp_tools.constants import DEFAULT_REQUEST_TIMEOUT_SECONDS, REFRESH_TOKEN_ENDPOINT
from auth_mcp_tools.credentials.responses import parse_status_response
from auth_mcp_tools.credentials.store import derive_store_key
from auth_mcp_tools.exceptions import RefreshFailed
from auth_mcp_tools.telemetry.system_logger import get_system_logger

if TYPE_CHECKING:
    from auth_mcp_tools.credentials.store import CredentialSink


def build_refresh_url(base_url: str, refresh_token: str) -> str:
    """Refresh endpoint for a service base URL."""
    base = base_url.strip().rstrip("/")
    return f"{base}/{REFRESH_TOKEN_ENDPOINT}?{urlencode({'refresh_token': refresh_token})}"


class TokenRefresher:
    """Exchanges a stored refresh token for a new token set."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        sink: "CredentialSink",
        request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize refresher.

        Args:
            http_client: Client used for the refresh call (owned by the caller).
            sink: Where refreshed token fields are persisted.
            request_timeout_seconds: Timeout for the refresh request.
        """
        self._client = http_client
        self._sink = sink
        self._timeout = request_timeout_seconds

    async def refresh(self, base_url: str, refresh_token: str) -> str:
        """Refresh the access token for a service.

        Args:
            base_url: Service base URL.
            refresh_token: Cached refresh token.

        Returns:
            New access token (already persisted).

        Raises:
            RefreshFailed: On transport error, non-200 response, malformed
                body or non-success status.
            StoreUnreadable, StoreWriteFailed: If persisting the token fails.
        """
        key = derive_store_key(base_url)

        try:
            response = await self._client.get(
                build_refresh_url(base_url, refresh_token),
                timeout=self._timeout,
            )
        except httpx.HTTPError as e:
            raise RefreshFailed(f"HTTP error during token refresh: {e}") from e

        try:
            body = parse_status_response(response.json())
        except ValueError:
            body = None

        if response.status_code != 200:
            detail = body.message if body and body.message else f"HTTP {response.status_code}"
            raise RefreshFailed(f"Token refresh failed: {detail}", status_code=response.status_code)

        if body is None:
            raise RefreshFailed("Token refresh failed: malformed response from auth server", status_code=200)

        if not body.is_success:
            raise RefreshFailed(
                f"Token refresh failed: {body.message or 'Unknown error from auth server'}",
                status_code=200,
            )

        if not body.access_token:
            raise RefreshFailed("Token refresh failed: response has no access token", status_code=200)

        await asyncio.to_thread(self._sink.write, key, body.token_fields())
        get_system_logger().info(
            {
                "event": "token_refreshed",
                "message": f"Access token for '{key}' refreshed and saved to {self._sink.describe()}",
                "key": key,
            }
        )
        return body.access_token
