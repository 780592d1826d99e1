"""Token resolution policy.

Decides, for a service base URL and a force flag, whether to return the cached
token, refresh it, or run the interactive browser flow:

    cached token, not forced        -> return cached token (no network call)
    no cached token                 -> interactive flow
    forced, refresh token cached    -> refresh (optionally fall back to flow)
    forced, no refresh token        -> interactive flow

Every outcome is a TokenResult. Errors are logged and converted; nothing is
raised past resolve().
"""

from __future__ import annotations

__all__ = [
    "ACQUIRED_MESSAGE",
    "CACHED_MESSAGE",
    "REFRESHED_MESSAGE",
    "TokenResolver",
    "create_http_client",
    "create_token_resolver",
]

import asyncio
from typing import TYPE_CHECKING, Callable

import httpx

from auth_mcp_tools.credentials.acquirer import TokenAcquirer
from auth_mcp_tools.credentials.browser import BrowserLauncher
from auth_mcp_tools.credentials.refresher import TokenRefresher
from auth_mcp_tools.credentials.responses import TokenResult
from auth_mcp_tools.credentials.store import CredentialStore, JsonCredentialSink, derive_store_key
from auth_mcp_tools.exceptions import CredentialsError, RefreshFailed
from auth_mcp_tools.telemetry.system_logger import get_system_logger

if TYPE_CHECKING:
    from auth_mcp_tools.config import AppConfig, HttpConfig, PollingConfig
    from auth_mcp_tools.credentials.store import CredentialSink

CACHED_MESSAGE = "Access token successfully read from file"
ACQUIRED_MESSAGE = "Access token successfully generated and saved to credentials store"
REFRESHED_MESSAGE = "Access token successfully refreshed and saved to credentials store"


class TokenResolver:
    """Top-level token policy over a credential sink.

    Usage:
        resolver = create_token_resolver(config, client)
        result = await resolver.resolve("https://auth.example.com/svc-a", force=False)
        if result.ok:
            use(result.token)
    """

    def __init__(
        self,
        sink: "CredentialSink",
        acquirer: TokenAcquirer,
        refresher: TokenRefresher | None = None,
        refresh_fallback: bool = False,
    ) -> None:
        """Initialize resolver.

        Args:
            sink: Credential backend consulted for cached tokens.
            acquirer: Interactive flow (must write to the same sink).
            refresher: Refresh exchange; forced refresh is skipped if None.
            refresh_fallback: Run the interactive flow when a refresh fails.
        """
        self._sink = sink
        self._acquirer = acquirer
        self._refresher = refresher
        self._refresh_fallback = refresh_fallback

    @property
    def sink(self) -> "CredentialSink":
        return self._sink

    async def resolve(self, base_url: str, force: bool = False) -> TokenResult:
        """Resolve an access token for a service.

        Args:
            base_url: Service base URL; its final path segment is the store key.
            force: Obtain a new token even if one is cached.

        Returns:
            TokenResult with status "success" and the token, or "error" and a message.
        """
        try:
            return await self._resolve(base_url, force)
        except CredentialsError as e:
            get_system_logger().warning(
                {
                    "event": "token_resolution_failed",
                    "message": f"Token resolution for {base_url} failed: {e}",
                    "error_type": type(e).__name__,
                }
            )
            return TokenResult.error(str(e), warning=getattr(e, "warning", None))
        except ValueError as e:
            return TokenResult.error(str(e))
        except Exception as e:
            get_system_logger().error(
                {
                    "event": "token_resolution_error",
                    "message": f"Unexpected error resolving token for {base_url}: {e}",
                    "error_type": type(e).__name__,
                }
            )
            return TokenResult.error(f"Unexpected error ({type(e).__name__}): {e}")

    async def _resolve(self, base_url: str, force: bool) -> TokenResult:
        key = derive_store_key(base_url)
        cached = await asyncio.to_thread(self._sink.read, key)

        if cached and not force:
            get_system_logger().debug({"event": "token_cache_hit", "message": f"Using cached token for '{key}'"})
            return TokenResult.success(cached, CACHED_MESSAGE)

        if cached and self._refresher is not None and self._sink.supports_refresh:
            refresh_token = await asyncio.to_thread(self._sink.read_refresh_token, key)
            if refresh_token:
                try:
                    token = await self._refresher.refresh(base_url, refresh_token)
                except RefreshFailed as e:
                    if not self._refresh_fallback:
                        raise
                    get_system_logger().warning(
                        {
                            "event": "token_refresh_fallback",
                            "message": f"{e}; falling back to browser authorization for '{key}'",
                            "key": key,
                        }
                    )
                else:
                    return TokenResult.success(token, REFRESHED_MESSAGE)

        result = await self._acquirer.acquire(base_url)
        return TokenResult.success(result.access_token, ACQUIRED_MESSAGE, warning=result.warning)


# =============================================================================
# Factories
# =============================================================================


def create_http_client(http: "HttpConfig", polling: "PollingConfig") -> httpx.AsyncClient:
    """Create the async HTTP client for auth server calls.

    Args:
        http: TLS verification settings.
        polling: Supplies the per-request timeout.

    Returns:
        httpx.AsyncClient (caller owns and closes it).
    """
    if not http.verify_tls:
        get_system_logger().warning(
            {
                "event": "tls_verification_disabled",
                "message": "TLS certificate verification is disabled for auth server requests",
            }
        )
    return httpx.AsyncClient(
        timeout=polling.request_timeout_seconds,
        verify=http.verify_tls,
    )


def create_token_resolver(
    config: "AppConfig",
    http_client: httpx.AsyncClient,
    sink: "CredentialSink | None" = None,
    launcher: BrowserLauncher | None = None,
    notify: Callable[[str], None] | None = None,
    on_poll: Callable[[int], None] | None = None,
) -> TokenResolver:
    """Wire a resolver with its acquirer and refresher.

    Args:
        config: Application configuration.
        http_client: Shared client for all auth server calls.
        sink: Credential backend (default: JSON store at the configured path).
        launcher: Browser launcher (default: system browser).
        notify: Optional callback for user-facing messages.
        on_poll: Optional callback called before each poll attempt.

    Returns:
        Configured TokenResolver.
    """
    if sink is None:
        sink = JsonCredentialSink(CredentialStore(config.resolve_credentials_path()))

    acquirer = TokenAcquirer(
        http_client,
        sink,
        polling=config.polling,
        launcher=launcher,
        notify=notify,
        on_poll=on_poll,
    )
    refresher = TokenRefresher(
        http_client,
        sink,
        request_timeout_seconds=config.polling.request_timeout_seconds,
    )
    return TokenResolver(
        sink,
        acquirer,
        refresher=refresher,
        refresh_fallback=config.refresh_fallback,
    )
