"""Interactive browser authorization with token polling.

The auth server runs the actual login. This side only correlates the
browser session with a poll loop:

Flow:
1. Generate a random request_id for this attempt
2. Open browser at {base}/start?request_id=... (spawned, never awaited)
   (if that fails, tell the user to open the URL manually and keep going)
3. Poll {base}/get-token?request_id=... every interval until the server
   reports success or error, or the attempt ceiling is reached
4. Merge the returned token fields into the credential sink

Polling policy: transport errors, timeouts, non-200 responses and malformed
bodies are transient and retried until the ceiling. Only an explicit "error"
status or the ceiling ends the loop with failure.

Cancellation: the interval sleep and the in-flight request are awaited, so
cancelling the task aborts both. Nothing is persisted before a success status.
Store I/O runs in a worker thread; the per-file lock serializes it.
"""

from __future__ import annotations

__all__ = [
    "AcquisitionResult",
    "AuthEndpoints",
    "TokenAcquirer",
]

import asyncio
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable
from urllib.parse import urlencode

import httpx

from auth_mcp_tools.config import PollingConfig
from auth_mcp_tools.constants import FETCH_TOKEN_ENDPOINT, START_ENDPOINT
from auth_mcp_tools.credentials.browser import BrowserLauncher, manual_navigation_message
from auth_mcp_tools.credentials.responses import TokenStatusResponse, parse_status_response
from auth_mcp_tools.credentials.store import derive_store_key
from auth_mcp_tools.exceptions import (
    AcquisitionTimeout,
    BrowserLaunchFailed,
    ExternalServerError,
    TokenFlowError,
    TransientNetworkError,
)
from auth_mcp_tools.telemetry.system_logger import get_system_logger

if TYPE_CHECKING:
    from auth_mcp_tools.credentials.store import CredentialSink

DEFAULT_SERVER_ERROR_MESSAGE = "Unknown error from auth server"


@dataclass(frozen=True)
class AuthEndpoints:
    """URLs for one authorization attempt.

    Attributes:
        request_id: Per-attempt correlation id.
        start_url: Opened in the browser to begin the flow.
        fetch_url: Polled for the flow's result.
    """

    request_id: str
    start_url: str
    fetch_url: str

    @classmethod
    def for_attempt(cls, base_url: str, request_id: str | None = None) -> "AuthEndpoints":
        """Build endpoints from a service base URL.

        Args:
            base_url: Service base URL (trailing slashes ignored).
            request_id: Correlation id (random UUID if not given).
        """
        request_id = request_id or str(uuid.uuid4())
        base = base_url.strip().rstrip("/")
        query = urlencode({"request_id": request_id})
        return cls(
            request_id=request_id,
            start_url=f"{base}/{START_ENDPOINT}?{query}",
            fetch_url=f"{base}/{FETCH_TOKEN_ENDPOINT}?{query}",
        )


@dataclass
class AcquisitionResult:
    """Result of a successful interactive authorization.

    Attributes:
        access_token: The new access token (already persisted).
        attempts: Poll attempts issued before success.
        warning: Manual-navigation message if the browser could not be opened.
    """

    access_token: str
    attempts: int
    warning: str | None = None


class TokenAcquirer:
    """Drives the interactive authorization + polling protocol.

    Usage:
        async with httpx.AsyncClient(timeout=15) as client:
            acquirer = TokenAcquirer(client, sink)
            result = await acquirer.acquire("https://auth.example.com/svc-a")
            print(result.access_token)
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        sink: "CredentialSink",
        polling: PollingConfig | None = None,
        launcher: BrowserLauncher | None = None,
        notify: Callable[[str], None] | None = None,
        on_poll: Callable[[int], None] | None = None,
    ) -> None:
        """Initialize acquirer.

        Args:
            http_client: Client used for polling (owned by the caller).
            sink: Where successful token fields are persisted.
            polling: Interval, attempt ceiling and per-request timeout.
            launcher: Browser launcher (default: system browser).
            notify: Optional callback receiving user-facing messages.
            on_poll: Optional callback called with the attempt number before each poll.
        """
        self._client = http_client
        self._sink = sink
        self._polling = polling or PollingConfig()
        self._launcher = launcher or BrowserLauncher()
        self._notify = notify
        self._on_poll = on_poll

    @property
    def polling(self) -> PollingConfig:
        return self._polling

    async def acquire(self, base_url: str, endpoints: AuthEndpoints | None = None) -> AcquisitionResult:
        """Run the interactive flow for a service and persist the result.

        Args:
            base_url: Service base URL.
            endpoints: Pre-built endpoints (tests); generated if None.

        Returns:
            AcquisitionResult with the new access token.

        Raises:
            ExternalServerError: If the server reports status "error".
            AcquisitionTimeout: If the attempt ceiling is reached.
            StoreUnreadable, StoreWriteFailed: If persisting the token fails.
        """
        key = derive_store_key(base_url)
        endpoints = endpoints or AuthEndpoints.for_attempt(base_url)
        logger = get_system_logger()

        logger.info(
            {
                "event": "auth_flow_started",
                "message": f"Starting browser authorization for '{key}'",
                "key": key,
                "start_url": endpoints.start_url,
            }
        )

        warning = await self._launch_browser(endpoints.start_url)

        try:
            return await self._poll_until_done(key, endpoints, warning)
        except TokenFlowError as e:
            e.warning = warning
            raise

    async def _poll_until_done(
        self,
        key: str,
        endpoints: AuthEndpoints,
        warning: str | None,
    ) -> AcquisitionResult:
        """Poll until success, error or the attempt ceiling."""
        logger = get_system_logger()

        for attempt in range(1, self._polling.max_attempts + 1):
            if self._on_poll:
                self._on_poll(attempt)

            await asyncio.sleep(self._polling.interval_seconds)

            try:
                response = await self.poll_once(endpoints)
            except TransientNetworkError as e:
                logger.warning(
                    {
                        "event": "token_poll_failed",
                        "message": f"Token poll {attempt}/{self._polling.max_attempts} failed, retrying: {e}",
                        "key": key,
                        "attempt": attempt,
                    }
                )
                continue

            if response.is_pending:
                logger.debug({"event": "token_poll_pending", "message": "Authorization pending", "attempt": attempt})
                continue

            if response.is_error:
                message = response.message or DEFAULT_SERVER_ERROR_MESSAGE
                logger.warning(
                    {
                        "event": "auth_flow_rejected",
                        "message": f"Auth server reported an error for '{key}': {message}",
                        "key": key,
                        "attempt": attempt,
                    }
                )
                raise ExternalServerError(message)

            if response.is_success:
                if not response.access_token:
                    raise ExternalServerError("Auth server reported success without an access token")

                await asyncio.to_thread(self._sink.write, key, response.token_fields())
                logger.info(
                    {
                        "event": "token_acquired",
                        "message": f"Access token for '{key}' acquired and saved to {self._sink.describe()}",
                        "key": key,
                        "attempt": attempt,
                    }
                )
                return AcquisitionResult(
                    access_token=response.access_token,
                    attempts=attempt,
                    warning=warning,
                )

            logger.warning(
                {
                    "event": "token_poll_unknown_status",
                    "message": f"Ignoring unknown status {response.status!r} from auth server",
                    "key": key,
                    "attempt": attempt,
                }
            )

        logger.warning(
            {
                "event": "auth_flow_timeout",
                "message": f"Authorization for '{key}' did not complete after {self._polling.max_attempts} attempts",
                "key": key,
            }
        )
        raise AcquisitionTimeout(self._polling.max_attempts, self._polling.ceiling_seconds)

    async def poll_once(self, endpoints: AuthEndpoints) -> TokenStatusResponse:
        """Poll the fetch endpoint once.

        Returns:
            Parsed status response.

        Raises:
            TransientNetworkError: On transport errors, timeouts, non-200
                responses or malformed bodies.
        """
        try:
            response = await self._client.get(
                endpoints.fetch_url,
                timeout=self._polling.request_timeout_seconds,
            )
        except httpx.HTTPError as e:
            raise TransientNetworkError(f"HTTP error polling for token: {e}") from e

        if response.status_code != 200:
            raise TransientNetworkError(f"Token poll returned HTTP {response.status_code}")

        try:
            return parse_status_response(response.json())
        except ValueError as e:
            raise TransientNetworkError(f"Unusable token poll response: {e}") from e

    async def _launch_browser(self, start_url: str) -> str | None:
        """Open the start URL; return the manual-navigation warning on failure."""
        try:
            self._launcher.open(start_url)
        except BrowserLaunchFailed as e:
            warning = manual_navigation_message(start_url)
            get_system_logger().warning(
                {
                    "event": "browser_launch_failed",
                    "message": warning,
                    "error": str(e),
                }
            )
            if self._notify:
                self._notify(warning)
            return warning

        if self._notify:
            self._notify(f"Opened browser to authenticate: {start_url}")
        return None
