"""Custom exceptions for auth-mcp-tools.

This module contains all custom exceptions used throughout the package.
Exceptions are organized into three categories:

Credential store errors:
    - StoreMissing: Store file does not exist yet (not an error for lazy creation)
    - StoreUnreadable: Store file exists but is not a valid JSON object
    - StoreWriteFailed: Store file could not be written

Token flow errors:
    - AcquisitionTimeout: Polling ceiling reached without a terminal status
    - ExternalServerError: Auth server answered with status "error"
    - RefreshFailed: Refresh token exchange failed
    - TransientNetworkError: Single poll failed; retried inside the acquirer only

Non-fatal:
    - BrowserLaunchFailed: Browser could not be opened, user navigates manually

Every error that reaches TokenResolver is converted into a structured
{"status": "error", "message": ...} result. Nothing propagates past the
tool boundary.

Usage:
    from auth_mcp_tools.exceptions import StoreUnreadable, AcquisitionTimeout
"""

from __future__ import annotations

__all__ = [
    "AcquisitionTimeout",
    "BrowserLaunchFailed",
    "ConfigurationError",
    "CredentialsError",
    "ExternalServerError",
    "RefreshFailed",
    "StoreError",
    "StoreMissing",
    "StoreUnreadable",
    "StoreWriteFailed",
    "TokenFlowError",
    "TransientNetworkError",
]

from pathlib import Path


class CredentialsError(Exception):
    """Base exception for all auth-mcp-tools failures."""


# =============================================================================
# Credential Store Errors
# =============================================================================


class StoreError(CredentialsError):
    """Credential store could not be used.

    Attributes:
        path: Location of the store file.
    """

    def __init__(self, message: str, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


class StoreMissing(StoreError):
    """Store file does not exist.

    Distinct condition rather than a failure: some operations require the
    store to exist, others create it on first write. Callers branch on it.
    """


class StoreUnreadable(StoreError):
    """Store file exists but cannot be read or is not a JSON object."""


class StoreWriteFailed(StoreError):
    """Store file could not be written (permissions, disk full, bad value)."""


# =============================================================================
# Browser
# =============================================================================


class BrowserLaunchFailed(CredentialsError):
    """Default browser could not be opened.

    Never aborts a flow. The caller downgrades it to a warning that tells
    the user to navigate to the URL manually.

    Attributes:
        url: The URL that could not be opened.
    """

    def __init__(self, url: str, reason: str | None = None) -> None:
        detail = f": {reason}" if reason else ""
        super().__init__(f"Could not open web browser for {url}{detail}")
        self.url = url


# =============================================================================
# Token Flow Errors
# =============================================================================


class TokenFlowError(CredentialsError):
    """Token acquisition or refresh failed.

    Attributes:
        warning: Non-fatal issue that occurred before the failure (set by the
            acquirer when the browser could not be opened).
    """

    warning: str | None = None


class AcquisitionTimeout(TokenFlowError):
    """Polling ceiling reached without a success or error status.

    Attributes:
        attempts: Number of poll attempts issued.
        waited_seconds: Nominal time spent waiting between attempts.
    """

    def __init__(self, attempts: int, waited_seconds: float) -> None:
        super().__init__(
            "Timeout or maximum attempts reached: Authentication did not complete "
            f"successfully within {waited_seconds:g} seconds"
        )
        self.attempts = attempts
        self.waited_seconds = waited_seconds


class ExternalServerError(TokenFlowError):
    """Auth server reported status "error" (or an unusable success body)."""


class RefreshFailed(TokenFlowError):
    """Refresh token exchange did not produce a new access token.

    Attributes:
        status_code: HTTP status code, if a response was received.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransientNetworkError(TokenFlowError):
    """A single poll failed (transport error, timeout, bad response).

    Only raised and handled inside TokenAcquirer's polling loop, which
    retries until the attempt ceiling.
    """


# =============================================================================
# Configuration
# =============================================================================


class ConfigurationError(CredentialsError):
    """Configuration is invalid.

    Raised when:
    - Config file contains invalid JSON
    - Config file fails Pydantic validation
    """
