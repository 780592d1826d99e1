"""Shared fixtures for auth-mcp-tools tests.

HTTP is never real: flows receive a MagicMock(spec=httpx.AsyncClient) whose
async methods return prepared httpx.Response objects. Polling runs with a
zero interval so the attempt loop completes instantly.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import httpx
import pytest

from auth_mcp_tools.config import AppConfig, PollingConfig
from auth_mcp_tools.credentials.browser import BrowserLauncher
from auth_mcp_tools.credentials.store import CredentialStore, JsonCredentialSink


@pytest.fixture
def fast_polling() -> PollingConfig:
    """Six attempts without waiting between them."""
    return PollingConfig(interval_seconds=0, max_attempts=6, request_timeout_seconds=5)


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    """Location of a credential store that does not exist yet."""
    return tmp_path / "credentials.json"


@pytest.fixture
def store(store_path: Path) -> CredentialStore:
    """Credential store handle on a temporary path."""
    return CredentialStore(store_path)


@pytest.fixture
def sink(store: CredentialStore) -> JsonCredentialSink:
    """JSON backend over the temporary store."""
    return JsonCredentialSink(store)


@pytest.fixture
def mock_client() -> MagicMock:
    """Async HTTP client double; get() is an AsyncMock."""
    return MagicMock(spec=httpx.AsyncClient)


@pytest.fixture
def launcher() -> MagicMock:
    """Browser launcher that always succeeds without opening anything."""
    return MagicMock(spec=BrowserLauncher)


@pytest.fixture
def app_config(store_path: Path, fast_polling: PollingConfig) -> AppConfig:
    """Configuration pointing at the temporary store with fast polling."""
    return AppConfig(credentials_path=str(store_path), polling=fast_polling)
