"""Credential persistence for OAuth access tokens.

Provides the plaintext JSON credential store and the two persistence
backends used by the token flows:

1. JsonCredentialSink (primary): one JSON document shared by all services
   - Flat mapping of "{key}_{field}" to value
   - key is the final path segment of the service base URL

2. TokenFileSink (alternate): bare access token written to a caller-chosen file
   - Gated purely on file existence, no refresh tokens

Storage is plaintext JSON restricted to owner-only file permissions. There is
no cross-process file locking: a single active writer per store file is
assumed. Within a process, read-modify-write cycles are serialized per store
file with a mutex.

Key collisions: two base URLs sharing a final path segment
("https://a.example.com/svc" and "https://b.example.com/svc") map to the same
key. Last write wins, keyed by final path segment.
"""

from __future__ import annotations

__all__ = [
    "CredentialSink",
    "CredentialStore",
    "JsonCredentialSink",
    "TokenFileSink",
    "derive_store_key",
    "store_field_name",
]

import json
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Mapping

from auth_mcp_tools.exceptions import (
    StoreMissing,
    StoreUnreadable,
    StoreWriteFailed,
)
from auth_mcp_tools.utils.file_helpers import atomic_write_text

ACCESS_TOKEN_FIELD = "access_token"
REFRESH_TOKEN_FIELD = "refresh_token"

# One mutex per resolved store path, shared by every handle in this process
_store_locks: dict[Path, threading.Lock] = {}
_store_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.Lock:
    with _store_locks_guard:
        lock = _store_locks.get(path)
        if lock is None:
            lock = threading.Lock()
            _store_locks[path] = lock
        return lock


def derive_store_key(base_url: str) -> str:
    """Derive the store key from a service base URL.

    The key is the final path segment, ignoring trailing slashes:
    "https://auth.example.com/svc-a" -> "svc-a". A URL without a path yields
    its host segment.

    Args:
        base_url: Service base URL.

    Returns:
        Store key.

    Raises:
        ValueError: If no key can be derived.
    """
    key = base_url.strip().rstrip("/").rsplit("/", 1)[-1]
    if not key:
        raise ValueError(f"Cannot derive a credential key from URL: {base_url!r}")
    return key


def store_field_name(key: str, field: str) -> str:
    """Namespaced document field, e.g. ("svc", "access_token") -> "svc_access_token"."""
    return f"{key}_{field}"


class CredentialStore:
    """Plaintext JSON credential document on disk.

    The whole document is read and rewritten on every update; there are no
    partial-field writes. The file is created lazily on first save.

    Usage:
        store = CredentialStore(path)
        store.merge("svc-a", {"access_token": "...", "expires_in": 3600})
        doc = store.load()
    """

    def __init__(self, path: Path) -> None:
        """Initialize store handle.

        Args:
            path: Location of credentials.json.
        """
        self._path = Path(path).expanduser()
        self._lock = _lock_for(self._path.resolve())

    @property
    def path(self) -> Path:
        """Location of the store file."""
        return self._path

    def exists(self) -> bool:
        """Check if the store file exists."""
        return self._path.is_file()

    def load(self) -> dict[str, Any]:
        """Read and parse the store document.

        Returns:
            The document as a dict.

        Raises:
            StoreMissing: If the file does not exist.
            StoreUnreadable: If the file cannot be read or is not a JSON object.
        """
        try:
            content = self._path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise StoreMissing(f"Credential store not found at {self._path}", self._path) from e
        except OSError as e:
            raise StoreUnreadable(f"Could not read credential store {self._path}: {e}", self._path) from e

        try:
            doc = json.loads(content)
        except json.JSONDecodeError as e:
            raise StoreUnreadable(
                f"Credential store {self._path} is not valid JSON: {e}", self._path
            ) from e

        if not isinstance(doc, dict):
            raise StoreUnreadable(
                f"Credential store {self._path} must contain a JSON object, got {type(doc).__name__}",
                self._path,
            )
        return doc

    def load_or_empty(self) -> dict[str, Any]:
        """Read the store document, treating a missing file as empty.

        Raises:
            StoreUnreadable: If the file exists but cannot be parsed.
        """
        try:
            return self.load()
        except StoreMissing:
            return {}

    def save(self, doc: Mapping[str, Any]) -> None:
        """Serialize the full document and replace the store file.

        The file is replaced atomically; on failure the previous document
        is left untouched.

        Args:
            doc: Complete document to persist.

        Raises:
            StoreWriteFailed: On serialization or I/O failure.
        """
        try:
            content = json.dumps(dict(doc), indent=2)
        except (TypeError, ValueError) as e:
            raise StoreWriteFailed(f"Credential document is not JSON serializable: {e}", self._path) from e

        try:
            atomic_write_text(self._path, content, prefix=".credentials_")
        except OSError as e:
            raise StoreWriteFailed(f"Failed to write credential store {self._path}: {e}", self._path) from e

    def merge(self, key: str, fields: Mapping[str, Any]) -> dict[str, Any]:
        """Merge fields for one service key into the document.

        Read-modify-write under the per-file mutex. Fields are written as
        "{key}_{field}"; other keys in the document are preserved.

        Args:
            key: Service key (see derive_store_key).
            fields: Token fields returned by the auth server.

        Returns:
            The document as written.

        Raises:
            StoreUnreadable: If the existing file cannot be parsed.
            StoreWriteFailed: If the document cannot be written.
        """
        with self._lock:
            doc = self.load_or_empty()
            for field, value in fields.items():
                doc[store_field_name(key, field)] = value
            self.save(doc)
            return doc

    def get_field(self, key: str, field: str) -> Any | None:
        """Read one field for a service key (None if store or field is absent).

        Raises:
            StoreUnreadable: If the file exists but cannot be parsed.
        """
        return self.load_or_empty().get(store_field_name(key, field))


# =============================================================================
# Persistence backends for the token flows
# =============================================================================


class CredentialSink(ABC):
    """Abstract persistence backend for token flows."""

    #: Whether this backend can hold refresh tokens (enables forced refresh)
    supports_refresh: bool = False

    @abstractmethod
    def read(self, key: str) -> str | None:
        """Return the cached access token for a key, or None if never acquired.

        Raises:
            StoreUnreadable: If the backing storage cannot be read.
        """

    def read_refresh_token(self, key: str) -> str | None:
        """Return the cached refresh token for a key, if the backend stores one."""
        return None

    @abstractmethod
    def write(self, key: str, fields: Mapping[str, Any]) -> None:
        """Persist token fields for a key.

        Raises:
            StoreWriteFailed: If persisting fails.
        """

    @abstractmethod
    def describe(self) -> str:
        """Human-readable location for messages."""


class JsonCredentialSink(CredentialSink):
    """Backend storing all token fields in the shared JSON credential store."""

    supports_refresh = True

    def __init__(self, store: CredentialStore) -> None:
        self._store = store

    @property
    def store(self) -> CredentialStore:
        return self._store

    def read(self, key: str) -> str | None:
        token = self._store.get_field(key, ACCESS_TOKEN_FIELD)
        return str(token) if token else None

    def read_refresh_token(self, key: str) -> str | None:
        token = self._store.get_field(key, REFRESH_TOKEN_FIELD)
        return str(token) if token else None

    def write(self, key: str, fields: Mapping[str, Any]) -> None:
        self._store.merge(key, fields)

    def describe(self) -> str:
        return str(self._store.path)


class TokenFileSink(CredentialSink):
    """Backend writing the bare access token to a caller-chosen file.

    The key is ignored: the file belongs to a single service. Presence of the
    file means a token exists; there is no refresh support.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def read(self, key: str) -> str | None:
        if not self._path.is_file():
            return None
        try:
            token = self._path.read_text(encoding="utf-8").strip()
        except OSError as e:
            raise StoreUnreadable(f"Could not read token file {self._path}: {e}", self._path) from e
        return token or None

    def write(self, key: str, fields: Mapping[str, Any]) -> None:
        token = fields.get(ACCESS_TOKEN_FIELD)
        if not token:
            raise StoreWriteFailed(f"No access token to write to {self._path}", self._path)
        try:
            atomic_write_text(self._path, str(token), prefix=".token_")
        except OSError as e:
            raise StoreWriteFailed(f"Failed to write token file {self._path}: {e}", self._path) from e

    def describe(self) -> str:
        return str(self._path)
