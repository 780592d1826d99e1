"""Tests for the credential store and persistence backends."""

from __future__ import annotations

import errno
import json
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from unittest.mock import patch

import pytest

from auth_mcp_tools.credentials.store import (
    CredentialStore,
    JsonCredentialSink,
    TokenFileSink,
    derive_store_key,
    store_field_name,
)
from auth_mcp_tools.exceptions import StoreMissing, StoreUnreadable, StoreWriteFailed


class TestDeriveStoreKey:
    """Tests for store key derivation from base URLs."""

    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("https://auth.example.com/svc-a", "svc-a"),
            ("https://auth.example.com/svc-a/", "svc-a"),
            ("https://auth.example.com/api/v2/svc-b//", "svc-b"),
            ("  https://auth.example.com/svc-c  ", "svc-c"),
            ("https://auth.example.com", "auth.example.com"),
        ],
        ids=["plain", "trailing_slash", "nested_path", "whitespace", "host_only"],
    )
    def test_key_is_final_path_segment(self, url: str, expected: str) -> None:
        """Given a base URL, the key is its last non-empty path segment."""
        assert derive_store_key(url) == expected

    def test_empty_url_raises(self) -> None:
        """Given a URL with no segments, raises ValueError."""
        with pytest.raises(ValueError, match="Cannot derive"):
            derive_store_key("/")

    def test_field_name_is_namespaced(self) -> None:
        """Fields are stored as {key}_{field}."""
        assert store_field_name("svc-a", "access_token") == "svc-a_access_token"


class TestCredentialStore:
    """Tests for CredentialStore load/save/merge."""

    def test_load_missing_raises_store_missing(self, store: CredentialStore) -> None:
        """Given no file, load raises StoreMissing."""
        with pytest.raises(StoreMissing):
            store.load()

    def test_load_or_empty_missing_returns_empty(self, store: CredentialStore) -> None:
        """Given no file, load_or_empty returns an empty document."""
        assert store.load_or_empty() == {}

    def test_load_invalid_json_raises_unreadable(self, store: CredentialStore, store_path: Path) -> None:
        """Given a file that is not JSON, raises StoreUnreadable."""
        # Arrange
        store_path.write_text("{not json")

        # Act & Assert
        with pytest.raises(StoreUnreadable, match="not valid JSON"):
            store.load()

    def test_load_non_object_raises_unreadable(self, store: CredentialStore, store_path: Path) -> None:
        """Given a JSON array, raises StoreUnreadable."""
        # Arrange
        store_path.write_text("[1, 2, 3]")

        # Act & Assert
        with pytest.raises(StoreUnreadable, match="JSON object"):
            store.load()

    def test_save_then_load_preserves_document(self, store: CredentialStore) -> None:
        """Saved document reads back unchanged."""
        # Arrange
        doc = {"svc-a_access_token": "tok", "svc-a_expires_in": 3600, "other": {"nested": True}}

        # Act
        store.save(doc)

        # Assert
        assert store.exists()
        assert store.load() == doc

    def test_save_creates_parent_directories(self, tmp_path: Path) -> None:
        """Saving into a missing directory creates it."""
        # Arrange
        store = CredentialStore(tmp_path / "nested" / "dir" / "credentials.json")

        # Act
        store.save({"a": 1})

        # Assert
        assert store.load() == {"a": 1}

    def test_save_unserializable_raises_write_failed(self, store: CredentialStore) -> None:
        """Given a value JSON cannot encode, raises StoreWriteFailed."""
        with pytest.raises(StoreWriteFailed):
            store.save({"bad": object()})

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions only")
    def test_file_has_secure_permissions(self, store: CredentialStore, store_path: Path) -> None:
        """Store file is readable and writable by the owner only."""
        # Act
        store.save({"a": 1})

        # Assert
        assert store_path.stat().st_mode & 0o777 == 0o600

    def test_merge_creates_store_lazily(self, store: CredentialStore) -> None:
        """Given no file, merge creates it with the namespaced fields."""
        # Act
        store.merge("svc-a", {"access_token": "tok-a", "expires_in": 3600})

        # Assert
        assert store.load() == {"svc-a_access_token": "tok-a", "svc-a_expires_in": 3600}

    def test_merge_preserves_other_keys(self, store: CredentialStore) -> None:
        """Merging one service leaves other services and foreign fields intact."""
        # Arrange
        store.save({"svc-b_access_token": "tok-b", "api_key": "k-123"})

        # Act
        store.merge("svc-a", {"access_token": "tok-a"})

        # Assert
        assert store.load() == {
            "svc-b_access_token": "tok-b",
            "api_key": "k-123",
            "svc-a_access_token": "tok-a",
        }

    def test_merge_overwrites_existing_fields(self, store: CredentialStore) -> None:
        """Fields for the same key are replaced; unrelated fields for it are kept."""
        # Arrange
        store.merge("svc-a", {"access_token": "old", "refresh_token": "r-old"})

        # Act
        store.merge("svc-a", {"access_token": "new"})

        # Assert
        assert store.get_field("svc-a", "access_token") == "new"
        assert store.get_field("svc-a", "refresh_token") == "r-old"

    def test_merge_into_unreadable_store_raises(self, store: CredentialStore, store_path: Path) -> None:
        """Given an unparseable store, merge refuses to overwrite it."""
        # Arrange
        store_path.write_text("garbage")

        # Act & Assert
        with pytest.raises(StoreUnreadable):
            store.merge("svc-a", {"access_token": "tok"})
        assert store_path.read_text() == "garbage"

    def test_colliding_keys_last_write_wins(self, store: CredentialStore) -> None:
        """Two URLs with the same final segment share one entry."""
        # Arrange
        key_a = derive_store_key("https://a.example.com/svc")
        key_b = derive_store_key("https://b.example.com/svc")

        # Act
        store.merge(key_a, {"access_token": "from-a"})
        store.merge(key_b, {"access_token": "from-b"})

        # Assert
        assert key_a == key_b
        assert store.load() == {"svc_access_token": "from-b"}

    def test_store_is_pretty_printed(self, store: CredentialStore, store_path: Path) -> None:
        """Document is written as indented JSON."""
        # Act
        store.save({"a": 1})

        # Assert
        assert store_path.read_text() == json.dumps({"a": 1}, indent=2)


class TestJsonCredentialSink:
    """Tests for the JSON store backend."""

    def test_read_returns_none_without_store(self, sink: JsonCredentialSink) -> None:
        """Given no store file, no token is cached."""
        assert sink.read("svc-a") is None

    def test_read_returns_cached_token(self, sink: JsonCredentialSink, store: CredentialStore) -> None:
        """Given a stored access token, read returns it."""
        # Arrange
        store.save({"svc-a_access_token": "tok-a", "svc-a_refresh_token": "r-a"})

        # Act & Assert
        assert sink.read("svc-a") == "tok-a"
        assert sink.read_refresh_token("svc-a") == "r-a"

    def test_empty_token_counts_as_absent(self, sink: JsonCredentialSink, store: CredentialStore) -> None:
        """An empty string token is treated as not cached."""
        # Arrange
        store.save({"svc-a_access_token": ""})

        # Act & Assert
        assert sink.read("svc-a") is None

    def test_write_merges_fields(self, sink: JsonCredentialSink, store: CredentialStore) -> None:
        """write merges all given fields under the key."""
        # Act
        sink.write("svc-a", {"access_token": "tok-a", "token_type": "Bearer"})

        # Assert
        assert store.load() == {"svc-a_access_token": "tok-a", "svc-a_token_type": "Bearer"}

    def test_supports_refresh(self, sink: JsonCredentialSink) -> None:
        """JSON backend can hold refresh tokens."""
        assert sink.supports_refresh is True


class TestTokenFileSink:
    """Tests for the raw token file backend."""

    def test_read_returns_none_when_missing(self, tmp_path: Path) -> None:
        """Given no file, no token is cached."""
        sink = TokenFileSink(tmp_path / "token.txt")
        assert sink.read("svc-a") is None

    def test_write_stores_bare_access_token(self, tmp_path: Path) -> None:
        """Only the access token is written, nothing else."""
        # Arrange
        path = tmp_path / "out" / "token.txt"
        sink = TokenFileSink(path)

        # Act
        sink.write("svc-a", {"access_token": "tok-a", "refresh_token": "r-a"})

        # Assert
        assert path.read_text() == "tok-a"
        assert sink.read("ignored-key") == "tok-a"

    def test_read_strips_whitespace(self, tmp_path: Path) -> None:
        """A trailing newline in a hand-edited file is ignored."""
        # Arrange
        path = tmp_path / "token.txt"
        path.write_text("tok-a\n")

        # Act & Assert
        assert TokenFileSink(path).read("svc-a") == "tok-a"

    def test_write_without_token_raises(self, tmp_path: Path) -> None:
        """Given no access token in the fields, raises StoreWriteFailed."""
        sink = TokenFileSink(tmp_path / "token.txt")
        with pytest.raises(StoreWriteFailed):
            sink.write("svc-a", {"expires_in": 3600})

    def test_no_refresh_support(self, tmp_path: Path) -> None:
        """File backend never reports a refresh token."""
        sink = TokenFileSink(tmp_path / "token.txt")
        assert sink.supports_refresh is False
        assert sink.read_refresh_token("svc-a") is None


class TestAtomicWrites:
    """Tests that failed writes never corrupt existing files."""

    def test_failed_merge_keeps_previous_document(self, store: CredentialStore, tmp_path: Path) -> None:
        """Given a disk-full error mid-write, the old document stays loadable."""
        # Arrange
        store.save({"other_access_token": "keep-me"})

        # Act
        with patch(
            "auth_mcp_tools.utils.file_helpers.os.fsync",
            side_effect=OSError(errno.ENOSPC, "No space left on device"),
        ):
            with pytest.raises(StoreWriteFailed, match="No space left"):
                store.merge("svc", {"access_token": "x" * 10000})

        # Assert
        assert store.load() == {"other_access_token": "keep-me"}
        assert [p.name for p in tmp_path.iterdir()] == ["credentials.json"]

    def test_failed_rename_keeps_previous_document(self, store: CredentialStore, tmp_path: Path) -> None:
        """Given the final rename fails, the old document and no temp file remain."""
        # Arrange
        store.save({"svc_access_token": "old"})

        # Act
        with patch("auth_mcp_tools.utils.file_helpers.os.replace", side_effect=OSError("rename failed")):
            with pytest.raises(StoreWriteFailed):
                store.save({"svc_access_token": "new"})

        # Assert
        assert store.load() == {"svc_access_token": "old"}
        assert [p.name for p in tmp_path.iterdir()] == ["credentials.json"]

    def test_failed_token_file_write_keeps_previous_token(self, tmp_path: Path) -> None:
        """Given a write failure, the raw token file keeps its old token."""
        # Arrange
        path = tmp_path / "token.txt"
        path.write_text("old-token")
        sink = TokenFileSink(path)

        # Act
        with patch(
            "auth_mcp_tools.utils.file_helpers.os.fsync",
            side_effect=OSError(errno.ENOSPC, "No space left on device"),
        ):
            with pytest.raises(StoreWriteFailed):
                sink.write("svc", {"access_token": "new-token"})

        # Assert
        assert path.read_text() == "old-token"
        assert [p.name for p in tmp_path.iterdir()] == ["token.txt"]


class TestConcurrentMerge:
    """Tests for per-file serialization of read-modify-write."""

    def test_threads_merging_different_keys_lose_nothing(self, store_path: Path) -> None:
        """Given many threads merging distinct keys into one file, every key survives."""
        # Arrange
        keys = [f"svc-{i}" for i in range(40)]

        def merge(key: str) -> None:
            # Separate handles on the same path share one lock
            CredentialStore(store_path).merge(key, {"access_token": f"tok-{key}"})

        # Act
        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(merge, keys))

        # Assert
        doc = CredentialStore(store_path).load()
        assert doc == {f"{key}_access_token": f"tok-{key}" for key in keys}
