"""Shared file utilities for auth-mcp-tools.

Provides common utilities used by the config layer and the credential store:
- get_app_dir: OS-appropriate application directory
- ensure_secure_directory: Create a directory with owner-only permissions
- set_secure_permissions: Secure file/directory permissions
- atomic_write_text: Replace a file via temp file + rename
- load_validated_json: Read a JSON file and validate it with Pydantic
"""

from __future__ import annotations

import json
import os
import sys
import tempfile
from pathlib import Path
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from auth_mcp_tools.constants import APP_DATA_DIR

# Type variable for Pydantic models
T = TypeVar("T", bound=BaseModel)

__all__ = [
    "atomic_write_text",
    "ensure_secure_directory",
    "get_app_dir",
    "load_validated_json",
    "set_secure_permissions",
]


def get_app_dir() -> Path:
    """Get the OS-appropriate application directory.

    Uses platformdirs.user_config_dir (roaming) which returns:
    - macOS: ~/Library/Application Support/auth-mcp-tools
    - Linux: ~/.config/auth-mcp-tools (XDG compliant)
    - Windows: C:\\Users\\<user>\\AppData\\Roaming\\auth-mcp-tools

    Returns:
        Path to the application directory.
    """
    return Path(APP_DATA_DIR)


def set_secure_permissions(path: Path, *, is_directory: bool = False) -> None:
    """Set secure permissions on file or directory.

    Sets permissions to restrict access to owner only:
    - Directory: 0o700 (rwx------)
    - File: 0o600 (rw-------)

    Does nothing on Windows. Silently ignores permission errors
    (some systems don't allow permission changes).

    Args:
        path: Path to file or directory.
        is_directory: If True, use directory permissions (0o700).
    """
    if sys.platform == "win32":
        return

    try:
        mode = 0o700 if is_directory else 0o600
        path.chmod(mode)
    except OSError:
        pass  # Permission changes might fail on some systems


def ensure_secure_directory(directory: Path) -> None:
    """Create directory (and parents) if missing, owner-only permissions.

    Args:
        directory: Directory to create.

    Raises:
        OSError: If the directory cannot be created.
    """
    created = not directory.exists()
    directory.mkdir(parents=True, exist_ok=True)
    if created:
        set_secure_permissions(directory, is_directory=True)


def atomic_write_text(path: Path, content: str, prefix: str = ".tmp_") -> None:
    """Replace a file's content atomically.

    Uses atomic write pattern: write to temp file, then rename.
    This prevents file corruption if write fails midway (disk full,
    size limit): the previous content stays intact.

    Creates parent directories if they don't exist.
    Sets secure permissions (0o700 on directory, 0o600 on file).

    Args:
        path: File to write.
        content: Full new content.
        prefix: Temp file name prefix.

    Raises:
        OSError: If any step fails (temp file is removed).
    """
    ensure_secure_directory(path.parent)

    # Same directory ensures rename is atomic (same filesystem)
    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=prefix, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())

        if sys.platform != "win32":
            os.chmod(temp_path, 0o600)

        os.replace(temp_path, path)

    except BaseException:
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise


def load_validated_json(
    file_path: Path,
    model_class: type[T],
    file_type: str = "file",
    recovery_hint: str | None = None,
) -> T:
    """Load JSON file and validate against Pydantic model.

    Combines file reading, JSON parsing, and Pydantic validation with
    consistent error messages.

    Args:
        file_path: Path to JSON file.
        model_class: Pydantic model class to validate against.
        file_type: Description for error messages (e.g., "config").
        recovery_hint: Optional hint appended to validation errors.

    Returns:
        Validated Pydantic model instance.

    Raises:
        ValueError: If JSON is invalid or validation fails.
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {file_type} file {file_path}: {e}") from e
    except OSError as e:
        raise ValueError(f"Could not read {file_type} file {file_path}: {e}") from e

    try:
        return model_class.model_validate(data)
    except ValidationError as e:
        errors = []
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            errors.append(f"  - {loc}: {error['msg']}")

        hint = f"\n\n{recovery_hint}" if recovery_hint else ""
        raise ValueError(
            f"Invalid {file_type} configuration in {file_path}:\n" + "\n".join(errors) + hint
        ) from e
