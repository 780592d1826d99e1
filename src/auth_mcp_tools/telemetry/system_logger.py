"""System logger for operational events.

This module provides a singleton system logger for all operational events
(token acquired, poll retried, browser launch failed, store unreadable).

Logging strategy:
- Console (stderr): INFO and above by default. stdout is reserved for the
  MCP stdio transport and must never receive log output.
- File (optional JSONL): Only issues (WARNING, ERROR, CRITICAL).

The file handler is configured separately via configure_system_logger_file()
once the user's config is loaded.

Secret material (access and refresh tokens) is never logged. Events carry the
store key and URLs only.
"""

from __future__ import annotations

__all__ = [
    "ConsoleFormatter",
    "configure_system_logger_file",
    "get_system_logger",
    "set_system_log_level",
]

import logging
import sys
from pathlib import Path

from auth_mcp_tools.constants import APP_NAME
from auth_mcp_tools.utils.file_helpers import ensure_secure_directory
from auth_mcp_tools.utils.logging.iso_formatter import ISO8601Formatter


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter for console output.

    Extracts 'message' or 'event' field from dict messages for cleaner stderr output.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record for human-readable console output.

        Args:
            record: The log record to format.

        Returns:
            str: Formatted log message with level prefix.
        """
        if isinstance(record.msg, dict):
            msg = record.msg.get("message") or record.msg.get("event", "")
            return f"{record.levelname}: {msg}"
        return f"{record.levelname}: {record.getMessage()}"


# Module-level singleton logger
_system_logger: logging.Logger | None = None
_file_handler_configured: bool = False


def get_system_logger() -> logging.Logger:
    """Get the singleton system logger instance.

    Creates the logger on first call with stderr handler only.
    File handler is added later via configure_system_logger_file().

    Returns:
        logging.Logger: Configured system logger instance.

    Example:
        >>> logger = get_system_logger()
        >>> logger.warning({"event": "poll_failed", "message": "...", "attempt": 2})
    """
    global _system_logger

    if _system_logger is not None:
        return _system_logger

    _system_logger = logging.getLogger(f"{APP_NAME}.system")
    _system_logger.setLevel(logging.INFO)
    _system_logger.propagate = False  # Don't propagate to root logger

    # Close and remove any existing handlers to avoid duplicates and resource leaks
    for handler in _system_logger.handlers:
        handler.close()
    _system_logger.handlers.clear()

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(ConsoleFormatter())
    _system_logger.addHandler(stderr_handler)

    return _system_logger


def set_system_log_level(level: str) -> None:
    """Set the minimum level for the system logger.

    Args:
        level: Level name ("DEBUG", "INFO", "WARNING").
    """
    get_system_logger().setLevel(level)


def configure_system_logger_file(log_path: Path) -> None:
    """Add a JSONL file handler to the system logger.

    Should be called once after config is loaded. The file handler logs
    WARNING, ERROR, CRITICAL only.

    Args:
        log_path: Path to the log file.
    """
    global _file_handler_configured

    if _file_handler_configured:
        return

    logger = get_system_logger()

    try:
        ensure_secure_directory(log_path.parent)
    except OSError:
        # stderr still works without the file
        logger.warning(
            {
                "event": "log_dir_unavailable",
                "message": f"Cannot create log directory {log_path.parent}; logging to stderr only",
            }
        )
        return

    file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    file_handler.setLevel(logging.WARNING)
    file_handler.setFormatter(ISO8601Formatter())
    logger.addHandler(file_handler)

    _file_handler_configured = True
