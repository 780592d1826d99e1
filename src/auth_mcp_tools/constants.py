"""Application-wide constants for auth-mcp-tools.

Constants that define application behavior.
For user-configurable settings per deployment, see config.py.
"""

__all__ = [
    # Application identity
    "APP_NAME",
    "APP_VERSION",
    # Application directory
    "APP_DATA_DIR",
    "CREDENTIALS_FILENAME",
    "CONFIG_FILENAME",
    # Token polling
    "DEFAULT_POLL_INTERVAL_SECONDS",
    "DEFAULT_POLL_MAX_ATTEMPTS",
    "DEFAULT_REQUEST_TIMEOUT_SECONDS",
    "MAX_POLL_INTERVAL_SECONDS",
    "MAX_POLL_ATTEMPTS",
    "MAX_REQUEST_TIMEOUT_SECONDS",
    # External auth server protocol
    "START_ENDPOINT",
    "FETCH_TOKEN_ENDPOINT",
    "REFRESH_TOKEN_ENDPOINT",
    "STATUS_FIELD",
]

from platformdirs import user_config_dir

from auth_mcp_tools import __version__

# ============================================================================
# Application Identity
# ============================================================================

# Application name used for directory names, logger names and the MCP server name.
APP_NAME: str = "auth-mcp-tools"

APP_VERSION: str = __version__

# ============================================================================
# Application Directory
# ============================================================================

# Per-user directory holding credentials.json and config.json.
#
# Platform-specific paths:
# - macOS: ~/Library/Application Support/auth-mcp-tools/
# - Linux: ~/.config/auth-mcp-tools/
# - Windows: %APPDATA%\auth-mcp-tools\
APP_DATA_DIR: str = user_config_dir(APP_NAME, appauthor=False, roaming=True)

CREDENTIALS_FILENAME: str = "credentials.json"
CONFIG_FILENAME: str = "config.json"

# ============================================================================
# Token Polling
# ============================================================================

# 6 attempts at 10-second intervals: authentication must complete within 1 minute.
DEFAULT_POLL_INTERVAL_SECONDS: float = 10.0
DEFAULT_POLL_MAX_ATTEMPTS: int = 6

# Per-request timeout, independent of the polling interval.
DEFAULT_REQUEST_TIMEOUT_SECONDS: float = 15.0

# Validation ceilings for PollingConfig
MAX_POLL_INTERVAL_SECONDS: float = 300.0
MAX_POLL_ATTEMPTS: int = 100
MAX_REQUEST_TIMEOUT_SECONDS: float = 300.0

# ============================================================================
# External Auth Server Protocol
# ============================================================================

# Paths appended to the service base URL
START_ENDPOINT: str = "start"
FETCH_TOKEN_ENDPOINT: str = "get-token"
REFRESH_TOKEN_ENDPOINT: str = "refresh-token"

# Response field carrying pending/success/error; never persisted.
STATUS_FIELD: str = "status"
