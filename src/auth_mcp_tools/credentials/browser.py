"""Best-effort browser launching for the interactive authorization flow.

The platform's URL opener (open on macOS, xdg-open on Linux, the URL
protocol handler on Windows) is spawned in its own session and never waited
on. Its standard streams go to devnull: our stdin/stdout carry the MCP stdio
transport.
"""

from __future__ import annotations

__all__ = ["BrowserLauncher", "manual_navigation_message", "opener_command"]

import shutil
import subprocess
import sys

from auth_mcp_tools.exceptions import BrowserLaunchFailed


def manual_navigation_message(url: str) -> str:
    """Fallback instruction shown when the browser cannot be opened."""
    return f"Could not open web browser automatically; please navigate manually to: {url}"


def opener_command(url: str, platform: str | None = None) -> list[str]:
    """OS command that opens url in the default browser."""
    platform = platform or sys.platform
    if platform == "darwin":
        return ["open", url]
    if platform == "win32":
        # No shell involved, so '&' in query strings needs no escaping
        return ["rundll32", "url.dll,FileProtocolHandler", url]
    return ["xdg-open", url]


class BrowserLauncher:
    """Opens URLs in the user's default browser.

    Args:
        enabled: When False, never launch anything and always report failure
            so the caller shows the manual-navigation message (--no-browser).
    """

    def __init__(self, enabled: bool = True) -> None:
        self._enabled = enabled

    @property
    def enabled(self) -> bool:
        return self._enabled

    def open(self, url: str) -> None:
        """Start the OS opener for url and return immediately.

        Raises:
            BrowserLaunchFailed: If disabled, no opener exists, or spawning fails.
        """
        if not self._enabled:
            raise BrowserLaunchFailed(url, "browser launch disabled")

        command = opener_command(url)
        if shutil.which(command[0]) is None:
            raise BrowserLaunchFailed(url, f"{command[0]} not found")

        try:
            subprocess.Popen(
                command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except (OSError, ValueError) as e:
            raise BrowserLaunchFailed(url, str(e)) from e
