"""CLI output styling helpers.

- Cyan bold for section headers
- Green for success messages (with checkmark)
- Red for error messages (with cross)
- Yellow for warnings
- Dim for neutral/empty state messages
"""

from __future__ import annotations

__all__ = [
    "style_dim",
    "style_error",
    "style_header",
    "style_success",
    "style_warning",
]

import click


def style_header(title: str) -> str:
    """Section header, e.g. "--- Polling ---" in cyan bold."""
    return click.style(f"--- {title} ---", fg="cyan", bold=True)


def style_success(message: str) -> str:
    """Success message with checkmark.

    Example:
        >>> click.echo(style_success("Token saved"))
        ✓ Token saved
    """
    return click.style(f"✓ {message}", fg="green")


def style_error(message: str) -> str:
    """Error message with cross mark.

    Example:
        >>> click.echo(style_error("Credential store is not valid JSON"), err=True)
        ✗ Credential store is not valid JSON
    """
    return click.style(f"✗ {message}", fg="red")


def style_dim(message: str) -> str:
    """Neutral/empty state message."""
    return click.style(message, dim=True)


def style_warning(message: str) -> str:
    """Warning message in yellow bold."""
    return click.style(f"Warning: {message}", fg="yellow", bold=True)
