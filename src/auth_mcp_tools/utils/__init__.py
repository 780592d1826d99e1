"""Shared utilities for auth-mcp-tools."""
