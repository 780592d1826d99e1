"""auth-mcp-tools: OAuth token acquisition and caching for MCP tool clients."""

__version__ = "1.0.0"
