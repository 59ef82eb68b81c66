"""Oura Ring MCP server with OAuth2 PKCE and encrypted token storage."""

__version__ = "0.1.0"
