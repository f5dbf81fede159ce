"""Google Sheets MCP server with managed OAuth2 credentials."""

__version__ = "0.1.0"
