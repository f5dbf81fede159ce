"""
Error taxonomy shared by the credential lifecycle and the spreadsheet tools.

The MCP tool adapter is the only place these are translated into protocol
errors; everything below it raises one of these classes.
"""


class SheetsMCPError(Exception):
    """Base exception for the Google Sheets MCP server."""


class ConfigurationError(SheetsMCPError):
    """Required settings or credential material are missing or unusable."""


class InputError(SheetsMCPError):
    """A tool call lacks a value that has no configured default."""


class AuthorizationError(SheetsMCPError):
    """Consent, code exchange or token refresh failed; re-authorization needed."""


class UpstreamError(SheetsMCPError):
    """The Google Sheets API rejected or failed a request."""


__all__ = [
    "AuthorizationError",
    "ConfigurationError",
    "InputError",
    "SheetsMCPError",
    "UpstreamError",
]
