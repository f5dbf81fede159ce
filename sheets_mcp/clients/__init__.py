"""Expose constructed client wrappers."""

from .google_auth import GoogleOAuthClient, OAuthTokenExchangeError
from .google_sheets import GoogleSheetsClient
from .token_file import TokenFileStore

__all__ = [
    "GoogleOAuthClient",
    "GoogleSheetsClient",
    "OAuthTokenExchangeError",
    "TokenFileStore",
]
