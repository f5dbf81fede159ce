"""
Factory functions wiring settings into clients and services.

Each call builds fresh objects; the server builds them once at startup and
passes them down, so no credential state lives at module level.
"""

from __future__ import annotations

from sheets_mcp.clients import GoogleOAuthClient, GoogleSheetsClient, TokenFileStore
from sheets_mcp.core.config import AppSettings
from sheets_mcp.services import (
    AuthorizationBootstrap,
    GoogleTokenService,
    SpreadsheetService,
    build_code_receiver,
)


def get_google_oauth_client(settings: AppSettings) -> GoogleOAuthClient:
    """Create the Google OAuth client."""
    return GoogleOAuthClient(settings.google, settings.oauth)


def get_token_store(settings: AppSettings) -> TokenFileStore:
    """Provide the token file store at the configured path."""
    return TokenFileStore(settings.oauth.token_path)


def get_authorization_bootstrap(
    settings: AppSettings, *, mode: str | None = None
) -> AuthorizationBootstrap:
    """Build the consent flow for ``mode`` or the configured auth mode."""
    return AuthorizationBootstrap(
        get_google_oauth_client(settings),
        build_code_receiver(settings.oauth, mode=mode),
    )


def get_google_token_service(
    settings: AppSettings, *, interactive: bool = True, mode: str | None = None
) -> GoogleTokenService:
    """Provide the credential lifecycle manager.

    With ``interactive`` false a missing token file is reported instead of
    starting the consent flow.
    """
    bootstrap = get_authorization_bootstrap(settings, mode=mode) if interactive else None
    return GoogleTokenService(
        store=get_token_store(settings),
        oauth_client=get_google_oauth_client(settings),
        bootstrap=bootstrap,
    )


def get_spreadsheet_service(
    settings: AppSettings, token_service: GoogleTokenService
) -> SpreadsheetService:
    """Build the spreadsheet operations on top of ``token_service``."""
    return SpreadsheetService(GoogleSheetsClient(token_service), settings.sheets)


__all__ = [
    "get_authorization_bootstrap",
    "get_google_oauth_client",
    "get_google_token_service",
    "get_spreadsheet_service",
    "get_token_store",
]
