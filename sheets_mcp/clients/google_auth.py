"""
Google OAuth utilities.

These helpers build the consent URL and talk to the token endpoint for the
authorization-code and refresh-token grants.
"""

from __future__ import annotations

from typing import Any, Dict
from urllib.parse import urlencode

import httpx

from sheets_mcp.core.config import GoogleSettings, OAuthSettings
from sheets_mcp.core.errors import AuthorizationError


class OAuthTokenExchangeError(AuthorizationError):
    """Raised when the token endpoint returns an error."""


class GoogleOAuthClient:
    """Build Google authorization URLs and exchange codes and refresh tokens."""

    AUTH_BASE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"

    def __init__(
        self,
        google_settings: GoogleSettings,
        oauth_settings: OAuthSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._google = google_settings
        self._oauth = oauth_settings
        self._transport = transport

    @property
    def scopes(self) -> tuple[str, ...]:
        return self._oauth.scope_list

    def build_authorization_url(self, *, redirect_uri: str, state: str | None = None) -> str:
        """Construct the Google OAuth consent URL.

        Offline access plus a forced consent prompt make Google issue a refresh
        token even when the user approved this client before.
        """
        params = {
            "client_id": self._google.client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "scope": " ".join(self.scopes),
            "access_type": "offline",
            "include_granted_scopes": "true",
            "prompt": "consent",
        }
        if state:
            params["state"] = state
        return f"{self.AUTH_BASE_URL}?{urlencode(params)}"

    async def exchange_authorization_code(self, code: str, *, redirect_uri: str) -> Dict[str, Any]:
        """
        Exchange an authorization code for tokens.

        Returns the token endpoint's JSON body unchanged.
        """
        payload = {
            "code": code,
            "client_id": self._google.client_id,
            "client_secret": self._google.client_secret,
            "redirect_uri": redirect_uri,
            "grant_type": "authorization_code",
        }
        token_payload = await self._post(payload)
        if not token_payload.get("access_token"):
            raise OAuthTokenExchangeError("Incomplete token payload returned from Google.")
        return token_payload

    async def refresh_token(self, refresh_token: str) -> Dict[str, Any]:
        """Mint a new access token from a stored refresh token."""
        payload = {
            "client_id": self._google.client_id,
            "client_secret": self._google.client_secret,
            "refresh_token": refresh_token,
            "grant_type": "refresh_token",
        }
        token_payload = await self._post(payload)
        if not token_payload.get("access_token") or not token_payload.get("expires_in"):
            raise OAuthTokenExchangeError("Incomplete refresh payload returned from Google.")
        return token_payload

    async def _post(self, payload: Dict[str, str]) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=10.0, transport=self._transport) as client:
                response = await client.post(self.TOKEN_URL, data=payload)
        except httpx.HTTPError as exc:
            raise OAuthTokenExchangeError(f"Token endpoint unreachable: {exc}") from exc

        if response.status_code != httpx.codes.OK:
            raise OAuthTokenExchangeError(_describe_error(response))
        return response.json()


def _describe_error(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict) and body.get("error"):
        description = body.get("error_description")
        return f"{body['error']}: {description}" if description else str(body["error"])
    return response.text


__all__ = ["GoogleOAuthClient", "OAuthTokenExchangeError"]
