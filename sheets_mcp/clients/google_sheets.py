"""Google Sheets client wrapper for appending and reading cell values."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List, TYPE_CHECKING

from google.auth.exceptions import RefreshError
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from sheets_mcp.core.errors import AuthorizationError

if TYPE_CHECKING:  # pragma: no cover - type hints only
    from sheets_mcp.services.google_tokens import GoogleTokenService

logger = logging.getLogger(__name__)


class GoogleSheetsClient:
    """Issue single ``spreadsheets.values`` calls with the managed credential."""

    def __init__(self, token_service: "GoogleTokenService") -> None:
        self._token_service = token_service

    async def append_values(
        self,
        *,
        spreadsheet_id: str,
        sheet_range: str,
        rows: List[List[str]],
    ) -> Dict[str, Any]:
        """Append rows as if typed by a user and return the API response."""

        def _execute_append(credentials: Credentials) -> Dict[str, Any]:
            service = build("sheets", "v4", credentials=credentials, cache_discovery=False)
            return (
                service.spreadsheets()
                .values()
                .append(
                    spreadsheetId=spreadsheet_id,
                    range=sheet_range,
                    valueInputOption="USER_ENTERED",
                    body={"values": rows},
                )
                .execute()
            )

        return await self._execute(_execute_append)

    async def get_values(
        self,
        *,
        spreadsheet_id: str,
        sheet_range: str,
    ) -> Dict[str, Any]:
        """Fetch the value range as returned by the API."""

        def _execute_fetch(credentials: Credentials) -> Dict[str, Any]:
            service = build("sheets", "v4", credentials=credentials, cache_discovery=False)
            return (
                service.spreadsheets()
                .values()
                .get(spreadsheetId=spreadsheet_id, range=sheet_range)
                .execute()
            )

        return await self._execute(_execute_fetch)

    async def _execute(self, call: Callable[[Credentials], Dict[str, Any]]) -> Dict[str, Any]:
        credentials = await self._token_service.get_credentials()
        try:
            return await asyncio.to_thread(call, credentials)
        except (HttpError, RefreshError) as exc:
            # Token-only credentials raise RefreshError when the API answers 401.
            if isinstance(exc, HttpError) and exc.resp.status != 401:
                raise
            self._token_service.invalidate_access_token(credentials.token)
            logger.warning("Sheets API rejected the access token; it will be refreshed")
            raise AuthorizationError(
                "Google rejected the access token. It was discarded and will be "
                "refreshed on the next call."
            ) from exc


__all__ = ["GoogleSheetsClient"]
