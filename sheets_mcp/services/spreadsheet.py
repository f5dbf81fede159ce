"""
Append and read operations exposed as MCP tools.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from googleapiclient.errors import HttpError

from sheets_mcp.clients.google_sheets import GoogleSheetsClient
from sheets_mcp.core.config import SheetsSettings
from sheets_mcp.core.errors import InputError, SheetsMCPError, UpstreamError
from sheets_mcp.schemas import AppendRowsResult, ReadRowsResult

logger = logging.getLogger(__name__)


class SpreadsheetService:
    """Resolve the target range, call the Sheets API once and shape the result."""

    def __init__(self, sheets_client: GoogleSheetsClient, settings: SheetsSettings) -> None:
        self._sheets = sheets_client
        self._settings = settings

    async def append_rows(
        self,
        rows: List[List[str]],
        *,
        spreadsheet_id: Optional[str] = None,
        sheet_range: Optional[str] = None,
    ) -> AppendRowsResult:
        target_id, target_range = self._resolve_target(spreadsheet_id, sheet_range)
        try:
            response = await self._sheets.append_values(
                spreadsheet_id=target_id, sheet_range=target_range, rows=rows
            )
        except SheetsMCPError:
            raise
        except Exception as exc:
            raise _upstream_error("append", exc) from exc

        updates = response.get("updates") or {}
        return AppendRowsResult(
            updated_rows=updates.get("updatedRows") or 0,
            updated_range=updates.get("updatedRange") or "",
        )

    async def read_rows(
        self,
        *,
        spreadsheet_id: Optional[str] = None,
        sheet_range: Optional[str] = None,
    ) -> ReadRowsResult:
        target_id, target_range = self._resolve_target(spreadsheet_id, sheet_range)
        try:
            response = await self._sheets.get_values(
                spreadsheet_id=target_id, sheet_range=target_range
            )
        except SheetsMCPError:
            raise
        except Exception as exc:
            raise _upstream_error("read", exc) from exc

        return ReadRowsResult(rows=response.get("values") or [])

    def _resolve_target(
        self, spreadsheet_id: Optional[str], sheet_range: Optional[str]
    ) -> Tuple[str, str]:
        target_id = spreadsheet_id or self._settings.default_spreadsheet_id
        target_range = sheet_range or self._settings.default_range
        missing = [
            name
            for name, value in (("spreadsheet_id", target_id), ("range", target_range))
            if not value
        ]
        if missing:
            raise InputError(
                f"Missing {' and '.join(missing)}: pass it in the call or set "
                "GSHEETS_SPREADSHEET_ID / GSHEETS_RANGE."
            )
        return target_id, target_range  # type: ignore[return-value]


def _upstream_error(operation: str, exc: Exception) -> UpstreamError:
    if isinstance(exc, HttpError):
        message = exc.reason or str(exc)
    else:
        message = str(exc) or exc.__class__.__name__
    logger.warning("Sheets %s failed: %s", operation, message)
    return UpstreamError(message)


__all__ = ["SpreadsheetService"]
