"""
MCP tool definitions for the spreadsheet operations.

This is the only layer that turns application errors into MCP error responses.
"""

import logging
from typing import Annotated, Any, Callable, Dict, List, Optional

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.tools import Tool
from mcp.shared.exceptions import McpError
from mcp.types import INTERNAL_ERROR, INVALID_PARAMS, INVALID_REQUEST, ErrorData
from pydantic import ConfigDict, Field

from sheets_mcp.core.errors import (
    AuthorizationError,
    ConfigurationError,
    InputError,
    UpstreamError,
)
from sheets_mcp.services import SpreadsheetService

logger = logging.getLogger(__name__)

SERVER_NAME = "google-sheets-mcp"

SpreadsheetId = Annotated[
    Optional[str],
    Field(description="Spreadsheet ID from its URL. Defaults to GSHEETS_SPREADSHEET_ID."),
]
SheetRange = Annotated[
    Optional[str],
    Field(description="A1 notation range, e.g. 'Sheet1!A:B'. Defaults to GSHEETS_RANGE."),
]


class SpreadsheetTools:
    """Bind ``append_rows`` and ``read_rows`` to a :class:`SpreadsheetService`.

    Argument names are the wire names clients send, hence ``spreadsheetId``.
    """

    def __init__(self, service: SpreadsheetService) -> None:
        self._service = service

    async def append_rows(
        self,
        rows: Annotated[
            List[List[str]],
            Field(description="Rows to append; each row is a list of cell values."),
        ],
        spreadsheetId: SpreadsheetId = None,
        range: SheetRange = None,
    ) -> Dict[str, Any]:
        """Append rows to a Google Sheet."""
        try:
            result = await self._service.append_rows(
                rows, spreadsheet_id=spreadsheetId, sheet_range=range
            )
        except Exception as exc:
            raise to_mcp_error(exc) from exc
        return result.model_dump(by_alias=True)

    async def read_rows(
        self,
        spreadsheetId: SpreadsheetId = None,
        range: SheetRange = None,
    ) -> Dict[str, Any]:
        """Read rows from a specific sheet and range in a Google Spreadsheet."""
        try:
            result = await self._service.read_rows(
                spreadsheet_id=spreadsheetId, sheet_range=range
            )
        except Exception as exc:
            raise to_mcp_error(exc) from exc
        return result.model_dump()

    def definitions(self) -> List[Tool]:
        return [
            _strict_tool(
                self.append_rows,
                name="append_rows",
                description="Append rows to a Google Sheet.",
            ),
            _strict_tool(
                self.read_rows,
                name="read_rows",
                description="Reads rows from a specific sheet and range in a Google Spreadsheet.",
            ),
        ]


def _strict_tool(fn: Callable[..., Any], *, name: str, description: str) -> Tool:
    """Build a tool whose argument model rejects keys it does not declare.

    The advertised input schema then carries ``additionalProperties: false`` so
    a misspelled argument fails the call instead of falling back to a default.
    """
    tool = Tool.from_function(fn, name=name, description=description)
    arg_model = tool.fn_metadata.arg_model

    class StrictArguments(arg_model):  # type: ignore[valid-type, misc]
        model_config = ConfigDict(extra="forbid", title=arg_model.__name__)

    tool.fn_metadata = tool.fn_metadata.model_copy(update={"arg_model": StrictArguments})
    tool.parameters = StrictArguments.model_json_schema(by_alias=True)
    return tool


def to_mcp_error(exc: Exception) -> McpError:
    """Map an application error onto the MCP error envelope."""
    if isinstance(exc, McpError):
        return exc
    if isinstance(exc, InputError):
        return McpError(ErrorData(code=INVALID_PARAMS, message=str(exc)))
    if isinstance(exc, ConfigurationError):
        return McpError(
            ErrorData(code=INVALID_REQUEST, message=str(exc), data={"error_type": "configuration"})
        )
    if isinstance(exc, AuthorizationError):
        return McpError(
            ErrorData(code=INVALID_REQUEST, message=str(exc), data={"error_type": "authorization"})
        )
    if not isinstance(exc, UpstreamError):
        logger.exception("Unexpected error while handling a tool call")
    return McpError(ErrorData(code=INTERNAL_ERROR, message=str(exc) or "Unknown error"))


def create_mcp_server(tools: SpreadsheetTools, *, host: str = "127.0.0.1") -> FastMCP:
    """Build the FastMCP server with both spreadsheet tools registered.

    Streamable HTTP runs stateless with plain JSON responses so clients that do
    not track session IDs can call it. ``host`` is the HTTP bind address; FastMCP
    only enforces localhost ``Host`` headers when it is a loopback address.
    """
    return FastMCP(
        SERVER_NAME,
        tools=tools.definitions(),
        host=host,
        stateless_http=True,
        json_response=True,
    )


__all__ = ["SERVER_NAME", "SpreadsheetTools", "create_mcp_server", "to_mcp_error"]
