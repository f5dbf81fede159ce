from __future__ import annotations

import httpx
import pytest
from mcp.server.fastmcp.exceptions import ToolError
from mcp.shared.exceptions import McpError
from mcp.types import INTERNAL_ERROR, INVALID_PARAMS, INVALID_REQUEST

from sheets_mcp.api.tools import SpreadsheetTools, create_mcp_server
from sheets_mcp.core.errors import (
    AuthorizationError,
    ConfigurationError,
    InputError,
    UpstreamError,
)
from sheets_mcp.main import create_app
from sheets_mcp.schemas import AppendRowsResult, ReadRowsResult

MCP_HEADERS = {
    "accept": "application/json, text/event-stream",
    "content-type": "application/json",
}


class StubSpreadsheetService:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.append_calls: list[tuple] = []
        self.read_calls: list[tuple] = []

    async def append_rows(self, rows, *, spreadsheet_id=None, sheet_range=None):
        self.append_calls.append((rows, spreadsheet_id, sheet_range))
        if self.error is not None:
            raise self.error
        return AppendRowsResult(updated_rows=len(rows), updated_range="Sheet1!A1:B2")

    async def read_rows(self, *, spreadsheet_id=None, sheet_range=None):
        self.read_calls.append((spreadsheet_id, sheet_range))
        if self.error is not None:
            raise self.error
        return ReadRowsResult(rows=[["a", "1"], ["b"]])


def _tools_call(name: str, arguments: dict) -> dict:
    return {
        "jsonrpc": "2.0",
        "id": 1,
        "method": "tools/call",
        "params": {"name": name, "arguments": arguments},
    }


@pytest.mark.asyncio
async def test_server_declares_both_tools_with_input_schemas() -> None:
    server = create_mcp_server(SpreadsheetTools(StubSpreadsheetService()))

    tools = {tool.name: tool for tool in await server.list_tools()}

    assert set(tools) == {"append_rows", "read_rows"}
    append_schema = tools["append_rows"].inputSchema
    assert append_schema["required"] == ["rows"]
    assert set(append_schema["properties"]) == {"rows", "spreadsheetId", "range"}
    assert append_schema["properties"]["rows"]["type"] == "array"
    assert append_schema["additionalProperties"] is False
    read_schema = tools["read_rows"].inputSchema
    assert set(read_schema["properties"]) == {"spreadsheetId", "range"}
    assert not read_schema.get("required")
    assert read_schema["additionalProperties"] is False


@pytest.mark.asyncio
async def test_tools_return_wire_shaped_results() -> None:
    service = StubSpreadsheetService()
    tools = SpreadsheetTools(service)

    appended = await tools.append_rows([["a", "1"], ["b", "2"]], range="Sheet1!A:B")
    read = await tools.read_rows(spreadsheetId="sheet-123")

    assert appended == {"updatedRows": 2, "updatedRange": "Sheet1!A1:B2"}
    assert read == {"rows": [["a", "1"], ["b"]]}
    assert service.append_calls == [([["a", "1"], ["b", "2"]], None, "Sheet1!A:B")]
    assert service.read_calls == [("sheet-123", None)]


@pytest.mark.asyncio
async def test_call_tool_passes_wire_arguments_to_service() -> None:
    service = StubSpreadsheetService()
    server = create_mcp_server(SpreadsheetTools(service))

    await server.call_tool(
        "append_rows",
        {"spreadsheetId": "client-sheet", "range": "Sheet1!A:B", "rows": [["a", "1"]]},
    )
    await server.call_tool("read_rows", {"spreadsheetId": "client-sheet", "range": "Sheet1!A:B"})

    assert service.append_calls == [([["a", "1"]], "client-sheet", "Sheet1!A:B")]
    assert service.read_calls == [("client-sheet", "Sheet1!A:B")]


@pytest.mark.asyncio
async def test_call_tool_rejects_unknown_arguments() -> None:
    service = StubSpreadsheetService()
    server = create_mcp_server(SpreadsheetTools(service))

    with pytest.raises(ToolError, match="spreadsheet_id"):
        await server.call_tool(
            "append_rows",
            {"spreadsheet_id": "client-sheet", "range": "Sheet1!A:B", "rows": [["a"]]},
        )

    assert service.append_calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("error", "code", "error_type"),
    [
        (InputError("Missing spreadsheet_id"), INVALID_PARAMS, None),
        (ConfigurationError("tokens.json not found"), INVALID_REQUEST, "configuration"),
        (AuthorizationError("invalid_grant"), INVALID_REQUEST, "authorization"),
        (UpstreamError("Requested entity was not found."), INTERNAL_ERROR, None),
        (RuntimeError("boom"), INTERNAL_ERROR, None),
    ],
)
async def test_errors_are_mapped_to_mcp_error_codes(error, code, error_type) -> None:
    tools = SpreadsheetTools(StubSpreadsheetService(error=error))

    with pytest.raises(McpError) as excinfo:
        await tools.read_rows(spreadsheetId="sheet-123", range="A1")

    assert excinfo.value.error.code == code
    assert excinfo.value.error.message == str(error)
    if error_type is not None:
        assert excinfo.value.error.data == {"error_type": error_type}


@pytest.mark.anyio
async def test_http_app_serves_health_endpoint() -> None:
    app = create_app(create_mcp_server(SpreadsheetTools(StubSpreadsheetService())))

    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver"
    ) as client:
        response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.anyio
async def test_http_tool_call_accepts_remote_host_when_bound_publicly() -> None:
    service = StubSpreadsheetService()
    app = create_app(create_mcp_server(SpreadsheetTools(service), host="0.0.0.0"))

    async with app.router.lifespan_context(app):
        async with httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://sheets.example.com:3000"
        ) as client:
            response = await client.post(
                "/mcp",
                json=_tools_call(
                    "append_rows",
                    {"spreadsheetId": "client-sheet", "range": "Sheet1!A:B", "rows": [["a", "1"]]},
                ),
                headers=MCP_HEADERS,
            )

    assert response.status_code == 200
    result = response.json()["result"]
    assert result["isError"] is False
    assert result["structuredContent"] == {"updatedRows": 1, "updatedRange": "Sheet1!A1:B2"}
    assert service.append_calls == [([["a", "1"]], "client-sheet", "Sheet1!A:B")]


@pytest.mark.anyio
async def test_http_tool_call_rejects_unknown_arguments() -> None:
    service = StubSpreadsheetService()
    app = create_app(create_mcp_server(SpreadsheetTools(service), host="0.0.0.0"))

    async with app.router.lifespan_context(app):
        async with httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://127.0.0.1:3000"
        ) as client:
            response = await client.post(
                "/mcp",
                json=_tools_call("read_rows", {"spreadsheet_id": "client-sheet", "range": "A1"}),
                headers=MCP_HEADERS,
            )

    assert response.status_code == 200
    result = response.json()["result"]
    assert result["isError"] is True
    assert "spreadsheet_id" in result["content"][0]["text"]
    assert service.read_calls == []


@pytest.mark.anyio
async def test_loopback_bound_server_still_rejects_foreign_host_header() -> None:
    app = create_app(create_mcp_server(SpreadsheetTools(StubSpreadsheetService())))

    async with app.router.lifespan_context(app):
        async with httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://sheets.example.com:3000"
        ) as client:
            response = await client.post(
                "/mcp",
                json=_tools_call("read_rows", {"spreadsheetId": "s", "range": "A1"}),
                headers=MCP_HEADERS,
            )

    assert response.status_code == 421
