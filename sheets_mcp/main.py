"""
Command-line entrypoint for the Google Sheets MCP server.

``serve`` exposes the spreadsheet tools over stdio or streamable HTTP and
``authorize`` runs the one-time consent flow that creates the token file::

    sheets-mcp authorize --mode loopback
    sheets-mcp serve --transport http --port 3000
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from typing import Callable

import uvicorn
from fastapi import FastAPI
from mcp.server.fastmcp import FastMCP
from pydantic import ValidationError

from sheets_mcp import __version__
from sheets_mcp.api.routes import router as api_router
from sheets_mcp.api.tools import SpreadsheetTools, create_mcp_server
from sheets_mcp.core.config import AppSettings, get_settings
from sheets_mcp.core.errors import SheetsMCPError
from sheets_mcp.core.logging import configure_logging
from sheets_mcp.dependencies import get_google_token_service, get_spreadsheet_service

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_AUTHORIZATION_ERROR = 4


def create_app(mcp_server: FastMCP) -> FastAPI:
    """Factory for the HTTP application hosting the MCP endpoint at ``/mcp``."""
    mcp_app = mcp_server.streamable_http_app()

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        async with mcp_server.session_manager.run():
            yield

    app = FastAPI(
        title="Google Sheets MCP Server",
        version=__version__,
        description="Append and read Google Sheets rows over the Model Context Protocol.",
        lifespan=lifespan,
    )
    app.include_router(api_router)
    app.mount("/", mcp_app)
    return app


def build_server(
    settings: AppSettings, *, transport: str, host: str | None = None
) -> FastMCP:
    """Wire the token service, spreadsheet service and tools into a server.

    Console code entry reads stdin, which the stdio transport owns, so in that
    combination a missing token file is reported instead of prompting.
    """
    interactive = not (transport == "stdio" and settings.oauth.auth_mode == "console")
    token_service = get_google_token_service(settings, interactive=interactive)
    service = get_spreadsheet_service(settings, token_service)
    return create_mcp_server(SpreadsheetTools(service), host=host or settings.host)


def _serve(settings: AppSettings, args: argparse.Namespace) -> int:
    transport = args.transport or settings.transport
    host = args.host or settings.host
    port = args.port or settings.port
    mcp_server = build_server(settings, transport=transport, host=host)
    if transport == "stdio":
        logger.info("Serving MCP over stdio")
        mcp_server.run(transport="stdio")
        return EXIT_OK

    logger.info("MCP HTTP server listening on http://%s:%s/mcp", host, port)
    uvicorn.run(create_app(mcp_server), host=host, port=port, log_level=settings.log_level.lower())
    return EXIT_OK


def _authorize(settings: AppSettings, args: argparse.Namespace) -> int:
    token_service = get_google_token_service(settings, mode=args.mode)
    try:
        asyncio.run(token_service.authorize())
    except SheetsMCPError as exc:
        print(f"Failed to complete OAuth flow: {exc}", file=sys.stderr)
        return EXIT_AUTHORIZATION_ERROR
    print(f"Tokens stored to {settings.oauth.token_path}")
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sheets-mcp",
        description="Google Sheets MCP server with managed OAuth credentials.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run the MCP server.")
    serve_parser.add_argument(
        "--transport",
        choices=("stdio", "http"),
        default=None,
        help="Transport to serve (default: MCP_TRANSPORT or stdio).",
    )
    serve_parser.add_argument("--host", default=None, help="HTTP bind host (default: HOST).")
    serve_parser.add_argument("--port", type=int, default=None, help="HTTP port (default: PORT).")

    authorize_parser = subparsers.add_parser(
        "authorize",
        help="Run the OAuth consent flow and store tokens.",
    )
    authorize_parser.add_argument(
        "--mode",
        choices=("loopback", "console"),
        default=None,
        help="How to receive the authorization code (default: GSHEETS_AUTH_MODE).",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        settings = get_settings()
    except ValidationError as exc:
        print(
            "Settings validation failed. Missing or invalid values detected:\n"
            f"{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_VALIDATION_ERROR

    configure_logging(settings.log_level)
    handlers: dict[str, Callable[[], int]] = {
        "serve": lambda: _serve(settings, args),
        "authorize": lambda: _authorize(settings, args),
    }
    return handlers[args.command]()


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
