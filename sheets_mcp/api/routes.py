"""
FastAPI routes served next to the MCP endpoint.
"""

from __future__ import annotations

from http import HTTPStatus

from fastapi import APIRouter

router = APIRouter()


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


__all__ = ["router"]
