"""Schemas for spreadsheet tool results."""

from __future__ import annotations

from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field


class AppendRowsResult(BaseModel):
    """Outcome of an append call."""

    model_config = ConfigDict(populate_by_name=True)

    updated_rows: int = Field(0, alias="updatedRows", description="Number of rows written.")
    updated_range: str = Field(
        "", alias="updatedRange", description="A1 range the appended values occupy."
    )


class ReadRowsResult(BaseModel):
    """Rows returned by a read call, exactly as the API sent them."""

    rows: List[List[Any]] = Field(default_factory=list)


__all__ = ["AppendRowsResult", "ReadRowsResult"]
