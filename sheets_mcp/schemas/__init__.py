"""Public schema exports."""

from .rows import AppendRowsResult, ReadRowsResult

__all__ = [
    "AppendRowsResult",
    "ReadRowsResult",
]
