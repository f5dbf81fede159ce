"""
Logging utilities for the MCP server and the authorization command.

Provides a consistent logging format and configuration. Records go to stderr
because stdout carries protocol frames when serving over stdio.
"""

import logging
import sys
from typing import TextIO


def configure_logging(level: str = "INFO", stream: TextIO | None = None) -> None:
    """Configure root logging with a sensible default format."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=stream or sys.stderr,
    )


__all__ = ["configure_logging"]
