"""Service layer exports."""

from .authorization import (
    AuthorizationBootstrap,
    AuthorizationCodeReceiver,
    ConsoleCodeReceiver,
    LoopbackCodeReceiver,
    build_code_receiver,
)
from .google_tokens import GoogleTokenService
from .spreadsheet import SpreadsheetService

__all__ = [
    "AuthorizationBootstrap",
    "AuthorizationCodeReceiver",
    "ConsoleCodeReceiver",
    "GoogleTokenService",
    "LoopbackCodeReceiver",
    "SpreadsheetService",
    "build_code_receiver",
]
