"""
Application configuration models and helpers.

Centralizes settings management so the MCP server, the authorization command
and the maintenance scripts share a consistent configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

import os

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


class GoogleSettings(BaseSettings):
    """OAuth client registration used for every Google API interaction."""

    client_id: str = Field(..., validation_alias="GSHEETS_CLIENT_ID")
    client_secret: str = Field(..., validation_alias="GSHEETS_CLIENT_SECRET")


class OAuthSettings(BaseSettings):
    """OAuth consent and credential persistence configuration."""

    scopes: str = Field(
        "https://www.googleapis.com/auth/spreadsheets",
        validation_alias="GSHEETS_OAUTH_SCOPES",
        description="Comma-separated list of scopes requested during consent.",
    )
    auth_mode: Literal["loopback", "console"] = Field(
        "loopback",
        validation_alias="GSHEETS_AUTH_MODE",
        description="How the authorization code is collected from the user.",
    )
    callback_host: str = Field("localhost", validation_alias="GSHEETS_OAUTH_CALLBACK_HOST")
    callback_port: int = Field(
        5173,
        validation_alias="GSHEETS_OAUTH_CALLBACK_PORT",
        description="Loopback listener port; 0 picks an ephemeral port.",
    )
    token_path: Path = Field(Path("tokens.json"), validation_alias="GSHEETS_TOKEN_PATH")

    @property
    def scope_list(self) -> tuple[str, ...]:
        """Scopes as a tuple, tolerating commas and whitespace as separators."""
        return tuple(
            scope for scope in self.scopes.replace(",", " ").split() if scope.strip()
        )


class SheetsSettings(BaseSettings):
    """Fallback targets used when a tool call omits them."""

    default_spreadsheet_id: Optional[str] = Field(
        None, validation_alias="GSHEETS_SPREADSHEET_ID"
    )
    default_range: Optional[str] = Field(None, validation_alias="GSHEETS_RANGE")


class AppSettings(BaseSettings):
    """Root settings object for the MCP server process."""

    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    transport: Literal["stdio", "http"] = Field("stdio", validation_alias="MCP_TRANSPORT")
    host: str = Field("127.0.0.1", validation_alias="HOST")
    port: int = Field(3000, validation_alias="PORT")
    google: GoogleSettings = Field(default_factory=GoogleSettings)
    oauth: OAuthSettings = Field(default_factory=OAuthSettings)
    sheets: SheetsSettings = Field(default_factory=SheetsSettings)

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "GoogleSettings",
    "OAuthSettings",
    "SheetsSettings",
    "get_settings",
]
