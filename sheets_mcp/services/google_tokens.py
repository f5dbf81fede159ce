"""
Helpers for retrieving and refreshing the Google OAuth credential.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone

from google.oauth2.credentials import Credentials

from sheets_mcp.clients.google_auth import GoogleOAuthClient
from sheets_mcp.clients.token_file import TokenFileStore
from sheets_mcp.core.errors import ConfigurationError
from sheets_mcp.models.credentials import CredentialRecord
from sheets_mcp.services.authorization import AuthorizationBootstrap

logger = logging.getLogger(__name__)


class GoogleTokenService:
    """Owns the process's single credential record.

    ``get_credentials`` loads the record on first use, refuses records without a
    refresh token, and renews the access token shortly before it expires. Work
    that needs the token file or the token endpoint runs in one shared task, so
    callers arriving while it is pending wait for the same outcome instead of
    starting their own.
    """

    _REFRESH_WINDOW = timedelta(seconds=60)

    def __init__(
        self,
        store: TokenFileStore,
        oauth_client: GoogleOAuthClient,
        bootstrap: AuthorizationBootstrap | None = None,
    ) -> None:
        self._store = store
        self._oauth = oauth_client
        self._bootstrap = bootstrap
        self._record: CredentialRecord | None = None
        self._pending: asyncio.Task[CredentialRecord] | None = None

    @property
    def record(self) -> CredentialRecord | None:
        return self._record

    async def get_credentials(self) -> Credentials:
        """Return credentials carrying a valid access token."""
        record = self._record
        if record is None or self._needs_refresh(self._validated(record)):
            record = await self._coalesce()
        return self._to_credentials(record)

    def invalidate_access_token(self, access_token: str | None) -> None:
        """Forget ``access_token`` so the next call refreshes it.

        A token that has already been replaced is left alone.
        """
        record = self._record
        if record is None or not access_token or record.access_token != access_token:
            return
        self._record = record.model_copy(update={"access_token": None})
        logger.info("Discarded a rejected Google access token")

    async def authorize(self) -> CredentialRecord:
        """Run the consent flow, persist the result and make it current."""
        if self._bootstrap is None:
            raise ConfigurationError("No authorization flow is configured.")
        record = await self._bootstrap.run()
        self._store.save(record)
        self._record = record
        logger.info("Stored new OAuth credentials in %s", self._store.path)
        return record

    async def _coalesce(self) -> CredentialRecord:
        if self._pending is None:
            self._pending = asyncio.ensure_future(self._ensure_valid_record())
            self._pending.add_done_callback(self._clear_pending)
        return await asyncio.shield(self._pending)

    def _clear_pending(self, task: asyncio.Task[CredentialRecord]) -> None:
        if self._pending is task:
            self._pending = None
        # Every waiter may have been cancelled; mark the failure as retrieved.
        if not task.cancelled():
            task.exception()

    async def _ensure_valid_record(self) -> CredentialRecord:
        if self._record is None:
            self._record = await self._load_or_authorize()

        record = self._validated(self._record)
        if self._needs_refresh(record):
            record = await self._refresh(record)
        return record

    async def _load_or_authorize(self) -> CredentialRecord:
        record = self._store.load()
        if record is not None:
            logger.info("Loaded OAuth credentials from %s", self._store.path)
            return record
        if self._bootstrap is None:
            raise ConfigurationError(
                f"{self._store.path} not found. Run `sheets-mcp authorize` to generate tokens."
            )
        logger.warning("No stored OAuth credentials; starting interactive authorization")
        return await self.authorize()

    async def _refresh(self, record: CredentialRecord) -> CredentialRecord:
        refreshed_at = datetime.now(timezone.utc)
        token_payload = await self._oauth.refresh_token(record.refresh_token or "")
        refreshed = record.merge_token_response(token_payload, issued_at=refreshed_at)
        self._store.save(refreshed)
        self._record = refreshed
        logger.info("Refreshed Google access token; expires at %s", refreshed.expiry)
        return refreshed

    def _validated(self, record: CredentialRecord) -> CredentialRecord:
        if not record.refresh_token:
            raise ConfigurationError(
                f"{self._store.path} is missing a refresh_token. "
                "Delete the file and run `sheets-mcp authorize`."
            )
        return record

    def _needs_refresh(self, record: CredentialRecord) -> bool:
        remaining = record.seconds_remaining()
        if remaining is None or not record.access_token:
            return True
        return remaining < self._REFRESH_WINDOW.total_seconds()

    def _to_credentials(self, record: CredentialRecord) -> Credentials:
        # Token only: renewal stays here so every new token is persisted.
        return Credentials(token=record.access_token, scopes=list(self._oauth.scopes))


__all__ = ["GoogleTokenService"]
