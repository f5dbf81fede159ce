"""
Domain model for the persisted OAuth token record.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class CredentialRecord(BaseModel):
    """The single token record held in memory and in the token file.

    Fields the authorization server returns beyond the three named ones are kept
    as extras so they survive every load, refresh and save.
    """

    model_config = ConfigDict(extra="allow")

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expiry: Optional[datetime] = Field(
        None, description="Absolute UTC expiry of the access token."
    )

    @model_validator(mode="before")
    @classmethod
    def _migrate_legacy_expiry(cls, data: Any) -> Any:
        """Accept files that store ``expiry_date`` in epoch milliseconds."""
        if not isinstance(data, dict):
            return data
        if data.get("expiry") is None and data.get("expiry_date"):
            data = dict(data)
            data["expiry"] = datetime.fromtimestamp(
                int(data["expiry_date"]) / 1000, tz=timezone.utc
            )
        return data

    @field_validator("expiry")
    @classmethod
    def _ensure_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @classmethod
    def from_token_response(
        cls, payload: Dict[str, Any], *, issued_at: datetime | None = None
    ) -> "CredentialRecord":
        """Build a record from a token endpoint response body."""
        return cls.model_validate(_with_expiry(payload, issued_at))

    def merge_token_response(
        self, payload: Dict[str, Any], *, issued_at: datetime | None = None
    ) -> "CredentialRecord":
        """Return a copy updated with a refresh response.

        Renewal responses usually omit ``refresh_token``; the existing one is kept.
        """
        merged = self.model_dump()
        merged.update(_with_expiry(payload, issued_at))
        if not payload.get("refresh_token"):
            merged["refresh_token"] = self.refresh_token
        return type(self).model_validate(merged)

    def seconds_remaining(self, now: datetime | None = None) -> float | None:
        """Remaining access token lifetime, or ``None`` when expiry is unknown."""
        if self.expiry is None:
            return None
        now = now or datetime.now(timezone.utc)
        return (self.expiry - now).total_seconds()


def _with_expiry(payload: Dict[str, Any], issued_at: datetime | None) -> Dict[str, Any]:
    data = dict(payload)
    expires_in = data.get("expires_in")
    if expires_in is not None:
        issued_at = issued_at or datetime.now(timezone.utc)
        data["expiry"] = issued_at + timedelta(seconds=int(expires_in))
    return data


__all__ = ["CredentialRecord"]
