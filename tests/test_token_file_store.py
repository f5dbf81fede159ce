from __future__ import annotations

import json
import stat
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from sheets_mcp.clients.token_file import TokenFileStore
from sheets_mcp.core.errors import ConfigurationError
from sheets_mcp.models.credentials import CredentialRecord


def test_load_returns_none_when_file_missing(tmp_path: Path) -> None:
    store = TokenFileStore(tmp_path / "tokens.json")

    assert store.load() is None


def test_save_then_load_keeps_every_field(tmp_path: Path) -> None:
    store = TokenFileStore(tmp_path / "tokens.json")
    expiry = datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)
    record = CredentialRecord(
        access_token="access",
        refresh_token="refresh",
        expiry=expiry,
        scope="https://www.googleapis.com/auth/spreadsheets",
        token_type="Bearer",
    )

    store.save(record)
    loaded = store.load()

    assert loaded is not None
    assert loaded.access_token == "access"
    assert loaded.refresh_token == "refresh"
    assert loaded.expiry == expiry
    assert loaded.model_dump()["scope"] == "https://www.googleapis.com/auth/spreadsheets"
    assert loaded.model_dump()["token_type"] == "Bearer"


def test_round_trip_includes_merged_refresh_fields(tmp_path: Path) -> None:
    store = TokenFileStore(tmp_path / "tokens.json")
    original = CredentialRecord(access_token="old", refresh_token="refresh", custom="kept")
    issued_at = datetime(2030, 1, 1, tzinfo=timezone.utc)

    refreshed = original.merge_token_response(
        {"access_token": "new", "expires_in": 3599, "id_token": "jwt"},
        issued_at=issued_at,
    )
    store.save(refreshed)
    loaded = store.load()

    assert loaded is not None
    data = loaded.model_dump()
    assert data["access_token"] == "new"
    assert data["refresh_token"] == "refresh"
    assert data["custom"] == "kept"
    assert data["id_token"] == "jwt"
    assert loaded.expiry == issued_at + timedelta(seconds=3599)


def test_save_writes_readable_json_without_leftover_temp_files(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "tokens.json"
    store = TokenFileStore(path)

    store.save(CredentialRecord(access_token="a", refresh_token="r"))
    store.save(CredentialRecord(access_token="b", refresh_token="r"))

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["access_token"] == "b"
    assert payload["expiry"] is None
    assert [p.name for p in path.parent.iterdir()] == ["tokens.json"]
    assert stat.S_IMODE(path.stat().st_mode) == 0o600


def test_load_accepts_legacy_expiry_milliseconds(tmp_path: Path) -> None:
    path = tmp_path / "tokens.json"
    path.write_text(
        json.dumps(
            {
                "access_token": "a",
                "refresh_token": "r",
                "expiry_date": 1_900_000_000_000,
            }
        ),
        encoding="utf-8",
    )

    loaded = TokenFileStore(path).load()

    assert loaded is not None
    assert loaded.expiry == datetime.fromtimestamp(1_900_000_000, tz=timezone.utc)


@pytest.mark.parametrize("contents", ["{not json", "[1, 2, 3]"])
def test_load_rejects_malformed_file(tmp_path: Path, contents: str) -> None:
    path = tmp_path / "tokens.json"
    path.write_text(contents, encoding="utf-8")

    with pytest.raises(ConfigurationError):
        TokenFileStore(path).load()
