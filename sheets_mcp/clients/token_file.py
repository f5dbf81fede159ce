"""JSON file persistence for the OAuth credential record."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from sheets_mcp.core.errors import ConfigurationError
from sheets_mcp.models.credentials import CredentialRecord

logger = logging.getLogger(__name__)


class TokenFileStore:
    """Read and atomically replace the token file."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> CredentialRecord | None:
        """Return the stored record, or ``None`` when no token file exists."""
        try:
            contents = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

        try:
            payload = json.loads(contents)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(
                f"{self._path} is not valid JSON. Delete it and run `sheets-mcp authorize`."
            ) from exc
        if not isinstance(payload, dict):
            raise ConfigurationError(
                f"{self._path} must contain a JSON object. "
                "Delete it and run `sheets-mcp authorize`."
            )
        try:
            return CredentialRecord.model_validate(payload)
        except ValidationError as exc:
            raise ConfigurationError(f"{self._path} holds an invalid token record: {exc}") from exc

    def save(self, record: CredentialRecord) -> None:
        """Write the record to a sibling temp file and rename it over the target."""
        parent = self._path.resolve().parent
        parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(dir=parent, prefix=".tmp_", suffix=".json", text=True)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(record.model_dump(mode="json"), handle, indent=2)
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("Persisted OAuth token record to %s", self._path)


__all__ = ["TokenFileStore"]
