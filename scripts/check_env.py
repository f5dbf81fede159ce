"""Utility for verifying that the server's configuration and tokens are usable.

The tool performs two checks:

1. It attempts to instantiate ``AppSettings`` using the provided ``.env`` file,
   surfacing missing or malformed configuration entries before the server
   starts failing tool calls.
2. It can inspect the token file written by ``sheets-mcp authorize`` and report
   whether it still holds a refresh token and when the access token expires.

Example usages::

    # Validate required settings are present.
    python -m scripts.check_env check --env-file /opt/sheets-mcp/.env

    # Also confirm the token file can authorize calls.
    python -m scripts.check_env token --env-file /opt/sheets-mcp/.env
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Callable

from pydantic import ValidationError

from sheets_mcp.clients.token_file import TokenFileStore
from sheets_mcp.core.config import AppSettings, _load_env_file
from sheets_mcp.core.errors import ConfigurationError

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_TOKEN_ERROR = 4
EXIT_RUNTIME_ERROR = 5


def _validate_settings(env_file: Path) -> AppSettings:
    """Ensure required settings can be loaded from the supplied env file."""
    _load_env_file(str(env_file))
    return AppSettings()  # type: ignore[call-arg]


def _inspect_token_file(settings: AppSettings, token_path: Path | None) -> int:
    """Report whether the token file can be used to authorize calls."""
    store = TokenFileStore(token_path or settings.oauth.token_path)
    try:
        record = store.load()
    except ConfigurationError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_TOKEN_ERROR

    if record is None:
        print(
            f"Token file {store.path} does not exist. Run `sheets-mcp authorize` first.",
            file=sys.stderr,
        )
        return EXIT_TOKEN_ERROR
    if not record.refresh_token:
        print(
            f"Token file {store.path} is missing a refresh_token. "
            "Delete it and run `sheets-mcp authorize`.",
            file=sys.stderr,
        )
        return EXIT_TOKEN_ERROR

    remaining = record.seconds_remaining()
    if remaining is None or remaining <= 0:
        print(f"Token file {store.path} OK; access token will be refreshed on next use.")
    else:
        print(f"Token file {store.path} OK; access token valid until {record.expiry.isoformat()}.")
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate required settings and the stored OAuth tokens."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common_arguments(subparser: argparse.ArgumentParser) -> None:
        subparser.add_argument(
            "--env-file",
            default=".env",
            type=Path,
            help="Path to the environment file (default: .env in the repo root).",
        )

    check_parser = subparsers.add_parser(
        "check",
        help="Validate settings without touching the token file.",
    )
    add_common_arguments(check_parser)

    token_parser = subparsers.add_parser(
        "token",
        help="Validate settings and inspect the stored token file.",
    )
    add_common_arguments(token_parser)
    token_parser.add_argument(
        "--token-file",
        default=None,
        type=Path,
        help="Token file to inspect (default: GSHEETS_TOKEN_PATH).",
    )

    return parser


def _ensure_env_file(env_file: Path) -> None:
    if not env_file.exists():
        raise FileNotFoundError(
            f"Environment file {env_file} does not exist. "
            "Ensure the path is correct or create it before running this tool."
        )


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    env_file: Path = args.env_file

    try:
        _ensure_env_file(env_file)
        settings = _validate_settings(env_file)
    except FileNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except ValidationError as exc:
        print(
            "Settings validation failed. Missing or invalid values detected:\n"
            f"{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_VALIDATION_ERROR
    except Exception as exc:  # pylint: disable=broad-except
        print(f"Unexpected error during validation: {exc}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    command: str = args.command
    handlers: dict[str, Callable[[], int]] = {
        "check": lambda: EXIT_OK,
        "token": lambda: _inspect_token_file(settings, getattr(args, "token_file", None)),
    }
    return handlers[command]()


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
