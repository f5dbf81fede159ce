"""
One-time interactive OAuth consent.

The bootstrap builds a consent URL, asks a code receiver for the authorization
code the user obtains, and exchanges it for the initial credential record.
Two receivers exist: a one-shot loopback HTTP listener and console entry.
"""

from __future__ import annotations

import abc
import asyncio
import logging
import secrets
import sys
from datetime import datetime, timezone
from typing import Callable, TextIO
from urllib.parse import parse_qs, urlparse

from sheets_mcp.clients.google_auth import GoogleOAuthClient
from sheets_mcp.core.config import OAuthSettings
from sheets_mcp.core.errors import AuthorizationError
from sheets_mcp.models.credentials import CredentialRecord

logger = logging.getLogger(__name__)

_CONFIRMATION_PAGE = (
    b"<html><body><h3>You may close this window and return to the terminal.</h3>"
    b"</body></html>"
)


class AuthorizationCodeReceiver(abc.ABC):
    """Obtains an authorization code from the user for a consent URL."""

    @abc.abstractmethod
    async def prepare(self) -> str:
        """Get ready to receive a code and return the redirect URI to use."""

    @abc.abstractmethod
    async def wait_for_code(self, authorization_url: str, *, state: str) -> str:
        """Show ``authorization_url`` to the user and return the code."""

    async def close(self) -> None:
        """Release anything acquired by :meth:`prepare`."""


class LoopbackCodeReceiver(AuthorizationCodeReceiver):
    """Receive the code through a short-lived local HTTP listener.

    The listener answers the first request to the callback path and then stops
    accepting connections, whatever that request carried.
    """

    CALLBACK_PATH = "/oauth2callback"

    def __init__(self, host: str = "localhost", port: int = 0, *, output: TextIO | None = None) -> None:
        self._host = host
        self._port = port
        self._output = output or sys.stderr
        self._server: asyncio.AbstractServer | None = None
        self._result: asyncio.Future[str] | None = None
        self._redirect_uri: str | None = None
        self._expected_state: str | None = None

    @property
    def redirect_uri(self) -> str | None:
        return self._redirect_uri

    @property
    def is_listening(self) -> bool:
        return self._server is not None and self._server.is_serving()

    async def prepare(self) -> str:
        if self._server is not None:
            raise RuntimeError("Loopback listener already started.")
        self._result = asyncio.get_running_loop().create_future()
        self._server = await asyncio.start_server(self._handle_connection, self._host, self._port)
        port = self._server.sockets[0].getsockname()[1]
        self._redirect_uri = f"http://{self._host}:{port}{self.CALLBACK_PATH}"
        logger.info("Listening on %s for the OAuth callback", self._redirect_uri)
        return self._redirect_uri

    async def wait_for_code(self, authorization_url: str, *, state: str) -> str:
        if self._result is None:
            raise RuntimeError("prepare() must be awaited before wait_for_code().")
        self._expected_state = state
        print("Authorize this app by visiting this URL:\n", file=self._output)
        print(authorization_url, file=self._output)
        print("\nWaiting for the OAuth callback...", file=self._output, flush=True)
        return await self._result

    async def close(self) -> None:
        if self._server is None:
            return
        server, self._server = self._server, None
        server.close()
        await server.wait_closed()
        if self._result is not None and not self._result.done():
            self._result.cancel()
        self._result = None

    async def _handle_connection(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        try:
            request_line = await reader.readline()
            while (await reader.readline()) not in (b"\r\n", b"\n", b""):
                pass
            parts = request_line.decode("latin-1").split()
            target = urlparse(parts[1] if len(parts) > 1 else "/")

            if target.path != self.CALLBACK_PATH or self._result is None or self._result.done():
                writer.write(b"HTTP/1.1 404 Not Found\r\nContent-Length: 0\r\nConnection: close\r\n\r\n")
                await writer.drain()
                return

            writer.write(
                b"HTTP/1.1 200 OK\r\nContent-Type: text/html\r\n"
                + f"Content-Length: {len(_CONFIRMATION_PAGE)}\r\n".encode()
                + b"Connection: close\r\n\r\n"
                + _CONFIRMATION_PAGE
            )
            await writer.drain()
            self._complete(parse_qs(target.query))
        finally:
            writer.close()

    def _complete(self, params: dict[str, list[str]]) -> None:
        assert self._server is not None and self._result is not None
        # One callback only: stop accepting before resolving.
        self._server.close()
        logger.info("OAuth callback received; loopback listener closed")

        error = params.get("error", [None])[0]
        code = params.get("code", [None])[0]
        state = params.get("state", [None])[0]
        if error:
            self._result.set_exception(AuthorizationError(f"OAuth error: {error}"))
        elif not code:
            self._result.set_exception(AuthorizationError("No code found in callback URL."))
        elif self._expected_state and state != self._expected_state:
            self._result.set_exception(AuthorizationError("OAuth state mismatch in callback."))
        else:
            self._result.set_result(code)


class ConsoleCodeReceiver(AuthorizationCodeReceiver):
    """Out-of-band flow: the user pastes the code shown by Google."""

    REDIRECT_URI = "urn:ietf:wg:oauth:2.0:oob"

    def __init__(
        self,
        *,
        input_func: Callable[[str], str] = input,
        output: TextIO | None = None,
    ) -> None:
        self._input = input_func
        self._output = output or sys.stderr

    async def prepare(self) -> str:
        return self.REDIRECT_URI

    async def wait_for_code(self, authorization_url: str, *, state: str) -> str:
        print("Authorize this app by visiting this URL:", file=self._output)
        print(authorization_url, file=self._output, flush=True)
        code = await asyncio.to_thread(
            self._input, "Enter the authorization code from the browser: "
        )
        code = code.strip()
        if not code:
            raise AuthorizationError("No authorization code provided.")
        return code


class AuthorizationBootstrap:
    """Run the consent flow once and return the initial credential record."""

    def __init__(self, oauth_client: GoogleOAuthClient, receiver: AuthorizationCodeReceiver) -> None:
        self._oauth = oauth_client
        self._receiver = receiver

    async def run(self) -> CredentialRecord:
        state = secrets.token_urlsafe(16)
        redirect_uri = await self._receiver.prepare()
        try:
            authorization_url = self._oauth.build_authorization_url(
                redirect_uri=redirect_uri, state=state
            )
            code = await self._receiver.wait_for_code(authorization_url, state=state)
        finally:
            await self._receiver.close()

        issued_at = datetime.now(timezone.utc)
        token_payload = await self._oauth.exchange_authorization_code(
            code, redirect_uri=redirect_uri
        )
        if not token_payload.get("refresh_token"):
            raise AuthorizationError(
                "No refresh_token received from Google. Revoke this app's access and "
                "re-run authorization so consent is granted with offline access."
            )
        logger.info("Authorization code exchanged for an initial token pair")
        return CredentialRecord.from_token_response(token_payload, issued_at=issued_at)


def build_code_receiver(settings: OAuthSettings, *, mode: str | None = None) -> AuthorizationCodeReceiver:
    """Pick the receiver for ``mode`` (defaults to the configured auth mode)."""
    mode = mode or settings.auth_mode
    if mode == "loopback":
        return LoopbackCodeReceiver(settings.callback_host, settings.callback_port)
    if mode == "console":
        return ConsoleCodeReceiver()
    raise ValueError(f"Unknown authorization mode: {mode}")


__all__ = [
    "AuthorizationBootstrap",
    "AuthorizationCodeReceiver",
    "ConsoleCodeReceiver",
    "LoopbackCodeReceiver",
    "build_code_receiver",
]
