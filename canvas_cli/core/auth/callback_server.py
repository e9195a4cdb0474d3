"""HTTP callback server for the local OAuth flow.

This module contains the HTTP server infrastructure for receiving the
authorization redirect on localhost, separated from the high-level
flow orchestration in :mod:`oauth`.

The server never decides how long the attempt lasts. It reports exactly
one outcome (an :class:`OAuthToken` or an :class:`OAuthFlowError`) into
the queue it was given; the waiting flow owns the deadline and shuts
the server down.
"""

from __future__ import annotations

import html
import http.server
import logging
import queue
import secrets
import threading
import urllib.parse
from collections.abc import Callable

from .constants import OAuthDefaults, OAuthProtocol
from .exceptions import (
    AuthError,
    AuthorizationDeniedError,
    MissingCodeError,
    OAuthFlowError,
    StateMismatchError,
    TokenExchangeError,
)
from .oauth_token import OAuthToken

_logger = logging.getLogger(__name__)

CallbackOutcome = OAuthToken | OAuthFlowError

_STATE_SPENT_MESSAGE = "This login link was already used"

_PAGE_TEMPLATE = """<!doctype html>
<html>
<head><meta charset="utf-8"><title>Canvas CLI - {title}</title></head>
<body style="font-family: sans-serif; text-align: center; padding-top: 4em;">
<h2>{title}</h2>
<p>{message}</p>
</body>
</html>
"""


def _page(title: str, message: str) -> str:
    return _PAGE_TEMPLATE.format(title=title, message=html.escape(message))


_LOGIN_SUCCESS_HTML = _page(
    "Authentication successful", "You can close this window and return to the terminal."
)


class OAuthHTTPServer(http.server.HTTPServer):
    """HTTP server receiving the OAuth redirect for one authorization attempt.

    Args:
        server_address: (host, port) to bind
        state: CSRF state of the attempt
        exchange_code: Callable exchanging an authorization code for a token
        outcomes: Queue receiving the single outcome of the attempt
        callback_path: Path of the redirect URI
    """

    def __init__(
        self,
        server_address: tuple[str, int],
        state: str,
        exchange_code: Callable[[str], OAuthToken],
        outcomes: queue.Queue[CallbackOutcome],
        callback_path: str = OAuthDefaults.CALLBACK_PATH,
    ):
        super().__init__(server_address, OAuthCallbackHandler, bind_and_activate=True)
        self.state = state
        self.exchange_code = exchange_code
        self.outcomes = outcomes
        self.callback_path = callback_path

        self._lock = threading.Lock()
        self._state_spent = False

    def matches_state(self, received: str | None) -> bool:
        """Constant-time comparison against the attempt's state."""
        if received is None:
            return False
        return secrets.compare_digest(received.encode(), self.state.encode())

    def claim(self) -> bool:
        """Claim the single outcome slot of the attempt.

        Returns:
            True for the first caller, False once the state is spent
        """
        with self._lock:
            if self._state_spent:
                return False
            self._state_spent = True
            return True

    @property
    def state_spent(self) -> bool:
        with self._lock:
            return self._state_spent

    def report(self, outcome: CallbackOutcome) -> None:
        self.outcomes.put(outcome)


class OAuthCallbackHandler(http.server.BaseHTTPRequestHandler):
    """Handle the OAuth redirect.

    Checks run in order: state, provider error, code. Every outcome is
    reported once; requests arriving after that are answered with 400.
    """

    server: OAuthHTTPServer

    def do_GET(self) -> None:
        """Handle GET request."""
        parsed = urllib.parse.urlparse(self.path)

        if parsed.path != self.server.callback_path:
            self.send_error(OAuthProtocol.HTTP_NOT_FOUND, "Not Found")
            return

        params = urllib.parse.parse_qs(parsed.query)
        code = params.get("code", [None])[0]
        state = params.get("state", [None])[0]
        error = params.get("error", [None])[0]
        error_description = params.get("error_description", [None])[0]

        if self.server.state_spent:
            self._send_error_page(OAuthProtocol.HTTP_BAD_REQUEST, _STATE_SPENT_MESSAGE)
            return

        if not self.server.matches_state(state):
            _logger.warning("OAuth callback with invalid state parameter rejected")
            self._fail(OAuthProtocol.HTTP_BAD_REQUEST, StateMismatchError())
            return

        if error:
            self._fail(
                OAuthProtocol.HTTP_BAD_REQUEST,
                AuthorizationDeniedError(error, error_description),
            )
            return

        if not code:
            missing = MissingCodeError("no authorization code received")
            self._fail(OAuthProtocol.HTTP_BAD_REQUEST, missing)
            return

        if not self.server.claim():
            self._send_error_page(OAuthProtocol.HTTP_BAD_REQUEST, _STATE_SPENT_MESSAGE)
            return

        try:
            token = self.server.exchange_code(code)
        except OAuthFlowError as e:
            self._send_error_page(OAuthProtocol.HTTP_INTERNAL_ERROR, str(e))
            self.server.report(e)
            return
        except AuthError as e:
            self._send_error_page(OAuthProtocol.HTTP_INTERNAL_ERROR, str(e))
            self.server.report(TokenExchangeError(f"failed to exchange code for token: {e}"))
            return

        self._send_html(OAuthProtocol.HTTP_OK, _LOGIN_SUCCESS_HTML)
        self.server.report(token)

    def do_POST(self) -> None:
        """Handle POST request (not supported)."""
        self.send_error(OAuthProtocol.HTTP_NOT_FOUND, "Not Found")

    def log_message(self, fmt: str, *args: object) -> None:
        """Suppress access logs; the request line carries the authorization code."""
        pass

    def _fail(self, status: int, error: OAuthFlowError) -> None:
        if not self.server.claim():
            self._send_error_page(OAuthProtocol.HTTP_BAD_REQUEST, _STATE_SPENT_MESSAGE)
            return
        self._send_error_page(status, str(error))
        self.server.report(error)

    def _send_html(self, status: int, body: str) -> None:
        """Send HTML response."""
        encoded = body.encode()
        self.send_response(status)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(encoded)))
        self.end_headers()
        self.wfile.write(encoded)

    def _send_error_page(self, status: int, message: str) -> None:
        self._send_html(status, _page("Authentication failed", message))


__all__ = [
    "CallbackOutcome",
    "OAuthHTTPServer",
    "OAuthCallbackHandler",
]
