"""Integration tests for the localhost OAuth callback server."""

import queue
import threading

import httpx
import pytest

from canvas_cli.core.auth.callback_server import OAuthHTTPServer
from canvas_cli.core.auth.exceptions import (
    AuthorizationDeniedError,
    MissingCodeError,
    StateMismatchError,
    TokenExchangeError,
)
from canvas_cli.core.auth.http_client import HttpError
from canvas_cli.core.auth.oauth_token import OAuthToken

STATE = "expected-state"


class CallbackServerHarness:
    """Runs an OAuthHTTPServer on a free port with a scripted code exchange."""

    def __init__(self, port: int):
        self.outcomes: queue.Queue = queue.Queue()
        self.exchanged: list[str] = []
        self.exchange_error: Exception | None = None
        self.server = OAuthHTTPServer(
            ("localhost", port),
            state=STATE,
            exchange_code=self._exchange,
            outcomes=self.outcomes,
        )
        self.base_url = f"http://127.0.0.1:{port}"
        self._thread = threading.Thread(target=self.server.serve_forever, daemon=True)

    def _exchange(self, code: str) -> OAuthToken:
        self.exchanged.append(code)
        if self.exchange_error is not None:
            raise self.exchange_error
        return OAuthToken(access_token=f"token-for-{code}")

    def start(self):
        self._thread.start()

    def stop(self):
        self.server.shutdown()
        self.server.server_close()
        self._thread.join(5)

    def get(self, path: str, **params) -> httpx.Response:
        return httpx.get(self.base_url + path, params=params, timeout=5, trust_env=False)

    def outcome(self):
        return self.outcomes.get(timeout=5)


@pytest.fixture
def harness(free_port):
    h = CallbackServerHarness(free_port)
    h.start()
    yield h
    h.stop()


@pytest.mark.integration
class TestCallbackServer:
    """Test cases for OAuthCallbackHandler request handling."""

    def test_valid_callback_exchanges_code(self, harness):
        response = harness.get("/oauth/callback", code="abc", state=STATE)

        assert response.status_code == 200
        assert "Authentication successful" in response.text
        assert harness.exchanged == ["abc"]
        outcome = harness.outcome()
        assert isinstance(outcome, OAuthToken)
        assert outcome.access_token == "token-for-abc"

    def test_state_mismatch_is_rejected(self, harness):
        response = harness.get("/oauth/callback", code="abc", state="forged")

        assert response.status_code == 400
        assert isinstance(harness.outcome(), StateMismatchError)
        assert harness.exchanged == []

    def test_missing_state_is_rejected(self, harness):
        response = harness.get("/oauth/callback", code="abc")

        assert response.status_code == 400
        assert isinstance(harness.outcome(), StateMismatchError)

    def test_provider_error_is_reported(self, harness):
        response = harness.get(
            "/oauth/callback",
            state=STATE,
            error="access_denied",
            error_description="user said no",
        )

        assert response.status_code == 400
        outcome = harness.outcome()
        assert isinstance(outcome, AuthorizationDeniedError)
        assert outcome.error == "access_denied"
        assert "user said no" in str(outcome)

    def test_missing_code_is_rejected(self, harness):
        response = harness.get("/oauth/callback", state=STATE)

        assert response.status_code == 400
        assert isinstance(harness.outcome(), MissingCodeError)

    def test_unknown_path_is_not_found(self, harness):
        response = harness.get("/favicon.ico")

        assert response.status_code == 404
        assert harness.outcomes.empty()

    def test_post_is_not_found(self, harness):
        response = httpx.post(harness.base_url + "/oauth/callback", timeout=5, trust_env=False)

        assert response.status_code == 404

    def test_second_callback_is_rejected(self, harness):
        harness.get("/oauth/callback", code="abc", state=STATE)
        harness.outcome()

        response = harness.get("/oauth/callback", code="def", state=STATE)

        assert response.status_code == 400
        assert "already used" in response.text
        assert harness.exchanged == ["abc"]
        assert harness.outcomes.empty()

    def test_state_is_spent_after_mismatch(self, harness):
        harness.get("/oauth/callback", code="abc", state="forged")
        harness.outcome()

        response = harness.get("/oauth/callback", code="abc", state=STATE)

        assert response.status_code == 400
        assert harness.exchanged == []

    def test_exchange_failure_is_reported(self, harness):
        harness.exchange_error = TokenExchangeError("failed to exchange code for token: nope")

        response = harness.get("/oauth/callback", code="abc", state=STATE)

        assert response.status_code == 500
        assert isinstance(harness.outcome(), TokenExchangeError)

    def test_other_auth_errors_become_exchange_errors(self, harness):
        harness.exchange_error = HttpError(0, "connection refused", "", "https://canvas.test")

        response = harness.get("/oauth/callback", code="abc", state=STATE)

        assert response.status_code == 500
        outcome = harness.outcome()
        assert isinstance(outcome, TokenExchangeError)
        assert "connection refused" in str(outcome)

    def test_error_page_escapes_html(self, harness):
        response = harness.get(
            "/oauth/callback",
            state=STATE,
            error="access_denied",
            error_description="<script>alert(1)</script>",
        )

        assert "<script>" not in response.text
        assert "&lt;script&gt;" in response.text
