"""OAuth 2.0 Authorization Code + PKCE flow for Canvas instances.

This module provides high-level OAuth flow orchestration.
HTTP server infrastructure is in callback_server.py, token endpoint
grants are in token_exchanger.py.

Modes:

- LOCAL: a callback server on localhost receives the redirect
- OOB: the user pastes the authorization code into the terminal
- AUTO: LOCAL, falling back to OOB when the local flow fails
"""

from __future__ import annotations

import enum
import logging
import queue
import sys
import threading
import typing
import urllib.parse
import webbrowser
from dataclasses import dataclass, field

from .callback_server import CallbackOutcome, OAuthHTTPServer
from .constants import (
    OAuthDefaults,
    OAuthEndpoints,
    OAuthProtocol,
    PkceProtocol,
    TokenRefreshDefaults,
)
from .exceptions import (
    AuthError,
    AuthFlowCancelled,
    AuthFlowTimeout,
    ConfigurationError,
    MissingCodeError,
    OAuthFlowError,
    ValidationError,
)
from .http_client import HttpClient, HttpxHttpClient
from .oauth_token import OAuthToken
from .pkce import generate_pkce, generate_state
from .token_exchanger import TokenExchangeContext, TokenExchanger
from .validation import validate_port, validate_timeout, validate_url

_logger = logging.getLogger(__name__)

# Posted into the outcome queue by OAuthFlow.cancel()
_CANCELLED = object()


class OAuthMode(str, enum.Enum):
    """How the authorization code gets back to the CLI."""

    AUTO = "auto"
    LOCAL = "local"
    OOB = "oob"

    @classmethod
    def parse(cls, value: str | OAuthMode) -> OAuthMode:
        """Parse a mode name ("auto", "local" or "oob", case-insensitive).

        Raises:
            ValidationError: If the name is unknown
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            names = ", ".join(m.value for m in cls)
            raise ValidationError("mode", value, f"must be one of: {names}") from None


class FlowState(enum.Enum):
    """Lifecycle of one authorization attempt."""

    IDLE = "idle"
    AWAITING_USER_ACTION = "awaiting_user_action"
    EXCHANGING_CODE = "exchanging_code"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


@dataclass
class OAuthConfig:
    """Configuration for the OAuth flow.

    Attributes:
        base_url: Canvas instance URL (trailing slash removed)
        client_id: Developer key client ID
        client_secret: Developer key secret ("" for public clients)
        scopes: Requested scopes (omitted from the request when empty)
        mode: AUTO, LOCAL or OOB (names are accepted too)
        callback_port: Local callback port, 1024-65535 (0 selects 8080)
        redirect_url: Redirect URI override for the local flow
        timeout: Seconds to wait for the callback (1-3600)

    Raises:
        ConfigurationError: If base_url or client_id is missing
        ValidationError: If any other parameter fails validation
    """

    base_url: str
    client_id: str
    client_secret: str = ""
    scopes: typing.Sequence[str] = field(default_factory=tuple)
    mode: OAuthMode = OAuthMode.AUTO
    callback_port: int = OAuthDefaults.CALLBACK_PORT
    redirect_url: str = ""
    timeout: float = OAuthDefaults.CALLBACK_TIMEOUT

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.base_url:
            raise ConfigurationError("base URL is required")
        if not self.client_id:
            raise ConfigurationError("client ID is required")

        self.base_url = validate_url(self.base_url.rstrip("/"), "base_url")
        self.mode = OAuthMode.parse(self.mode)
        self.scopes = tuple(self.scopes)

        if self.callback_port == 0:
            self.callback_port = OAuthDefaults.CALLBACK_PORT
        validate_port(self.callback_port, "callback_port")
        validate_timeout(self.timeout, "timeout")

        if not self.redirect_url:
            self.redirect_url = (
                f"http://{OAuthDefaults.CALLBACK_HOST}:{self.callback_port}"
                f"{OAuthDefaults.CALLBACK_PATH}"
            )
        else:
            validate_url(self.redirect_url, "redirect_url")

    @property
    def authorize_endpoint(self) -> str:
        return self.base_url + OAuthEndpoints.AUTHORIZE_PATH

    @property
    def token_endpoint(self) -> str:
        return self.base_url + OAuthEndpoints.TOKEN_PATH

    @property
    def current_user_endpoint(self) -> str:
        return self.base_url + OAuthEndpoints.CURRENT_USER_PATH

    def __repr__(self) -> str:
        return (
            f"OAuthConfig(base_url={self.base_url!r}, client_id={self.client_id!r}, "
            f"has_client_secret={bool(self.client_secret)}, mode={self.mode.value!r}, "
            f"callback_port={self.callback_port}, timeout={self.timeout:g})"
        )


class OAuthFlow:
    """One OAuth 2.0 Authorization Code + PKCE attempt against a Canvas instance.

    The flow generates its PKCE pair and CSRF state at construction.
    ``authenticate()`` runs the attempt in the configured mode and
    returns the issued token; the flow is then spent.

    Example:
        >>> config = OAuthConfig(base_url="https://canvas.example.edu", client_id="10000")
        >>> with OAuthFlow(config) as flow:
        ...     token = flow.authenticate()
        >>> token.expiry
        datetime.datetime(...)

    Args:
        config: OAuth configuration
        http_client: HTTP client for token requests (uses default if None)
        input_stream: Where OOB mode reads the pasted code (stdin if None)
        output_stream: Where instructions are printed (stdout if None)
        open_browser: Callable opening a URL (``webbrowser.open`` if None)
    """

    def __init__(
        self,
        config: OAuthConfig,
        http_client: HttpClient | None = None,
        input_stream: typing.TextIO | None = None,
        output_stream: typing.TextIO | None = None,
        open_browser: typing.Callable[[str], object] | None = None,
    ):
        self.config = config
        self._owns_http_client = http_client is None
        self.http_client = http_client or HttpxHttpClient()
        self._input_stream = input_stream
        self._output_stream = output_stream
        self._open_browser = open_browser or webbrowser.open

        self._exchanger = TokenExchanger(
            self.http_client,
            token_endpoint=config.token_endpoint,
            client_id=config.client_id,
            client_secret=config.client_secret,
        )

        self.pkce = generate_pkce()
        self.csrf_state = generate_state()
        self.redirect_uri = config.redirect_url

        self._outcomes: queue.Queue[CallbackOutcome | object] = queue.Queue()
        self._state = FlowState.IDLE
        self._state_lock = threading.Lock()

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def state(self) -> FlowState:
        with self._state_lock:
            return self._state

    def _set_state(self, state: FlowState) -> None:
        with self._state_lock:
            previous, self._state = self._state, state
        if previous is not state:
            _logger.debug("OAuth flow state: %s -> %s", previous.value, state.value)

    @property
    def _output(self) -> typing.TextIO:
        return self._output_stream or sys.stdout

    @property
    def _input(self) -> typing.TextIO:
        return self._input_stream or sys.stdin

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def authorization_url(self, redirect_uri: str | None = None) -> str:
        """Build the authorization URL for this attempt.

        The PKCE challenge is included; the verifier never is.
        """
        params = {
            "response_type": OAuthProtocol.RESPONSE_TYPE_CODE,
            "client_id": self.config.client_id,
            "redirect_uri": redirect_uri or self.redirect_uri,
        }
        if self.config.scopes:
            params["scope"] = " ".join(self.config.scopes)
        params.update(
            {
                "state": self.csrf_state,
                "code_challenge": self.pkce.challenge,
                "code_challenge_method": PkceProtocol.CODE_CHALLENGE_METHOD,
            }
        )
        return f"{self.config.authorize_endpoint}?{urllib.parse.urlencode(params)}"

    def authenticate(self, timeout: float | None = None) -> OAuthToken:
        """Run the authorization attempt in the configured mode.

        Args:
            timeout: Upper bound in seconds for the local callback wait;
                the effective deadline is the smaller of this and
                ``config.timeout``

        Returns:
            The issued token

        Raises:
            OAuthFlowError: If the attempt fails, times out or is cancelled
            TokenExchangeError: If the code exchange fails
        """
        if self.state is not FlowState.IDLE:
            raise OAuthFlowError("this authorization attempt was already used; start a new flow")

        _logger.debug("Starting OAuth flow (%r)", self.config)
        try:
            if self.config.mode is OAuthMode.LOCAL:
                token = self._authenticate_local(timeout)
            elif self.config.mode is OAuthMode.OOB:
                token = self._authenticate_oob()
            else:
                token = self._authenticate_auto(timeout)
        except BaseException:
            self._set_state(FlowState.FAILED)
            raise

        self._set_state(FlowState.AUTHENTICATED)
        return token

    def close(self) -> None:
        """Close the HTTP client if this flow created it."""
        if self._owns_http_client and isinstance(self.http_client, HttpxHttpClient):
            self.http_client.close()

    def __enter__(self) -> OAuthFlow:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def cancel(self) -> None:
        """Cancel the in-flight local attempt.

        The waiting ``authenticate()`` call raises AuthFlowCancelled.
        """
        _logger.debug("OAuth flow cancellation requested")
        self._outcomes.put(_CANCELLED)

    def refresh_token(self, token: OAuthToken) -> OAuthToken:
        """Refresh ``token`` with the refresh grant.

        Raises:
            TokenRefreshError: If the token has no refresh token or the
                server rejects the grant
        """
        return self._exchanger.refresh(token, timeout=TokenRefreshDefaults.REFRESH_TIMEOUT_SECONDS)

    def validate_token(self, token: OAuthToken | None) -> bool:
        """Check whether the instance accepts ``token``.

        Returns:
            False for a missing or expired token without any request,
            otherwise whether the current-user endpoint answered 200

        Raises:
            HttpError: If the current-user request cannot be completed
        """
        if token is None or token.is_expired():
            return False

        response = self.http_client.get(
            self.config.current_user_endpoint,
            headers={
                "Authorization": f"Bearer {token.access_token}",
                "Accept": "application/json",
            },
            timeout=OAuthDefaults.HTTP_REQUEST_TIMEOUT,
        )
        if response.status_code != OAuthProtocol.HTTP_OK:
            _logger.debug("Token check answered HTTP %d", response.status_code)
            return False
        return True

    # -------------------------------------------------------------------------
    # Modes
    # -------------------------------------------------------------------------

    def _authenticate_auto(self, timeout: float | None) -> OAuthToken:
        try:
            return self._authenticate_local(timeout)
        except AuthFlowCancelled:
            raise
        except AuthError as e:
            _logger.warning("Local OAuth server failed, falling back to out-of-band flow: %s", e)

        # Same PKCE pair and state as the local attempt
        return self._authenticate_oob()

    def _authenticate_local(self, timeout: float | None) -> OAuthToken:
        deadline = self.config.timeout if timeout is None else min(timeout, self.config.timeout)
        redirect_uri = self.config.redirect_url
        callback_path = urllib.parse.urlparse(redirect_uri).path or OAuthDefaults.CALLBACK_PATH
        port = self.config.callback_port

        try:
            server = OAuthHTTPServer(
                (OAuthDefaults.CALLBACK_HOST, port),
                state=self.csrf_state,
                exchange_code=lambda code: self._exchange(code, redirect_uri),
                outcomes=self._outcomes,  # type: ignore[arg-type]
                callback_path=callback_path,
            )
        except OSError as e:
            raise OAuthFlowError(f"failed to start callback server on port {port}: {e}") from e

        server_thread = threading.Thread(
            target=server.serve_forever, name="oauth-callback-server", daemon=True
        )
        server_thread.start()
        _logger.debug("Callback server listening on %s:%d", OAuthDefaults.CALLBACK_HOST, port)

        try:
            self.redirect_uri = redirect_uri
            auth_url = self.authorization_url(redirect_uri)
            out = self._output
            print("\nOpening browser for Canvas authentication...", file=out)
            print(f"If your browser doesn't open automatically, visit:\n{auth_url}\n", file=out)
            out.flush()

            self._set_state(FlowState.AWAITING_USER_ACTION)
            self._launch_browser(auth_url)

            try:
                outcome = self._outcomes.get(timeout=deadline)
            except queue.Empty:
                raise AuthFlowTimeout(deadline) from None
        finally:
            _shutdown_server(server, server_thread)

        if outcome is _CANCELLED:
            raise AuthFlowCancelled()
        if isinstance(outcome, BaseException):
            raise outcome
        return typing.cast(OAuthToken, outcome)

    def _authenticate_oob(self) -> OAuthToken:
        redirect_uri = OAuthProtocol.OOB_REDIRECT_URI
        self.redirect_uri = redirect_uri
        auth_url = self.authorization_url(redirect_uri)

        out = self._output
        print("\nCanvas OAuth Authentication (Out-of-Band Mode)\n", file=out)
        print(f"1. Visit this URL in your browser:\n{auth_url}\n", file=out)
        print("2. Authorize the application", file=out)
        print("3. Copy the authorization code from the page", file=out)
        print("4. Paste the code here: ", end="", file=out)
        out.flush()

        self._set_state(FlowState.AWAITING_USER_ACTION)
        code = self._input.readline().strip()
        if not code:
            raise MissingCodeError("authorization code is required")

        return self._exchange(code, redirect_uri)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _exchange(self, code: str, redirect_uri: str) -> OAuthToken:
        self._set_state(FlowState.EXCHANGING_CODE)
        ctx = TokenExchangeContext(code=code, redirect_uri=redirect_uri, pkce=self.pkce)
        return self._exchanger.exchange(ctx, timeout=OAuthDefaults.HTTP_REQUEST_TIMEOUT)

    def _launch_browser(self, url: str) -> None:
        try:
            opened = self._open_browser(url)
        except (webbrowser.Error, OSError) as e:
            _logger.warning("Failed to open browser: %s", e)
            return
        if opened is False:
            _logger.info("No browser available; open the URL above manually")


def _shutdown_server(server: OAuthHTTPServer, server_thread: threading.Thread) -> None:
    """Stop the callback server, waiting at most the shutdown grace period."""
    stopper = threading.Thread(target=server.shutdown, name="oauth-callback-shutdown", daemon=True)
    stopper.start()
    stopper.join(OAuthDefaults.SERVER_SHUTDOWN_GRACE)

    if stopper.is_alive():
        # A handler is still busy (e.g. a slow code exchange); the daemon threads die with us
        _logger.warning(
            "Callback server did not stop within %gs", OAuthDefaults.SERVER_SHUTDOWN_GRACE
        )
        return

    server.server_close()
    server_thread.join(OAuthDefaults.SERVER_SHUTDOWN_GRACE)
    _logger.debug("Callback server stopped")


__all__ = [
    "OAuthMode",
    "FlowState",
    "OAuthConfig",
    "OAuthFlow",
]
