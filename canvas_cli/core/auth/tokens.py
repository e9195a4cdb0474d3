"""
Token sources with automatic refresh.

A token source is what the resource client sees of authentication: a
callable that returns a valid bearer token on demand. The auto-refresh
source holds the current token for one Canvas instance, refreshes it
shortly before expiry and writes refreshed tokens back to the store.
"""

from __future__ import annotations

import logging
import threading
import typing

from .constants import TokenRefreshDefaults
from .exceptions import ReauthenticationRequiredError, StorageError
from .http_client import HttpClient
from .oauth_token import OAuthToken
from .storage import TokenStore
from .token_exchanger import TokenExchanger
from .validation import validate_instance_name, validate_string

if typing.TYPE_CHECKING:
    from ..config.instances import InstanceCredentials

_logger = logging.getLogger(__name__)

# Refresh tokens 5 minutes before expiry
_REFRESH_BUFFER_SECONDS = TokenRefreshDefaults.REFRESH_BUFFER_SECONDS


class TokenRefresher(typing.Protocol):
    """Anything able to run the refresh grant (TokenExchanger, OAuthFlow adapters)."""

    def refresh(self, token: OAuthToken) -> OAuthToken: ...


class TokenSource(typing.Protocol):
    def token(self) -> OAuthToken: ...

    def get_access_token(self) -> str: ...


class AutoRefreshTokenSource:
    """Hands out the current token, refreshing it when it is about to expire.

    This class handles:
    - Returning a fresh token without any I/O
    - Refusing to refresh without a refresh token (no network call)
    - Refreshing once for concurrent callers (a lock guards the token)
    - Persisting refreshed tokens (best effort; failures are logged)

    Example:
        >>> source = AutoRefreshTokenSource(token, store, "prod", refresher)
        >>> headers = {"Authorization": f"Bearer {source.get_access_token()}"}

    Args:
        token: Current token for the instance
        store: Store receiving refreshed tokens
        instance_name: Storage key of the instance
        refresher: Object running the refresh grant
    """

    def __init__(
        self,
        token: OAuthToken,
        store: TokenStore,
        instance_name: str,
        refresher: TokenRefresher,
    ):
        validate_instance_name(instance_name)
        self._token = token
        self.store = store
        self.instance_name = instance_name
        self.refresher = refresher
        self._lock = threading.Lock()

    def token(self) -> OAuthToken:
        """Return a valid token, refreshing it first when needed.

        Raises:
            ReauthenticationRequiredError: If the token is stale and
                cannot be refreshed
            TokenRefreshError: If the refresh grant fails
        """
        with self._lock:
            current = self._token
            if not self._should_refresh(current):
                return current

            if not current.refresh_token:
                raise ReauthenticationRequiredError()

            _logger.debug("Refreshing token for instance %s", self.instance_name)
            refreshed = self.refresher.refresh(current)
            self._token = refreshed

            try:
                self.store.save(self.instance_name, refreshed)
            except StorageError as e:
                # The refreshed token still works for this process
                _logger.warning(
                    "Failed to save refreshed token for %s: %s", self.instance_name, e
                )

            return refreshed

    def get_access_token(self) -> str:
        """Return the bearer string of a valid token."""
        return self.token().access_token

    def is_expired(self) -> bool:
        """True if ``token()`` would refresh: expired or within the refresh buffer.

        No refresh is attempted.
        """
        with self._lock:
            return self._should_refresh(self._token)

    @staticmethod
    def _should_refresh(token: OAuthToken) -> bool:
        """A token is stale when expired or within the refresh buffer of expiry."""
        return token.is_expired() or token.expires_within(_REFRESH_BUFFER_SECONDS)

    def __repr__(self) -> str:
        return (
            f"AutoRefreshTokenSource(instance_name={self.instance_name!r}, token={self._token!r})"
        )


class StaticTokenSource:
    """Token source for a manually issued access token that never refreshes."""

    def __init__(self, access_token: str):
        validate_string(access_token, "access_token")
        self._token = OAuthToken(access_token=access_token)

    def token(self) -> OAuthToken:
        return self._token

    def get_access_token(self) -> str:
        return self._token.access_token

    def is_expired(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "StaticTokenSource()"


def create_refresher_for_instance(
    base_url: str,
    client_id: str,
    client_secret: str = "",
    http_client: HttpClient | None = None,
) -> TokenExchanger:
    """Create the refresher for an instance's OAuth client."""
    return TokenExchanger.for_instance(
        base_url,
        client_id,
        client_secret=client_secret,
        http_client=http_client,
    )


def token_source_for_instance(
    instance: InstanceCredentials,
    store: TokenStore,
    http_client: HttpClient | None = None,
) -> AutoRefreshTokenSource | StaticTokenSource:
    """Build the token source for a configured instance.

    A static token wins over OAuth credentials. For OAuth instances the
    stored token is loaded and wrapped in an auto-refresh source.

    Raises:
        ReauthenticationRequiredError: If no token is stored for the instance
        StorageError: If the store fails
    """
    if instance.has_static_token():
        return StaticTokenSource(instance.token)

    token = store.load(instance.name)
    if token is None:
        raise ReauthenticationRequiredError(f"no stored token for instance {instance.name!r}")

    refresher = create_refresher_for_instance(
        instance.base_url,
        instance.client_id,
        client_secret=instance.client_secret,
        http_client=http_client,
    )
    return AutoRefreshTokenSource(token, store, instance.name, refresher)


__all__ = [
    "TokenRefresher",
    "TokenSource",
    "AutoRefreshTokenSource",
    "StaticTokenSource",
    "create_refresher_for_instance",
    "token_source_for_instance",
]
