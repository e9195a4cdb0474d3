"""Bearer token injection for Canvas API clients.

This module provides a reusable mixin for API clients that need to inject
bearer tokens into their requests, plus an ``httpx.Auth`` implementation
for clients built directly on httpx.
"""

from collections.abc import Callable, Generator
from typing import TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from canvas_cli.core.auth.tokens import TokenSource

_NOT_AUTHENTICATED = "Not authenticated. Run 'canvas auth login <url>' first."


class BearerAuthMixin:
    """Mixin for API clients that authenticate with a bearer token.

    Classes using this mixin must:
    1. Have a _token_source attribute (optional, can be None)
    2. Call _inject_auth_headers when making authenticated requests
    """

    _token_source: "TokenSource | None"

    def _get_bearer_token(self) -> str:
        """Get a valid access token from the token source.

        Raises:
            ValueError: If no token source is configured or it returned no token.
            ReauthenticationRequiredError: If the token cannot be refreshed.
        """
        if self._token_source is None:
            raise ValueError(_NOT_AUTHENTICATED)

        access_token = self._token_source.get_access_token()
        if not access_token:
            raise ValueError(_NOT_AUTHENTICATED)

        return access_token

    def _inject_auth_headers(self, headers: dict[str, str]) -> dict[str, str]:
        """Inject the Authorization header into a headers dict (modified in-place)."""
        headers["Authorization"] = f"Bearer {self._get_bearer_token()}"
        return headers


class BearerAuth(httpx.Auth):
    """httpx authentication calling a token provider for every request.

    Example:
        >>> client = httpx.Client(auth=BearerAuth(source.get_access_token))
    """

    def __init__(self, token_provider: Callable[[], str] | None):
        if token_provider is None:
            raise ValueError(_NOT_AUTHENTICATED)
        self._token_provider = token_provider

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers["Authorization"] = f"Bearer {self._token_provider()}"
        yield request
