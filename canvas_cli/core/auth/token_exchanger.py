"""Token endpoint grants for the OAuth flow.

This module contains the business logic for exchanging authorization
codes and refresh tokens at the Canvas token endpoint, separated from
the callback server and the flow engine.
"""

from __future__ import annotations

import logging
import urllib.parse
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .constants import OAuthEndpoints, OAuthProtocol, TokenRefreshDefaults
from .exceptions import TokenExchangeError, TokenRefreshError, ValidationError
from .http_client import HttpError, HttpxHttpClient
from .oauth_token import OAuthToken
from .pkce import PKCEChallenge

if TYPE_CHECKING:
    from .http_client import HttpClient

_logger = logging.getLogger(__name__)

_FORM_HEADERS = {
    "Content-Type": "application/x-www-form-urlencoded",
    "Accept": "application/json",
}


@dataclass
class TokenExchangeContext:
    """Context for an authorization code exchange.

    Attributes:
        code: Authorization code from the callback or operator input
        redirect_uri: Redirect URI used in the authorization request
        pkce: PKCE pair of the attempt; only the verifier is sent
    """

    code: str
    redirect_uri: str
    pkce: PKCEChallenge


class TokenExchanger:
    """Handle authorization code and refresh grants for one OAuth client.

    Args:
        http_client: HTTP client for making requests
        token_endpoint: Absolute URL of the token endpoint
        client_id: OAuth client ID
        client_secret: OAuth client secret ("" for public clients)
    """

    def __init__(
        self,
        http_client: HttpClient,
        token_endpoint: str,
        client_id: str,
        client_secret: str = "",
    ) -> None:
        self.http_client = http_client
        self.token_endpoint = token_endpoint
        self.client_id = client_id
        self.client_secret = client_secret

    @classmethod
    def for_instance(
        cls,
        base_url: str,
        client_id: str,
        client_secret: str = "",
        http_client: HttpClient | None = None,
    ) -> TokenExchanger:
        """Build an exchanger for the token endpoint of a Canvas instance."""
        return cls(
            http_client=http_client or HttpxHttpClient(),
            token_endpoint=base_url.rstrip("/") + OAuthEndpoints.TOKEN_PATH,
            client_id=client_id,
            client_secret=client_secret,
        )

    def _client_fields(self) -> dict[str, str]:
        fields = {"client_id": self.client_id}
        if self.client_secret:
            fields["client_secret"] = self.client_secret
        return fields

    def _post_form(self, fields: dict[str, str], timeout: float | None) -> dict[str, Any]:
        data = urllib.parse.urlencode(fields).encode()
        response = self.http_client.post(
            self.token_endpoint,
            data=data,
            headers=dict(_FORM_HEADERS),
            timeout=timeout,
        )
        try:
            return response.json()
        except ValueError as e:
            raise HttpError(
                status_code=response.status_code,
                reason="invalid JSON in token response",
                body=response.text,
                url=self.token_endpoint,
            ) from e

    def exchange(self, ctx: TokenExchangeContext, timeout: float | None = None) -> OAuthToken:
        """Exchange an authorization code for a token.

        Raises:
            TokenExchangeError: If the endpoint rejects the code or the
                response carries no access token
        """
        fields = {
            "grant_type": OAuthProtocol.GRANT_TYPE_AUTH_CODE,
            "code": ctx.code,
            "redirect_uri": ctx.redirect_uri,
            "code_verifier": ctx.pkce.verifier,
            **self._client_fields(),
        }

        try:
            payload = self._post_form(fields, timeout)
            token = OAuthToken.from_token_response(payload)
        except (HttpError, ValidationError) as e:
            _logger.debug("Code exchange at %s failed: %s", self.token_endpoint, e)
            raise TokenExchangeError(f"failed to exchange code for token: {e}") from e

        _logger.debug("Code exchange succeeded (expiry=%s)", token.expiry)
        return token

    def refresh(
        self,
        token: OAuthToken,
        timeout: float | None = TokenRefreshDefaults.REFRESH_TIMEOUT_SECONDS,
    ) -> OAuthToken:
        """Run the refresh grant for ``token``.

        The refresh token of ``token`` is kept when the server does not
        issue a new one.

        Raises:
            TokenRefreshError: If the token has no refresh token or the
                endpoint rejects the grant
        """
        if not token.refresh_token:
            raise TokenRefreshError("no refresh token available")

        fields = {
            "grant_type": OAuthProtocol.GRANT_TYPE_REFRESH_TOKEN,
            "refresh_token": token.refresh_token,
            **self._client_fields(),
        }

        try:
            payload = self._post_form(fields, timeout)
            refreshed = OAuthToken.from_token_response(payload, previous=token)
        except HttpError as e:
            reason = f"HTTP {e.status_code} {e.reason}" if e.status_code else e.reason
            raise TokenRefreshError(reason) from e
        except ValidationError as e:
            raise TokenRefreshError(str(e)) from e

        _logger.debug("Token refreshed (expiry=%s)", refreshed.expiry)
        return refreshed


__all__ = [
    "TokenExchanger",
    "TokenExchangeContext",
]
