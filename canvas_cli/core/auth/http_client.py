"""
Transport for the two requests the auth core makes against a Canvas instance.

- form POSTs to ``/login/oauth2/token`` (code exchange and refresh grant)
- the ``/api/v1/users/self`` request used to check a token

Both go through :class:`HttpClient`, so a flow can be given another
transport. :class:`HttpxHttpClient` is the default and returns the
``httpx.Response`` as is.
"""

from __future__ import annotations

import abc
import logging

import httpx

from .constants import OAuthDefaults
from .exceptions import AuthError

_logger = logging.getLogger(__name__)

_BODY_PREVIEW_CHARS = 200


class HttpError(AuthError):
    """A request to the Canvas instance failed.

    Attributes:
        status_code: Response status, or 0 when no response arrived
            (refused connection, DNS failure, timeout)
        reason: Reason phrase or transport error description
        body: Response body ("" without a response)
        url: Request URL
    """

    def __init__(self, status_code: int, reason: str, body: str = "", url: str = "") -> None:
        self.status_code = status_code
        self.reason = reason
        self.body = body
        self.url = url

        message = f"HTTP {status_code} {reason}" if status_code else reason
        if url:
            message += f" ({url})"
        if body:
            truncated = len(body) > _BODY_PREVIEW_CHARS
            message += f": {body[:_BODY_PREVIEW_CHARS]}" + ("..." if truncated else "")
        super().__init__(message)

    @classmethod
    def from_response(cls, response: httpx.Response, url: str) -> HttpError:
        return cls(response.status_code, response.reason_phrase, response.text, url)


class HttpClient(abc.ABC):
    """Sends requests for the auth core.

    Implementations provide :meth:`send`; ``post`` and ``get`` add the
    status handling the token endpoint and the token check need.
    """

    @abc.abstractmethod
    def send(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        content: bytes | None = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        """Send one request and return the response whatever its status.

        Raises:
            HttpError: If no response arrived (status_code 0)
        """

    def post(
        self,
        url: str,
        data: bytes,
        headers: dict[str, str],
        timeout: float | None = None,
    ) -> httpx.Response:
        """POST ``data``; a 4xx/5xx answer raises :class:`HttpError`."""
        response = self.send("POST", url, headers, content=data, timeout=timeout)
        if response.is_error:
            raise HttpError.from_response(response, url)
        return response

    def get(
        self,
        url: str,
        headers: dict[str, str],
        timeout: float | None = None,
    ) -> httpx.Response:
        """GET ``url``; every status is returned to the caller."""
        return self.send("GET", url, headers, timeout=timeout)


class HttpxHttpClient(HttpClient):
    """HttpClient backed by ``httpx.Client``.

    Requests are never retried. An authorization code is single use, and
    Canvas may reject a replayed refresh grant.

    Args:
        timeout: Default per-request timeout in seconds
        log_requests: Log method, URL and header names at DEBUG
        client: Preconfigured httpx client (one is created if None)
    """

    def __init__(
        self,
        timeout: float = OAuthDefaults.HTTP_REQUEST_TIMEOUT,
        log_requests: bool = True,
        client: httpx.Client | None = None,
    ) -> None:
        self.timeout = timeout
        self.log_requests = log_requests
        self._client = client or httpx.Client(timeout=timeout)

    def send(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        content: bytes | None = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        seconds = timeout or self.timeout
        if self.log_requests:
            # Header values carry credentials
            _logger.debug("%s %s (timeout=%gs, headers=%s)", method, url, seconds, sorted(headers))

        try:
            response = self._client.request(
                method, url, headers=headers, content=content, timeout=seconds
            )
        except httpx.HTTPError as e:
            raise HttpError(0, str(e) or type(e).__name__, url=url) from e

        if self.log_requests:
            _logger.debug("%s %s -> %d", method, url, response.status_code)
        return response

    def close(self) -> None:
        self._client.close()


__all__ = [
    "HttpClient",
    "HttpError",
    "HttpxHttpClient",
]
