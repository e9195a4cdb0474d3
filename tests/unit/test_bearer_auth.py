"""Unit tests for bearer token injection."""

from unittest.mock import MagicMock

import httpx
import pytest
import respx

from canvas_cli.core.auth.exceptions import ReauthenticationRequiredError
from canvas_cli.core.bearer_auth import BearerAuth, BearerAuthMixin


class CanvasClient(BearerAuthMixin):
    def __init__(self, token_source):
        self._token_source = token_source


@pytest.mark.unit
class TestBearerAuthMixin:
    """Test cases for BearerAuthMixin."""

    def test_injects_header(self):
        source = MagicMock()
        source.get_access_token.return_value = "access-1"

        headers = CanvasClient(source)._inject_auth_headers({"Accept": "application/json"})

        assert headers == {"Accept": "application/json", "Authorization": "Bearer access-1"}
        source.get_access_token.assert_called_once()

    def test_not_authenticated(self):
        with pytest.raises(ValueError) as exc_info:
            CanvasClient(None)._get_bearer_token()

        assert "Not authenticated" in str(exc_info.value)
        assert "canvas auth login" in str(exc_info.value)

    def test_empty_token(self):
        source = MagicMock()
        source.get_access_token.return_value = ""

        with pytest.raises(ValueError, match="Not authenticated"):
            CanvasClient(source)._get_bearer_token()

    def test_reauthentication_propagates(self):
        source = MagicMock()
        source.get_access_token.side_effect = ReauthenticationRequiredError()

        with pytest.raises(ReauthenticationRequiredError):
            CanvasClient(source)._inject_auth_headers({})


@pytest.mark.unit
class TestBearerAuth:
    """Test cases for the httpx.Auth adapter."""

    def test_fetches_token_per_request(self):
        tokens = iter(["first", "second"])

        with respx.mock(base_url="https://canvas.test") as mock:
            route = mock.get("/api/v1/courses").mock(return_value=httpx.Response(200, json=[]))
            with httpx.Client(auth=BearerAuth(lambda: next(tokens))) as client:
                client.get("https://canvas.test/api/v1/courses")
                client.get("https://canvas.test/api/v1/courses")
            seen = [call.request.headers["Authorization"] for call in route.calls]

        assert seen == ["Bearer first", "Bearer second"]

    def test_requires_provider(self):
        with pytest.raises(ValueError, match="Not authenticated"):
            BearerAuth(None)
