"""Unit tests for the auto-refresh token source."""

import datetime
import threading
import time

import httpx
import pytest

from canvas_cli.core.auth.exceptions import (
    ReauthenticationRequiredError,
    StorageError,
    TokenRefreshError,
)
from canvas_cli.core.auth.oauth_token import OAuthToken
from canvas_cli.core.auth.storage import InMemoryTokenStore, TokenStore
from canvas_cli.core.auth.tokens import (
    AutoRefreshTokenSource,
    StaticTokenSource,
    create_refresher_for_instance,
    token_source_for_instance,
)
from canvas_cli.core.config.instances import InstanceCredentials
from tests.fixtures.mock_http import CANVAS_URL, TOKEN_PATH


class CountingRefresher:
    """Refresher returning a fresh token and counting calls."""

    def __init__(self, delay: float = 0.0):
        self.calls = 0
        self.delay = delay
        self._lock = threading.Lock()

    def refresh(self, token):
        with self._lock:
            self.calls += 1
            n = self.calls
        time.sleep(self.delay)
        return OAuthToken(
            access_token=f"access-refreshed-{n}",
            refresh_token=token.refresh_token,
            expiry=datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(hours=1),
        )


class FailingRefresher:
    def refresh(self, token):
        raise TokenRefreshError("HTTP 401 Unauthorized")


class UnwritableStore(InMemoryTokenStore):
    def save(self, instance_name, token):
        raise StorageError("disk full")


@pytest.mark.unit
class TestAutoRefreshTokenSource:
    """Test cases for AutoRefreshTokenSource.token."""

    def test_fresh_token_returned_without_refresh(self, fresh_token):
        refresher = CountingRefresher()
        source = AutoRefreshTokenSource(fresh_token, InMemoryTokenStore(), "prod", refresher)

        assert source.token() is fresh_token
        assert refresher.calls == 0

    def test_token_inside_buffer_is_refreshed_and_saved(self, expiring_token):
        refresher = CountingRefresher()
        store = InMemoryTokenStore()
        source = AutoRefreshTokenSource(expiring_token, store, "prod", refresher)

        token = source.token()

        assert token.access_token == "access-refreshed-1"
        assert refresher.calls == 1
        assert store.load("prod") == token
        # The refreshed token is held: no second refresh
        assert source.token() is token
        assert refresher.calls == 1

    def test_expired_token_without_refresh_token_requires_login(self):
        expired = OAuthToken(
            "access-old",
            expiry=datetime.datetime.now(datetime.timezone.utc) - datetime.timedelta(minutes=1),
        )
        refresher = CountingRefresher()
        source = AutoRefreshTokenSource(expired, InMemoryTokenStore(), "prod", refresher)

        with pytest.raises(ReauthenticationRequiredError, match="canvas auth login"):
            source.token()

        assert refresher.calls == 0

    def test_token_without_expiry_is_never_refreshed(self):
        refresher = CountingRefresher()
        source = AutoRefreshTokenSource(
            OAuthToken("access", refresh_token="r"), InMemoryTokenStore(), "prod", refresher
        )

        assert source.get_access_token() == "access"
        assert refresher.calls == 0

    def test_refresh_failure_propagates(self, expiring_token):
        source = AutoRefreshTokenSource(
            expiring_token, InMemoryTokenStore(), "prod", FailingRefresher()
        )

        with pytest.raises(TokenRefreshError):
            source.token()

    def test_persistence_failure_is_logged_not_raised(self, expiring_token, caplog):
        source = AutoRefreshTokenSource(
            expiring_token, UnwritableStore(), "prod", CountingRefresher()
        )

        token = source.token()

        assert token.access_token == "access-refreshed-1"
        assert "Failed to save refreshed token" in caplog.text

    def test_concurrent_callers_trigger_one_refresh(self, expiring_token):
        refresher = CountingRefresher(delay=0.2)
        source = AutoRefreshTokenSource(expiring_token, InMemoryTokenStore(), "prod", refresher)
        results = []

        def worker():
            results.append(source.get_access_token())

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)

        assert refresher.calls == 1
        assert results == ["access-refreshed-1"] * 8

    def test_is_expired(self, fresh_token):
        source = AutoRefreshTokenSource(
            fresh_token, InMemoryTokenStore(), "prod", CountingRefresher()
        )

        assert not source.is_expired()

    def test_token_inside_buffer_reports_expired(self, expiring_token):
        refresher = CountingRefresher()
        source = AutoRefreshTokenSource(expiring_token, InMemoryTokenStore(), "prod", refresher)

        assert source.is_expired()
        assert refresher.calls == 0

    def test_past_expiry_reports_expired(self):
        past = OAuthToken(
            "old",
            refresh_token="refresh-1",
            expiry=datetime.datetime.now(datetime.timezone.utc) - datetime.timedelta(minutes=1),
        )
        source = AutoRefreshTokenSource(past, InMemoryTokenStore(), "prod", CountingRefresher())

        assert source.is_expired()

    def test_refresh_over_http(self, expiring_token, mock_canvas_api, refresh_response):
        """Test the real refresher against a mocked token endpoint."""
        mock_canvas_api.post(TOKEN_PATH).mock(
            return_value=httpx.Response(200, json=refresh_response)
        )
        store = InMemoryTokenStore()
        refresher = create_refresher_for_instance(CANVAS_URL, "client-1", "secret-1")
        source = AutoRefreshTokenSource(expiring_token, store, "prod", refresher)

        assert source.get_access_token() == "access-refreshed"
        assert store.load("prod").refresh_token == "refresh-1"


@pytest.mark.unit
class TestTokenSourceForInstance:
    """Test cases for token_source_for_instance."""

    def test_static_token_wins(self):
        instance = InstanceCredentials(
            name="prod", base_url=CANVAS_URL, client_id="client-1", token="manual-token"
        )

        source = token_source_for_instance(instance, InMemoryTokenStore())

        assert isinstance(source, StaticTokenSource)
        assert source.get_access_token() == "manual-token"

    def test_oauth_instance_wraps_stored_token(self, fresh_token):
        store = InMemoryTokenStore()
        store.save("prod", fresh_token)
        instance = InstanceCredentials(name="prod", base_url=CANVAS_URL, client_id="client-1")

        source = token_source_for_instance(instance, store)

        assert isinstance(source, AutoRefreshTokenSource)
        assert source.get_access_token() == "access-fresh"

    def test_missing_stored_token_requires_login(self):
        instance = InstanceCredentials(name="prod", base_url=CANVAS_URL, client_id="client-1")

        with pytest.raises(ReauthenticationRequiredError, match="prod"):
            token_source_for_instance(instance, InMemoryTokenStore())

    def test_store_failure_propagates(self):
        class Broken(TokenStore):
            def save(self, instance_name, token): ...

            def load(self, instance_name):
                raise StorageError("keyring locked")

            def delete(self, instance_name): ...

            def exists(self, instance_name):
                return False

        instance = InstanceCredentials(name="prod", base_url=CANVAS_URL, client_id="client-1")

        with pytest.raises(StorageError):
            token_source_for_instance(instance, Broken())
