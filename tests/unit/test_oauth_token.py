"""Unit tests for the OAuthToken model."""

import datetime

import pytest

from canvas_cli.core.auth.exceptions import ValidationError
from canvas_cli.core.auth.oauth_token import OAuthToken

NOW = datetime.datetime(2025, 1, 1, 12, 0, tzinfo=datetime.timezone.utc)


@pytest.mark.unit
class TestFreshness:
    """Test cases for expiry checks."""

    def test_not_expired_before_expiry(self):
        token = OAuthToken("a", expiry=NOW + datetime.timedelta(seconds=1))

        assert not token.is_expired(now=NOW)

    def test_expired_at_expiry(self):
        token = OAuthToken("a", expiry=NOW)

        assert token.is_expired(now=NOW)

    def test_expires_within_buffer(self):
        token = OAuthToken("a", expiry=NOW + datetime.timedelta(minutes=2))

        assert token.expires_within(300, now=NOW)
        assert not token.expires_within(60, now=NOW)

    def test_token_without_expiry_never_expires(self):
        token = OAuthToken("a")

        assert not token.is_expired()
        assert not token.expires_within(10**9)

    def test_naive_expiry_is_treated_as_utc(self):
        token = OAuthToken("a", expiry=datetime.datetime(2025, 1, 1, 12, 0))

        assert token.expiry == NOW

    def test_repr_hides_secrets(self):
        token = OAuthToken("secret-access", refresh_token="secret-refresh")

        assert "secret-access" not in repr(token)
        assert "secret-refresh" not in repr(token)

    def test_authorization_header(self):
        assert OAuthToken("abc").authorization_header == "Bearer abc"


@pytest.mark.unit
class TestFromTokenResponse:
    """Test cases for OAuthToken.from_token_response."""

    def test_computes_expiry_from_expires_in(self):
        token = OAuthToken.from_token_response(
            {"access_token": "a", "refresh_token": "r", "expires_in": 3600}, now=NOW
        )

        assert token.access_token == "a"
        assert token.refresh_token == "r"
        assert token.token_type == "Bearer"
        assert token.expiry == NOW + datetime.timedelta(hours=1)

    def test_keeps_previous_refresh_token(self):
        previous = OAuthToken("old", refresh_token="keep-me")

        token = OAuthToken.from_token_response({"access_token": "new"}, previous=previous)

        assert token.refresh_token == "keep-me"

    def test_rotated_refresh_token_wins(self):
        previous = OAuthToken("old", refresh_token="old-refresh")

        token = OAuthToken.from_token_response(
            {"access_token": "new", "refresh_token": "new-refresh"}, previous=previous
        )

        assert token.refresh_token == "new-refresh"

    def test_missing_expires_in_means_no_expiry(self):
        token = OAuthToken.from_token_response({"access_token": "a"})

        assert token.expiry is None

    def test_missing_access_token_raises(self):
        with pytest.raises(ValidationError, match="access_token"):
            OAuthToken.from_token_response({"token_type": "Bearer"})

    def test_non_numeric_expires_in_raises(self):
        with pytest.raises(ValidationError, match="expires_in"):
            OAuthToken.from_token_response({"access_token": "a", "expires_in": "soon"})


@pytest.mark.unit
class TestSerialization:
    """Test cases for to_dict/from_dict."""

    def test_to_dict_uses_iso_expiry(self):
        token = OAuthToken("a", refresh_token="r", expiry=NOW)

        assert token.to_dict() == {
            "access_token": "a",
            "token_type": "Bearer",
            "refresh_token": "r",
            "expiry": "2025-01-01T12:00:00+00:00",
        }

    def test_from_dict_restores_token(self):
        token = OAuthToken.from_dict(
            {"access_token": "a", "refresh_token": "r", "expiry": "2025-01-01T12:00:00+00:00"}
        )

        assert token == OAuthToken("a", refresh_token="r", expiry=NOW)

    def test_from_dict_rejects_unknown_fields(self):
        with pytest.raises(ValidationError, match="unknown fields"):
            OAuthToken.from_dict({"access_token": "a", "acess_token": "typo"})

    def test_from_dict_requires_access_token(self):
        with pytest.raises(ValidationError):
            OAuthToken.from_dict({"refresh_token": "r"})

    def test_from_dict_rejects_bad_expiry(self):
        with pytest.raises(ValidationError, match="expiry"):
            OAuthToken.from_dict({"access_token": "a", "expiry": "tomorrow"})
