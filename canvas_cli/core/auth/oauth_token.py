"""OAuth token model shared by the flow, the stores and the token sources."""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from typing import Any

from .constants import OAuthProtocol
from .exceptions import ValidationError

_TOKEN_ALLOWED_FIELDS = {"access_token", "token_type", "refresh_token", "expiry"}


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


@dataclass
class OAuthToken:
    """Bearer token as issued by the Canvas token endpoint.

    Attributes:
        access_token: Bearer credential sent to the REST API
        token_type: Token type reported by the server (normally "Bearer")
        refresh_token: Credential for the refresh grant ("" when not issued)
        expiry: Timezone-aware UTC expiry, or None when the server gave none
    """

    access_token: str
    token_type: str = OAuthProtocol.TOKEN_TYPE_BEARER
    refresh_token: str = ""
    expiry: datetime.datetime | None = None

    def __post_init__(self) -> None:
        if self.expiry is not None and self.expiry.tzinfo is None:
            self.expiry = self.expiry.replace(tzinfo=datetime.timezone.utc)

    def __repr__(self) -> str:
        expiry = self.expiry.isoformat() if self.expiry else None
        return (
            f"OAuthToken(token_type={self.token_type!r}, "
            f"has_refresh_token={bool(self.refresh_token)}, expiry={expiry!r})"
        )

    # -------------------------------------------------------------------------
    # Freshness
    # -------------------------------------------------------------------------

    def is_expired(self, now: datetime.datetime | None = None) -> bool:
        """True when the expiry is known and already in the past."""
        if self.expiry is None:
            return False
        return self.expiry <= (now or _utcnow())

    def expires_within(self, seconds: float, now: datetime.datetime | None = None) -> bool:
        """True when the expiry is known and at most ``seconds`` away."""
        if self.expiry is None:
            return False
        remaining = (self.expiry - (now or _utcnow())).total_seconds()
        return remaining <= seconds

    @property
    def authorization_header(self) -> str:
        return f"{self.token_type or OAuthProtocol.TOKEN_TYPE_BEARER} {self.access_token}"

    # -------------------------------------------------------------------------
    # Token endpoint responses
    # -------------------------------------------------------------------------

    @classmethod
    def from_token_response(
        cls,
        payload: dict[str, Any],
        previous: OAuthToken | None = None,
        now: datetime.datetime | None = None,
    ) -> OAuthToken:
        """Build a token from a token endpoint JSON body.

        Args:
            payload: Decoded JSON response of the token endpoint
            previous: Token being refreshed; its refresh token is kept
                when the server does not rotate it
            now: Issue time used to turn ``expires_in`` into an expiry

        Raises:
            ValidationError: If the response carries no access token
        """
        access_token = payload.get("access_token")
        if not access_token or not isinstance(access_token, str):
            raise ValidationError("access_token", access_token, "missing from token response")

        refresh_token = payload.get("refresh_token") or (previous.refresh_token if previous else "")

        expiry = None
        expires_in = payload.get("expires_in")
        if expires_in not in (None, ""):
            try:
                seconds = float(expires_in)
            except (TypeError, ValueError) as e:
                raise ValidationError("expires_in", expires_in, "must be a number") from e
            if seconds > 0:
                expiry = (now or _utcnow()) + datetime.timedelta(seconds=seconds)

        return cls(
            access_token=access_token,
            token_type=payload.get("token_type") or OAuthProtocol.TOKEN_TYPE_BEARER,
            refresh_token=refresh_token,
            expiry=expiry,
        )

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "access_token": self.access_token,
            "token_type": self.token_type,
            "refresh_token": self.refresh_token,
            "expiry": self.expiry.isoformat() if self.expiry else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OAuthToken:
        """Create from a stored record.

        Raises:
            ValidationError: If data is invalid or contains unknown fields
        """
        if not isinstance(data, dict):
            raise ValidationError("token", data, "stored token must be a JSON object")

        unknown = set(data) - _TOKEN_ALLOWED_FIELDS
        if unknown:
            raise ValidationError("token", sorted(unknown), "unknown fields in stored token")

        access_token = data.get("access_token")
        if not access_token or not isinstance(access_token, str):
            raise ValidationError(
                "access_token", access_token, "required field is missing or empty"
            )

        expiry = None
        raw_expiry = data.get("expiry")
        if raw_expiry:
            try:
                expiry = datetime.datetime.fromisoformat(raw_expiry)
            except (TypeError, ValueError) as e:
                raise ValidationError("expiry", raw_expiry, "must be an ISO 8601 timestamp") from e

        return cls(
            access_token=access_token,
            token_type=data.get("token_type") or OAuthProtocol.TOKEN_TYPE_BEARER,
            refresh_token=data.get("refresh_token") or "",
            expiry=expiry,
        )


__all__ = ["OAuthToken"]
