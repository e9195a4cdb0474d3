"""
Custom exception hierarchy for the authentication core.

All exceptions inherit from AuthError, allowing callers to
catch every authentication failure with a single except clause.

Example:
    >>> try:
    ...     flow.authenticate()
    ... except AuthError as e:
    ...     print(f"Authentication failed: {e}")
"""

from __future__ import annotations

_REAUTH_HINT = "Run 'canvas auth login' to re-authenticate"


class AuthError(Exception):
    """Base exception for all authentication errors."""

    pass


class ValidationError(AuthError):
    """Raised when input validation fails.

    Attributes:
        field: Name of the field that failed validation
        value: The invalid value that was provided
        message: Human-readable explanation of the validation error

    Example:
        >>> OAuthConfig(base_url="https://x", client_id="id", callback_port=99999)
        ValidationError: Invalid 'callback_port': must be at most 65535 (got 99999)
    """

    def __init__(self, field: str, value: object, message: str) -> None:
        self.field = field
        self.value = value
        self.message = message
        super().__init__(f"Invalid {field!r}: {message} (got {value!r})")

    def __repr__(self) -> str:
        return (
            f"ValidationError(field={self.field!r}, value={self.value!r}, message={self.message!r})"
        )


class ConfigurationError(AuthError):
    """Raised when required configuration is missing.

    Raised before any network I/O starts, e.g. an OAuth flow
    without a base URL or client ID.
    """

    pass


# =============================================================================
# OAuth flow
# =============================================================================


class OAuthFlowError(AuthError):
    """Raised when an authorization attempt fails.

    The attempt cannot be resumed; a new flow with fresh PKCE
    and state values must be started.
    """

    pass


class StateMismatchError(OAuthFlowError):
    """Callback carried a state that does not match the attempt (possible CSRF)."""

    def __init__(self) -> None:
        super().__init__("invalid state parameter - possible CSRF attack")


class MissingCodeError(OAuthFlowError):
    """Callback or operator input carried no authorization code."""

    pass


class AuthorizationDeniedError(OAuthFlowError):
    """The authorization server redirected back with an error."""

    def __init__(self, error: str, description: str | None = None) -> None:
        self.error = error
        self.description = description
        detail = f"{error}: {description}" if description else error
        super().__init__(f"authorization denied by server ({detail})")


class TokenExchangeError(OAuthFlowError):
    """Exchanging the authorization code for a token failed."""

    pass


class AuthFlowTimeout(OAuthFlowError):
    """No callback arrived before the attempt deadline."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"authentication timed out after {timeout:g}s")


class AuthFlowCancelled(OAuthFlowError):
    """The attempt was cancelled by the caller."""

    def __init__(self) -> None:
        super().__init__("authentication was cancelled")


# =============================================================================
# Tokens
# =============================================================================


class TokenError(AuthError):
    """Raised when token operations fail."""

    pass


class TokenRefreshError(TokenError):
    """The token endpoint rejected or failed the refresh grant."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"failed to refresh token: {reason}. {_REAUTH_HINT}")


class ReauthenticationRequiredError(TokenError):
    """No usable credential is left; only a fresh login helps."""

    def __init__(self, message: str = "token expired and no refresh token available") -> None:
        super().__init__(f"{message}. {_REAUTH_HINT}")


# =============================================================================
# Storage and encryption
# =============================================================================


class StorageError(AuthError):
    """Raised when a token store backend fails.

    This covers keyring backend failures, file I/O errors,
    permission issues and corrupted token files.
    """

    pass


class EncryptionError(AuthError):
    """Raised when encrypting token data fails."""

    pass


class DecryptionError(EncryptionError):
    """Blob is truncated, corrupted or was encrypted on another machine/account."""

    pass


class MachineIdentityError(EncryptionError):
    """No unique machine or user identity could be determined.

    The key derivation refuses to fall back to guessable inputs
    such as the hostname.
    """

    pass


__all__ = [
    "AuthError",
    "ValidationError",
    "ConfigurationError",
    "OAuthFlowError",
    "StateMismatchError",
    "MissingCodeError",
    "AuthorizationDeniedError",
    "TokenExchangeError",
    "AuthFlowTimeout",
    "AuthFlowCancelled",
    "TokenError",
    "TokenRefreshError",
    "ReauthenticationRequiredError",
    "StorageError",
    "EncryptionError",
    "DecryptionError",
    "MachineIdentityError",
]
