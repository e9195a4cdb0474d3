"""
Centralized constants for the authentication core.

This module organizes all magic numbers into logical categories,
making the codebase more maintainable and self-documenting.

Constants are grouped by:
- Configurable defaults: Values users may want to override
- Protocol constants: Fixed by OAuth/PKCE specifications
- Cryptography constants: Blob layout and key derivation parameters
- Internal constants: Implementation details
- Validation limits: Valid ranges for parameters
"""

from __future__ import annotations

# =============================================================================
# CONFIGURABLE DEFAULTS
# =============================================================================


class OAuthEndpoints:
    """Paths on a Canvas instance used by the authentication core.

    All paths are appended to the normalized instance base URL.
    """

    AUTHORIZE_PATH = "/login/oauth2/auth"
    TOKEN_PATH = "/login/oauth2/token"
    # Endpoint used to check that a bearer token is accepted
    CURRENT_USER_PATH = "/api/v1/users/self"


class OAuthDefaults:
    """Default values for the OAuth flow.

    - Port 8080: registered as the redirect port for Canvas developer keys
    - 300s timeout: 5 minutes is reasonable for user interaction
    - 5s shutdown grace: the callback listener must not outlive the attempt
    """

    CALLBACK_PORT = 8080
    CALLBACK_PATH = "/oauth/callback"
    CALLBACK_HOST = "localhost"
    CALLBACK_TIMEOUT = 300  # seconds (5 minutes)

    SERVER_SHUTDOWN_GRACE = 5.0  # seconds

    # HTTP request timeout for code exchange and token checks
    HTTP_REQUEST_TIMEOUT = 30  # seconds


class TokenRefreshDefaults:
    """Default values for token refresh logic.

    Tokens are refreshed 5 minutes before expiry so that a request started
    with a cached token does not fail halfway through.
    """

    REFRESH_BUFFER_SECONDS = 300

    # Upper bound on a single refresh grant round trip
    REFRESH_TIMEOUT_SECONDS = 30


# =============================================================================
# PROTOCOL CONSTANTS (Fixed by Standards)
# =============================================================================


class OAuthProtocol:
    """Constants defined by OAuth 2.0 and related RFCs."""

    HTTP_OK = 200
    HTTP_BAD_REQUEST = 400
    HTTP_NOT_FOUND = 404
    HTTP_INTERNAL_ERROR = 500

    GRANT_TYPE_AUTH_CODE = "authorization_code"
    GRANT_TYPE_REFRESH_TOKEN = "refresh_token"

    RESPONSE_TYPE_CODE = "code"
    TOKEN_TYPE_BEARER = "Bearer"

    # Out-of-band redirect sentinel recognized by Canvas
    OOB_REDIRECT_URI = "urn:ietf:wg:oauth:2.0:oob"


class PkceProtocol:
    """Constants defined by PKCE (RFC 7636) specification.

    32 random bytes base64url-encoded without padding give a 43 character
    verifier, the minimum length allowed by RFC 7636 Section 4.1.
    """

    CODE_VERIFIER_BYTES = 32
    STATE_BYTES = 32

    CODE_CHALLENGE_METHOD = "S256"


# =============================================================================
# CRYPTOGRAPHY
# =============================================================================


class EncryptionDefaults:
    """Layout of encrypted token blobs and key derivation parameters.

    Blob layout: salt (16) || nonce (12) || ciphertext + tag (16).
    """

    SALT_SIZE = 16
    NONCE_SIZE = 12
    TAG_SIZE = 16
    KEY_SIZE = 32  # AES-256

    # OWASP recommends more for PBKDF2-SHA256; 100k keeps CLI startup fast
    PBKDF2_ITERATIONS = 100_000

    MIN_BLOB_SIZE = SALT_SIZE + NONCE_SIZE + TAG_SIZE

    MACHINE_ID_ENV_VAR = "CANVAS_CLI_MACHINE_ID"

    # Placeholder UUID reported by firmware without a real system UUID
    BLANK_SYSTEM_UUID = "FFFFFFFF-FFFF-FFFF-FFFF-FFFFFFFFFFFF"


# =============================================================================
# INTERNAL CONSTANTS
# =============================================================================


class StorageDefaults:
    """Token storage defaults."""

    KEYRING_SERVICE = "canvas-cli"

    TOKENS_DIR_NAME = "tokens"
    TOKEN_FILE_SUFFIX = ".token.enc"

    # octal 0600 = rw------- and 0700 = rwx------
    FILE_PERMISSIONS = 0o600
    DIR_PERMISSIONS = 0o700


# =============================================================================
# VALIDATION RANGES
# =============================================================================


class ValidationLimits:
    """Valid ranges for user-configurable parameters."""

    # Ports below 1024 require root/admin privileges
    MIN_PORT = 1024
    MAX_PORT = 65535

    MIN_TIMEOUT_SECONDS = 1
    MAX_TIMEOUT_SECONDS = 3600

    MAX_INSTANCE_NAME_LENGTH = 100


__all__ = [
    "OAuthEndpoints",
    "OAuthDefaults",
    "TokenRefreshDefaults",
    "OAuthProtocol",
    "PkceProtocol",
    "EncryptionDefaults",
    "StorageDefaults",
    "ValidationLimits",
]
