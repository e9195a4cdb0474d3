"""
Canvas Auth Library

OAuth authentication and secure credential storage for Canvas LMS
instances. Framework-agnostic: the CLI uses it, and so can scripts.

This library provides:
- OAuth 2.0 Authorization Code + PKCE flow (local callback, out-of-band, auto)
- Token sources with automatic refresh
- Token storage (OS keyring, encrypted file, fallback, memory)
- Machine-bound AES-GCM encryption for token files

Basic Usage:
    >>> from canvas_cli.core.auth import OAuthConfig, OAuthFlow, create_token_store
    >>>
    >>> # One-time authentication
    >>> config = OAuthConfig(base_url="https://canvas.example.edu", client_id="10000")
    >>> token = OAuthFlow(config).authenticate()
    >>> store = create_token_store("fallback")
    >>> store.save("example", token)
    >>>
    >>> # Get access token (auto-refreshes if needed)
    >>> refresher = create_refresher_for_instance(config.base_url, config.client_id)
    >>> source = AutoRefreshTokenSource(token, store, "example", refresher)
    >>> headers = {"Authorization": f"Bearer {source.get_access_token()}"}

For Testing:
    >>> from canvas_cli.core.auth import InMemoryTokenStore, StaticIdentity
    >>> store = InMemoryTokenStore()
    >>> # No keyring or file I/O, data persists only in memory
"""

from .callback_server import OAuthCallbackHandler, OAuthHTTPServer
from .encryption import TokenCipher, decrypt, encrypt

# Exceptions
from .exceptions import (
    AuthError,
    AuthFlowCancelled,
    AuthFlowTimeout,
    AuthorizationDeniedError,
    ConfigurationError,
    DecryptionError,
    EncryptionError,
    MachineIdentityError,
    MissingCodeError,
    OAuthFlowError,
    ReauthenticationRequiredError,
    StateMismatchError,
    StorageError,
    TokenError,
    TokenExchangeError,
    TokenRefreshError,
    ValidationError,
)

# HTTP client
from .http_client import (
    HttpClient,
    HttpError,
    HttpxHttpClient,
)
from .identity import IdentityProvider, StaticIdentity, SystemIdentity

# OAuth flow
from .oauth import FlowState, OAuthConfig, OAuthFlow, OAuthMode
from .oauth_token import OAuthToken
from .pkce import PKCEChallenge, generate_pkce, generate_state

# Storage backends
from .storage import (
    FallbackTokenStore,
    FileTokenStore,
    InMemoryTokenStore,
    KeyringTokenStore,
    TokenStore,
    create_token_store,
)
from .token_exchanger import TokenExchangeContext, TokenExchanger

# Token sources
from .tokens import (
    AutoRefreshTokenSource,
    StaticTokenSource,
    create_refresher_for_instance,
    token_source_for_instance,
)

__all__ = [
    # Storage
    "TokenStore",
    "KeyringTokenStore",
    "FileTokenStore",
    "FallbackTokenStore",
    "InMemoryTokenStore",
    "create_token_store",
    # Encryption
    "TokenCipher",
    "encrypt",
    "decrypt",
    "IdentityProvider",
    "SystemIdentity",
    "StaticIdentity",
    # OAuth
    "OAuthFlow",
    "OAuthConfig",
    "OAuthMode",
    "FlowState",
    "OAuthHTTPServer",
    "OAuthCallbackHandler",
    "TokenExchanger",
    "TokenExchangeContext",
    "OAuthToken",
    "PKCEChallenge",
    "generate_pkce",
    "generate_state",
    # Tokens
    "AutoRefreshTokenSource",
    "StaticTokenSource",
    "create_refresher_for_instance",
    "token_source_for_instance",
    # HTTP client
    "HttpClient",
    "HttpError",
    "HttpxHttpClient",
    # Exceptions
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
