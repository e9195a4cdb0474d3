"""
PKCE (Proof Key for Code Exchange) and CSRF state generation.

PKCE binds the authorization request to the later code exchange:
the challenge travels in the authorization URL, the verifier only
in the token request. The state value is echoed back on the callback
and compared against the one generated for the attempt.

Both values come from the ``secrets`` module; running out of
entropy is not recoverable and propagates to the caller.
"""

import base64
import hashlib
import secrets
from dataclasses import dataclass

from .constants import PkceProtocol


@dataclass(frozen=True)
class PKCEChallenge:
    """PKCE code verifier and challenge pair.

    Attributes:
        verifier: URL-safe random string (43 chars), sent only on code exchange
        challenge: Base64url-encoded SHA-256 hash of the verifier (no padding)
        method: Challenge method, always "S256"
    """

    verifier: str
    challenge: str
    method: str = PkceProtocol.CODE_CHALLENGE_METHOD

    def __repr__(self) -> str:
        # Keep the verifier out of logs and tracebacks
        return f"PKCEChallenge(challenge={self.challenge!r}, method={self.method!r})"


def _s256(verifier: str) -> str:
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def generate_pkce() -> PKCEChallenge:
    """Generate a PKCE code verifier and S256 challenge.

    Returns:
        PKCEChallenge with a fresh verifier

    Example:
        >>> pkce = generate_pkce()
        >>> len(pkce.verifier)
        43
    """
    verifier = secrets.token_urlsafe(PkceProtocol.CODE_VERIFIER_BYTES)
    return PKCEChallenge(verifier=verifier, challenge=_s256(verifier))


def generate_state() -> str:
    """Generate an opaque CSRF state value for one authorization attempt."""
    return secrets.token_urlsafe(PkceProtocol.STATE_BYTES)


__all__ = ["PKCEChallenge", "generate_pkce", "generate_state"]
