"""
In-memory token storage for testing and ephemeral use.

Tokens are lost when the process exits.
"""

from ..oauth_token import OAuthToken
from ..validation import validate_instance_name
from . import TokenStore


class InMemoryTokenStore(TokenStore):
    """In-memory token storage keyed by instance name."""

    def __init__(self) -> None:
        self._tokens: dict[str, OAuthToken] = {}

    def save(self, instance_name: str, token: OAuthToken) -> None:
        validate_instance_name(instance_name)
        self._tokens[instance_name] = token

    def load(self, instance_name: str) -> OAuthToken | None:
        return self._tokens.get(instance_name)

    def delete(self, instance_name: str) -> None:
        self._tokens.pop(instance_name, None)

    def exists(self, instance_name: str) -> bool:
        return instance_name in self._tokens

    def __repr__(self) -> str:
        return f"InMemoryTokenStore(instances={sorted(self._tokens)})"
