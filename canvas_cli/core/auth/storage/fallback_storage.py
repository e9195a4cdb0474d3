"""
Keyring-first token storage with an encrypted file fallback.

Headless machines and CI runners often have no usable credential vault.
The fallback store tries the primary backend first and falls back to
the secondary one when the primary fails.
"""

import logging

from ..exceptions import StorageError
from ..oauth_token import OAuthToken
from . import TokenStore

_logger = logging.getLogger(__name__)


class FallbackTokenStore(TokenStore):
    """Primary store with a secondary store behind it.

    - save: primary; on StorageError the secondary result is authoritative
    - load: primary; secondary on error or miss
    - exists: either store
    - delete: both; raises only when both fail

    Args:
        primary: Preferred store (normally the keyring)
        secondary: Store used when the primary fails (normally the file)
    """

    def __init__(self, primary: TokenStore, secondary: TokenStore) -> None:
        self.primary = primary
        self.secondary = secondary

    def save(self, instance_name: str, token: OAuthToken) -> None:
        try:
            self.primary.save(instance_name, token)
            return
        except StorageError as e:
            _logger.warning(
                "Keyring unavailable (%s), storing token in encrypted file instead", e
            )
        self.secondary.save(instance_name, token)

    def load(self, instance_name: str) -> OAuthToken | None:
        try:
            token = self.primary.load(instance_name)
        except StorageError as e:
            _logger.debug("Primary token store failed for %s: %s", instance_name, e)
            token = None
        if token is not None:
            return token
        return self.secondary.load(instance_name)

    def delete(self, instance_name: str) -> None:
        errors: list[StorageError] = []
        for store in (self.primary, self.secondary):
            try:
                store.delete(instance_name)
            except StorageError as e:
                errors.append(e)

        if len(errors) == 2:
            raise StorageError(
                f"failed to delete token from all backends: {errors[0]}; {errors[1]}"
            )
        for e in errors:
            _logger.debug("Token delete partially failed for %s: %s", instance_name, e)

    def exists(self, instance_name: str) -> bool:
        return self.primary.exists(instance_name) or self.secondary.exists(instance_name)

    def __repr__(self) -> str:
        return f"FallbackTokenStore(primary={self.primary!r}, secondary={self.secondary!r})"
