"""
OS keyring token storage.

Tokens are stored as a compact JSON record under
``(service_name, instance_name)`` using the ``keyring`` library, which
talks to the macOS Keychain, Windows Credential Manager or the Secret
Service on Linux.
"""

import json
import logging

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from ..constants import StorageDefaults
from ..exceptions import StorageError, ValidationError
from ..oauth_token import OAuthToken
from ..validation import validate_instance_name
from . import TokenStore

_logger = logging.getLogger(__name__)


class KeyringTokenStore(TokenStore):
    """Token store backed by the OS credential vault.

    Args:
        service_name: Keyring service name (default "canvas-cli")
    """

    def __init__(self, service_name: str = StorageDefaults.KEYRING_SERVICE) -> None:
        self.service_name = service_name

    def save(self, instance_name: str, token: OAuthToken) -> None:
        validate_instance_name(instance_name)
        record = json.dumps(token.to_dict(), separators=(",", ":"))
        try:
            keyring.set_password(self.service_name, instance_name, record)
        except KeyringError as e:
            _logger.debug("Keyring write failed for %s: %s", instance_name, e)
            raise StorageError(f"failed to store token in keyring: {e}") from e

    def load(self, instance_name: str) -> OAuthToken | None:
        validate_instance_name(instance_name)
        try:
            record = keyring.get_password(self.service_name, instance_name)
        except KeyringError as e:
            _logger.debug("Keyring read failed for %s: %s", instance_name, e)
            raise StorageError(f"failed to retrieve token from keyring: {e}") from e

        if record is None:
            return None

        try:
            return OAuthToken.from_dict(json.loads(record))
        except (json.JSONDecodeError, ValidationError) as e:
            raise StorageError(f"invalid token record in keyring: {e}") from e

    def delete(self, instance_name: str) -> None:
        validate_instance_name(instance_name)
        try:
            keyring.delete_password(self.service_name, instance_name)
        except PasswordDeleteError:
            # Nothing stored under this name
            return
        except KeyringError as e:
            raise StorageError(f"failed to delete token from keyring: {e}") from e

    def exists(self, instance_name: str) -> bool:
        try:
            return self.load(instance_name) is not None
        except (StorageError, ValidationError):
            return False

    def __repr__(self) -> str:
        return f"KeyringTokenStore(service_name={self.service_name!r})"
