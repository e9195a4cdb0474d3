"""
Storage abstraction for OAuth tokens.

Tokens are stored per Canvas instance, keyed by the instance name.
Backends:

- KeyringTokenStore: OS credential vault (service "canvas-cli")
- FileTokenStore: encrypted file under ``<config_dir>/tokens``
- FallbackTokenStore: keyring first, encrypted file when the vault fails
- InMemoryTokenStore: for testing and ephemeral use
"""

from abc import ABC, abstractmethod
from pathlib import Path

from ..oauth_token import OAuthToken


class TokenStore(ABC):
    """Abstract storage backend for OAuth tokens.

    ``load`` returns None when nothing is stored for the instance and
    raises StorageError when the backend fails; callers rely on telling
    the two apart.
    """

    @abstractmethod
    def save(self, instance_name: str, token: OAuthToken) -> None:
        """Persist the token for an instance.

        Raises:
            StorageError: If write fails
        """

    @abstractmethod
    def load(self, instance_name: str) -> OAuthToken | None:
        """Read the token for an instance.

        Returns:
            OAuthToken if found, None otherwise

        Raises:
            StorageError: If the backend fails or the record is unreadable
        """

    @abstractmethod
    def delete(self, instance_name: str) -> None:
        """Remove the token for an instance. Deleting nothing is not an error.

        Raises:
            StorageError: If removal fails
        """

    @abstractmethod
    def exists(self, instance_name: str) -> bool:
        """True if a token is stored for the instance. Never raises."""


# Import implementations (E402 exemption: implementations subclass TokenStore)
from .file_storage import FileTokenStore  # noqa: E402
from .keyring_storage import KeyringTokenStore  # noqa: E402
from .fallback_storage import FallbackTokenStore  # noqa: E402
from .memory_storage import InMemoryTokenStore  # noqa: E402

STORAGE_BACKENDS = ("fallback", "keyring", "file", "memory")


def create_token_store(
    backend: str = "fallback",
    config_dir: Path | str | None = None,
    *,
    keyring_service: str | None = None,
) -> TokenStore:
    """Create a token store.

    Args:
        backend: One of "fallback", "keyring", "file" or "memory"
        config_dir: Configuration directory for the file backend
            (defaults to ~/.canvas-cli)
        keyring_service: Keyring service name override

    Raises:
        ValueError: If the backend name is unknown
    """
    if backend not in STORAGE_BACKENDS:
        raise ValueError(
            f"Unknown token storage backend: {backend!r} "
            f"(expected one of: {', '.join(STORAGE_BACKENDS)})"
        )

    if backend == "memory":
        return InMemoryTokenStore()

    keyring_kwargs = {"service_name": keyring_service} if keyring_service else {}
    if backend == "keyring":
        return KeyringTokenStore(**keyring_kwargs)

    file_store = FileTokenStore(config_dir)
    if backend == "file":
        return file_store

    return FallbackTokenStore(KeyringTokenStore(**keyring_kwargs), file_store)


__all__ = [
    "TokenStore",
    "KeyringTokenStore",
    "FileTokenStore",
    "FallbackTokenStore",
    "InMemoryTokenStore",
    "STORAGE_BACKENDS",
    "create_token_store",
]
