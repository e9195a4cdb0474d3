"""
Authenticated encryption for tokens stored on disk.

Blob layout::

    salt (16 bytes) || nonce (12 bytes) || ciphertext + GCM tag (16 bytes)

The AES-256 key is derived with PBKDF2-HMAC-SHA256 from
``machine_id + ":" + username`` and the salt stored in the blob. No key
file exists: the key is recomputed on every decrypt, so a copied blob is
useless without the same machine and user account.
"""

from __future__ import annotations

import logging
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .constants import EncryptionDefaults
from .exceptions import DecryptionError, EncryptionError
from .identity import IdentityProvider, SystemIdentity

_logger = logging.getLogger(__name__)

_SALT = EncryptionDefaults.SALT_SIZE
_NONCE = EncryptionDefaults.NONCE_SIZE


class TokenCipher:
    """AES-256-GCM cipher keyed by the machine and user identity.

    Args:
        identity: Identity source for key derivation (defaults to the host)
        iterations: PBKDF2 iteration count
    """

    def __init__(
        self,
        identity: IdentityProvider | None = None,
        iterations: int = EncryptionDefaults.PBKDF2_ITERATIONS,
    ) -> None:
        self.identity = identity or SystemIdentity()
        self.iterations = iterations

    def derive_key(self, salt: bytes) -> bytes:
        """Derive the 32-byte key for ``salt``.

        Raises:
            MachineIdentityError: If machine id or username is unavailable
        """
        password = f"{self.identity.machine_id()}:{self.identity.username()}".encode()
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=EncryptionDefaults.KEY_SIZE,
            salt=salt,
            iterations=self.iterations,
        )
        return kdf.derive(password)

    def encrypt(self, plaintext: bytes) -> bytes:
        """Encrypt ``plaintext`` under a fresh salt and nonce."""
        salt = os.urandom(_SALT)
        key = self.derive_key(salt)
        nonce = os.urandom(_NONCE)

        try:
            sealed = AESGCM(key).encrypt(nonce, bytes(plaintext), None)
        except (ValueError, OverflowError) as e:
            raise EncryptionError(f"failed to encrypt: {e}") from e

        return salt + nonce + sealed

    def decrypt(self, blob: bytes) -> bytes:
        """Decrypt a blob produced by :meth:`encrypt`.

        Raises:
            DecryptionError: If the blob is too short, corrupted or was
                sealed under a different identity
            MachineIdentityError: If the identity cannot be determined
        """
        if len(blob) < EncryptionDefaults.MIN_BLOB_SIZE:
            raise DecryptionError("ciphertext too short")

        salt = blob[:_SALT]
        nonce = blob[_SALT : _SALT + _NONCE]
        sealed = blob[_SALT + _NONCE :]

        key = self.derive_key(bytes(salt))
        try:
            return AESGCM(key).decrypt(bytes(nonce), bytes(sealed), None)
        except InvalidTag as e:
            _logger.debug("Authentication tag mismatch while decrypting token blob")
            raise DecryptionError(
                "failed to decrypt: data is corrupted or was encrypted on another "
                "machine or user account"
            ) from e


def encrypt(plaintext: bytes) -> bytes:
    """Encrypt with the host identity."""
    return TokenCipher().encrypt(plaintext)


def decrypt(blob: bytes) -> bytes:
    """Decrypt with the host identity."""
    return TokenCipher().decrypt(blob)


__all__ = ["TokenCipher", "encrypt", "decrypt"]
