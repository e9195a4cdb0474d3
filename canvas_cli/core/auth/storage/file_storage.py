"""
Encrypted file token storage.

Stores each instance's token in ``<config_dir>/tokens/<name>.token.enc``,
encrypted with a key bound to this machine and user account. The
directory is created with mode 0700 and files are written atomically
with mode 0600.
"""

import json
import logging
import os
import tempfile
from pathlib import Path

from ..constants import StorageDefaults
from ..encryption import TokenCipher
from ..exceptions import EncryptionError, StorageError, ValidationError
from ..oauth_token import OAuthToken
from ..validation import validate_instance_name
from . import TokenStore

_logger = logging.getLogger(__name__)


def default_config_dir() -> Path:
    """Return ~/.canvas-cli."""
    return Path.home() / ".canvas-cli"


class FileTokenStore(TokenStore):
    """File-based encrypted token storage.

    Args:
        config_dir: Configuration directory; tokens live in its
            ``tokens`` subdirectory. Defaults to ~/.canvas-cli.
        cipher: Cipher used to seal token files (defaults to one keyed
            by the host identity)
    """

    def __init__(self, config_dir: Path | str | None = None, cipher: TokenCipher | None = None):
        base = Path(config_dir).expanduser() if config_dir else default_config_dir()
        self.tokens_dir = base / StorageDefaults.TOKENS_DIR_NAME
        self.cipher = cipher or TokenCipher()

    def path_for(self, instance_name: str) -> Path:
        """Get the token file path for an instance."""
        validate_instance_name(instance_name)
        return self.tokens_dir / f"{instance_name}{StorageDefaults.TOKEN_FILE_SUFFIX}"

    def save(self, instance_name: str, token: OAuthToken) -> None:
        """Encrypt and write the token.

        Raises:
            StorageError: If encryption or the write fails
        """
        path = self.path_for(instance_name)
        plaintext = json.dumps(token.to_dict(), separators=(",", ":")).encode("utf-8")

        try:
            blob = self.cipher.encrypt(plaintext)
        except EncryptionError as e:
            raise StorageError(f"failed to encrypt token: {e}") from e

        try:
            self.tokens_dir.mkdir(mode=StorageDefaults.DIR_PERMISSIONS, parents=True, exist_ok=True)
            self._write_atomic(path, blob)
        except OSError as e:
            _logger.error("Failed to write token file %s: %s", path, e)
            raise StorageError(f"failed to write token file: {e}") from e

    def _write_atomic(self, path: Path, data: bytes) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=self.tokens_dir, prefix=".", suffix=".tmp")
        try:
            # mkstemp already creates the file 0600; chmod covers odd umasks
            if hasattr(os, "fchmod"):
                os.fchmod(fd, StorageDefaults.FILE_PERMISSIONS)
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def load(self, instance_name: str) -> OAuthToken | None:
        """Read and decrypt the token.

        Returns:
            OAuthToken if the file exists, None otherwise

        Raises:
            StorageError: If the file cannot be read, decrypted or parsed
        """
        path = self.path_for(instance_name)
        try:
            blob = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            _logger.error("Failed to read token file %s: %s", path, e)
            raise StorageError(f"failed to read token file: {e}") from e

        try:
            plaintext = self.cipher.decrypt(blob)
        except EncryptionError as e:
            raise StorageError(f"failed to decrypt token: {e}") from e

        try:
            return OAuthToken.from_dict(json.loads(plaintext))
        except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as e:
            _logger.error("Corrupted token file %s: %s", path, e)
            raise StorageError(f"invalid token data in {path}: {e}") from e

    def delete(self, instance_name: str) -> None:
        path = self.path_for(instance_name)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            _logger.error("Failed to remove token file %s: %s", path, e)
            raise StorageError(f"failed to delete token file: {e}") from e

    def exists(self, instance_name: str) -> bool:
        try:
            return self.path_for(instance_name).is_file()
        except (ValidationError, OSError):
            return False

    def __repr__(self) -> str:
        return f"FileTokenStore(tokens_dir={str(self.tokens_dir)!r})"
