"""Authentication settings for canvas-cli.

Settings are loaded from environment variables (and a ``.env`` file,
loaded when the package is imported) using schema-based validation.
"""

from dataclasses import dataclass
from pathlib import Path

from canvas_cli.core.auth.storage.file_storage import default_config_dir
from canvas_cli.core.config.schema import ConfigSchema
from canvas_cli.core.config.validation import load_env_var


@dataclass(frozen=True)
class AuthConfig:
    """Configuration for authentication and token storage.

    Attributes:
        config_dir: Directory holding configuration and encrypted tokens
        log_level: Root log level name
        oauth_mode: Default OAuth flow mode ("auto", "local" or "oob")
        callback_port: Local OAuth callback port
        oauth_timeout: Seconds to wait for the OAuth callback
        token_storage: Token storage backend name
        keyring_service: OS keyring service name
    """

    config_dir: Path
    log_level: str
    oauth_mode: str
    callback_port: int
    oauth_timeout: float
    token_storage: str
    keyring_service: str


class AuthSettings:
    """Loads authentication configuration from environment variables."""

    @staticmethod
    def load() -> AuthConfig:
        """Load authentication configuration using schema-based validation.

        Raises:
            ConfigError: If any environment variable fails validation
        """
        return AuthConfig(
            config_dir=load_env_var(ConfigSchema.CONFIG_DIR) or default_config_dir(),
            log_level=load_env_var(ConfigSchema.LOG_LEVEL),
            oauth_mode=load_env_var(ConfigSchema.OAUTH_MODE),
            callback_port=load_env_var(ConfigSchema.OAUTH_CALLBACK_PORT),
            oauth_timeout=load_env_var(ConfigSchema.OAUTH_TIMEOUT),
            token_storage=load_env_var(ConfigSchema.TOKEN_STORAGE),
            keyring_service=load_env_var(ConfigSchema.KEYRING_SERVICE),
        )
