"""Declarative schema for environment variable configuration.

This module provides a single source of truth for all environment variables,
including automatic type coercion, validation, and documentation.

The schema-based approach provides:
- Single definition point for all config options
- Automatic type coercion (str -> int/float)
- Validation with clear error messages
"""

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_OAUTH_MODES = ("auto", "local", "oob")
_STORAGE_BACKENDS = ("fallback", "keyring", "file", "memory")


@dataclass(frozen=True)
class EnvVarSpec:
    """Specification for a single environment variable.

    Attributes:
        name: Environment variable name (e.g., "CANVAS_CLI_LOG_LEVEL")
        default: Default value if env var not set
        type_hint: Type for validation (int, str, float, Path)
        description: Human-readable description for docs
        validator: Optional custom validation function
        coerce: Optional function to convert string to target type
    """

    name: str
    default: Any
    type_hint: type
    description: str
    validator: Callable[[Any], bool] | None = None
    coerce: Callable[[str], Any] | None = None


class ConfigSchema:
    """Registry of all configuration environment variables."""

    # === General ===

    CONFIG_DIR = EnvVarSpec(
        name="CANVAS_CLI_CONFIG_DIR",
        default=None,
        type_hint=Path,
        description="Configuration directory (default: ~/.canvas-cli)",
        coerce=lambda x: Path(x).expanduser(),
    )

    LOG_LEVEL = EnvVarSpec(
        name="CANVAS_CLI_LOG_LEVEL",
        default="WARNING",
        type_hint=str,
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        validator=lambda x: x in _LOG_LEVELS,
        coerce=lambda x: x.strip().upper(),
    )

    # === OAuth ===

    OAUTH_MODE = EnvVarSpec(
        name="CANVAS_CLI_OAUTH_MODE",
        default="auto",
        type_hint=str,
        description="OAuth flow mode: auto, local or oob",
        validator=lambda x: x in _OAUTH_MODES,
        coerce=lambda x: x.strip().lower(),
    )

    OAUTH_CALLBACK_PORT = EnvVarSpec(
        name="CANVAS_CLI_OAUTH_PORT",
        default=8080,
        type_hint=int,
        description="Local port for the OAuth callback server",
        validator=lambda x: 1024 <= x <= 65535,
    )

    OAUTH_TIMEOUT = EnvVarSpec(
        name="CANVAS_CLI_OAUTH_TIMEOUT",
        default=300.0,
        type_hint=float,
        description="Seconds to wait for the OAuth callback",
        validator=lambda x: 1 <= x <= 3600,
    )

    # === Token storage ===

    TOKEN_STORAGE = EnvVarSpec(
        name="CANVAS_CLI_TOKEN_STORAGE",
        default="fallback",
        type_hint=str,
        description="Token storage backend: fallback, keyring, file or memory",
        validator=lambda x: x in _STORAGE_BACKENDS,
        coerce=lambda x: x.strip().lower(),
    )

    KEYRING_SERVICE = EnvVarSpec(
        name="CANVAS_CLI_KEYRING_SERVICE",
        default="canvas-cli",
        type_hint=str,
        description="Service name used for OS keyring entries",
        validator=lambda x: bool(x),
    )

    @classmethod
    def all_specs(cls) -> dict[str, EnvVarSpec]:
        """Get all environment variable specifications.

        Returns:
            Dictionary mapping spec names to EnvVarSpec objects
        """
        return {
            name: getattr(cls, name)
            for name in dir(cls)
            if isinstance(getattr(cls, name), EnvVarSpec)
        }

    @classmethod
    def get_spec(cls, name: str) -> EnvVarSpec | None:
        """Get specification for a specific env var by name.

        Args:
            name: The environment variable name (e.g., "CANVAS_CLI_OAUTH_PORT")

        Returns:
            EnvVarSpec if found, None otherwise
        """
        for spec in cls.all_specs().values():
            if spec.name == name:
                return spec
        return None
