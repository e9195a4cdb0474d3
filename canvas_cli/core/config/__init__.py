from canvas_cli.core.config.config import AuthConfig, AuthSettings, default_config_dir
from canvas_cli.core.config.instances import (
    InstanceCredentials,
    instance_name_from_url,
    normalize_url,
    sanitize_instance_name,
)
from canvas_cli.core.config.validation import ConfigError, validate_all

__all__ = [
    "AuthConfig",
    "AuthSettings",
    "ConfigError",
    "InstanceCredentials",
    "default_config_dir",
    "instance_name_from_url",
    "normalize_url",
    "sanitize_instance_name",
    "validate_all",
]
