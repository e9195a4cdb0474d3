"""Loading of ``CANVAS_CLI_*`` environment variables against ConfigSchema.

Every variable goes through the same three steps: read (unset or empty
means the default), convert, then check. Problems are reported as
:class:`ConfigError` naming the variable, so the CLI can print all of
them before doing any work.
"""

import os
from collections.abc import Callable, Mapping
from typing import Any

from canvas_cli.core.config.schema import ConfigSchema, EnvVarSpec

# Converters for specs that do not carry their own
_CONVERTERS: dict[type, Callable[[str], Any]] = {
    int: lambda raw: int(raw.strip()),
    float: lambda raw: float(raw.strip()),
}


class ConfigError(Exception):
    """An environment variable holds an unusable value.

    Attributes:
        env_var: Variable name
        value: Raw value as found in the environment
        message: What is wrong with it
    """

    def __init__(self, env_var: str, value: str, message: str) -> None:
        self.env_var = env_var
        self.value = value
        self.message = message
        super().__init__(f"{env_var}={value!r}: {message}")


def _convert(spec: EnvVarSpec, raw: str) -> Any:
    converter = spec.coerce or _CONVERTERS.get(spec.type_hint)
    if converter is None:
        return raw
    try:
        return converter(raw)
    except (ValueError, TypeError) as e:
        raise ConfigError(spec.name, raw, f"Cannot convert to {spec.type_hint.__name__}") from e


def load_env_var(spec: EnvVarSpec, environ: Mapping[str, str] | None = None) -> Any:
    """Return the converted and checked value of one variable.

    Args:
        spec: Variable definition from ConfigSchema
        environ: Environment to read (``os.environ`` if None)

    Raises:
        ConfigError: If the value cannot be converted or fails its check
    """
    env = os.environ if environ is None else environ
    raw = env.get(spec.name, "")
    if raw == "":
        return spec.default

    value = _convert(spec, raw)
    if spec.validator is None:
        return value

    try:
        accepted = spec.validator(value)
    except TypeError as e:
        raise ConfigError(spec.name, raw, f"Validation error: {e}") from e
    if not accepted:
        raise ConfigError(spec.name, raw, f"Validation failed ({spec.description})")
    return value


def load_all_specs(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Load every schema variable, keeping failures as ConfigError values."""
    values: dict[str, Any] = {}
    for attr, spec in ConfigSchema.all_specs().items():
        try:
            values[attr] = load_env_var(spec, environ)
        except ConfigError as e:
            values[attr] = e
    return values


def validate_all(environ: Mapping[str, str] | None = None) -> list[ConfigError]:
    """Return the problems of all schema variables (empty when none)."""
    return [v for v in load_all_specs(environ).values() if isinstance(v, ConfigError)]
