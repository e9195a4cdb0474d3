"""
Argument checks shared by the flow configuration and the token stores.

Each check returns the accepted value or raises ValidationError naming
the offending field.

Example:
    >>> validate_port(80, "callback_port")
    ValidationError: Invalid 'callback_port': must be at least 1024 (got 80)
"""

from __future__ import annotations

import urllib.parse

from .constants import ValidationLimits
from .exceptions import ValidationError

_PATH_SEPARATORS = ("/", "\\", "\x00")


def validate_type(value: object, expected_type: type | tuple[type, ...], field_name: str) -> None:
    """Raise ValidationError unless ``value`` is an instance of ``expected_type``."""
    if isinstance(value, expected_type):
        return
    expected = expected_type if isinstance(expected_type, tuple) else (expected_type,)
    names = " or ".join(t.__name__ for t in expected)
    raise ValidationError(field_name, value, f"must be {names}, got {type(value).__name__}")


def validate_string(value: object, field_name: str, allow_empty: bool = False) -> str:
    """Accept a string, rejecting "" unless ``allow_empty``."""
    validate_type(value, str, field_name)
    assert isinstance(value, str)
    if not value and not allow_empty:
        raise ValidationError(field_name, value, "must be a non-empty string")
    return value


def validate_range(
    value: float,
    field_name: str,
    min_value: float | None = None,
    max_value: float | None = None,
) -> float:
    """Accept a number inside the inclusive bounds. Booleans are rejected."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(field_name, value, "must be a number")
    if min_value is not None and value < min_value:
        raise ValidationError(field_name, value, f"must be at least {min_value}")
    if max_value is not None and value > max_value:
        raise ValidationError(field_name, value, f"must be at most {max_value}")
    return value


def validate_port(port: int, field_name: str = "port") -> int:
    """Accept an unprivileged TCP port (1024-65535)."""
    validate_type(port, int, field_name)
    validate_range(port, field_name, ValidationLimits.MIN_PORT, ValidationLimits.MAX_PORT)
    return port


def validate_timeout(seconds: float, field_name: str = "timeout") -> float:
    """Accept a timeout between 1 second and 1 hour."""
    return validate_range(
        seconds,
        field_name,
        ValidationLimits.MIN_TIMEOUT_SECONDS,
        ValidationLimits.MAX_TIMEOUT_SECONDS,
    )


def validate_url(value: str, field_name: str, require_https: bool = False) -> str:
    """Accept an absolute http(s) URL.

    Raises:
        ValidationError: If the URL is empty or malformed, has another
            scheme or no host, or is plain http while ``require_https``
    """
    validate_string(value, field_name)

    try:
        parsed = urllib.parse.urlparse(value)
        host = parsed.netloc
    except ValueError as e:
        raise ValidationError(field_name, value, f"malformed URL: {e}") from e

    if parsed.scheme not in ("http", "https") or not host:
        raise ValidationError(field_name, value, "URL must have http(s) scheme and host")
    if require_https and parsed.scheme == "http":
        raise ValidationError(field_name, value, "URL must use HTTPS scheme")
    return value


def validate_instance_name(value: object, field_name: str = "instance_name") -> str:
    """Accept a name that is safe to use as a storage key and file name."""
    name = validate_string(value, field_name)

    if name in (".", "..") or any(sep in name for sep in _PATH_SEPARATORS):
        raise ValidationError(field_name, name, "must not contain path separators")

    limit = ValidationLimits.MAX_INSTANCE_NAME_LENGTH
    if len(name) > limit:
        raise ValidationError(field_name, name, f"must be at most {limit} characters")
    return name


__all__ = [
    "validate_type",
    "validate_string",
    "validate_range",
    "validate_port",
    "validate_timeout",
    "validate_url",
    "validate_instance_name",
]
