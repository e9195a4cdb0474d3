"""Canvas instance credentials and naming helpers."""

from __future__ import annotations

import urllib.parse
from dataclasses import dataclass

_MAX_INSTANCE_NAME_LENGTH = 100
_UNSAFE_NAME_CHARS = '/\\:*?"<>|'


def normalize_url(url: str) -> str:
    """Normalize an instance URL.

    Adds ``https://`` when no scheme is given and strips trailing slashes.

    Example:
        >>> normalize_url("canvas.example.edu/")
        'https://canvas.example.edu'
    """
    url = url.strip()
    if not url.startswith(("http://", "https://")):
        url = "https://" + url
    return url.rstrip("/")


def sanitize_instance_name(name: str) -> str:
    """Make a string safe to use as an instance name (and file name).

    Characters that are invalid in file names are replaced with ``-``,
    surrounding whitespace is removed and the result is capped at
    100 characters.
    """
    for char in _UNSAFE_NAME_CHARS:
        name = name.replace(char, "-")
    name = name.strip()
    return name[:_MAX_INSTANCE_NAME_LENGTH]


def instance_name_from_url(url: str) -> str:
    """Derive a default instance name from the URL host."""
    host = urllib.parse.urlparse(normalize_url(url)).hostname or url
    return sanitize_instance_name(host)


@dataclass(frozen=True)
class InstanceCredentials:
    """Credentials configured for one Canvas instance.

    Attributes:
        name: Instance name, used as the token storage key
        base_url: Normalized instance URL
        client_id: Developer key client ID ("" when using a static token)
        client_secret: Developer key secret
        token: Manually issued access token ("" when using OAuth)
    """

    name: str
    base_url: str
    client_id: str = ""
    client_secret: str = ""
    token: str = ""

    def has_oauth(self) -> bool:
        return bool(self.client_id)

    def has_static_token(self) -> bool:
        return bool(self.token)

    def auth_type(self) -> str:
        """Return "token", "oauth" or "none"; a static token takes precedence."""
        if self.has_static_token():
            return "token"
        if self.has_oauth():
            return "oauth"
        return "none"

    def __repr__(self) -> str:
        return (
            f"InstanceCredentials(name={self.name!r}, base_url={self.base_url!r}, "
            f"client_id={self.client_id!r}, auth_type={self.auth_type()!r})"
        )
