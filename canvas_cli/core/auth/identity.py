"""
Machine and user identity probes for key derivation.

The encryption key for stored tokens is derived from a unique machine
identifier and the operating system username. Nothing about the key is
stored, so both values must be reproducible on every run.

Probes run in order and the first non-empty answer wins:

1. ``CANVAS_CLI_MACHINE_ID`` environment override (tests and CI)
2. Linux ``/etc/machine-id`` and ``/var/lib/dbus/machine-id``
3. macOS ``IOPlatformUUID`` from ``ioreg``
4. Windows system UUID via PowerShell CIM, ``wmic`` and the
   ``MachineGuid`` registry value

The hostname is never used: it is guessable, and a key derived from it
would protect nothing.
"""

from __future__ import annotations

import abc
import logging
import os
import subprocess
from collections.abc import Callable, Sequence
from pathlib import Path

from .constants import EncryptionDefaults
from .exceptions import MachineIdentityError

_logger = logging.getLogger(__name__)

CommandRunner = Callable[[Sequence[str]], "str | None"]

_MACHINE_ID_FILES = (Path("/etc/machine-id"), Path("/var/lib/dbus/machine-id"))

_USERNAME_ENV_VARS = ("USER", "USERNAME", "LOGNAME")

_COMMAND_TIMEOUT = 10  # seconds


def run_command(args: Sequence[str]) -> str | None:
    """Run a probe command and return its stdout, or None if it is unavailable."""
    try:
        completed = subprocess.run(
            list(args),
            capture_output=True,
            text=True,
            timeout=_COMMAND_TIMEOUT,
            check=False,
        )
    except (OSError, subprocess.SubprocessError) as e:
        _logger.debug("Identity probe %s unavailable: %s", args[0], e)
        return None

    if completed.returncode != 0:
        _logger.debug("Identity probe %s exited with %d", args[0], completed.returncode)
        return None
    return completed.stdout


class IdentityProvider(abc.ABC):
    """Source of the machine and user identity used for key derivation."""

    @abc.abstractmethod
    def machine_id(self) -> str:
        """Return a stable, unique machine identifier.

        Raises:
            MachineIdentityError: If no unique identifier is available
        """

    @abc.abstractmethod
    def username(self) -> str:
        """Return the current operating system username.

        Raises:
            MachineIdentityError: If the username cannot be determined
        """


class SystemIdentity(IdentityProvider):
    """Identity read from the host operating system.

    Args:
        command_runner: Callable running an external command and returning
            stdout (None on failure). Injected in tests.
        environ: Environment mapping (defaults to ``os.environ``)
        machine_id_files: Files holding a Linux machine id
    """

    def __init__(
        self,
        command_runner: CommandRunner | None = None,
        environ: dict[str, str] | None = None,
        machine_id_files: Sequence[Path] = _MACHINE_ID_FILES,
    ) -> None:
        self._run = command_runner or run_command
        self._environ = environ if environ is not None else os.environ
        self._machine_id_files = tuple(machine_id_files)

    def machine_id(self) -> str:
        override = self._environ.get(EncryptionDefaults.MACHINE_ID_ENV_VAR, "").strip()
        if override:
            return override

        probes = (
            self._from_machine_id_files,
            self._from_ioreg,
            self._from_powershell_cim,
            self._from_wmic,
            self._from_registry,
        )
        for probe in probes:
            machine_id = probe()
            if machine_id:
                return machine_id

        raise MachineIdentityError(
            "could not obtain unique machine identifier: ensure /etc/machine-id exists "
            "(Linux), ioreg works (macOS), or wmic/PowerShell works (Windows), "
            f"or set {EncryptionDefaults.MACHINE_ID_ENV_VAR}"
        )

    def username(self) -> str:
        for name in _USERNAME_ENV_VARS:
            value = self._environ.get(name, "").strip()
            if value:
                return value

        output = self._run(["whoami"])
        username = output.strip() if output else ""
        if not username:
            raise MachineIdentityError("failed to determine the current username")
        return username

    # -------------------------------------------------------------------------
    # Platform probes
    # -------------------------------------------------------------------------

    def _from_machine_id_files(self) -> str | None:
        for path in self._machine_id_files:
            try:
                value = path.read_text(encoding="utf-8").strip()
            except OSError:
                continue
            if value:
                return value
        return None

    def _from_ioreg(self) -> str | None:
        output = self._run(["ioreg", "-rd1", "-c", "IOPlatformExpertDevice"])
        if not output:
            return None
        for line in output.splitlines():
            if "IOPlatformUUID" in line:
                # "IOPlatformUUID" = "XXXXXXXX-...."
                parts = line.split('"')
                if len(parts) >= 4 and parts[3]:
                    return parts[3]
        return None

    def _from_powershell_cim(self) -> str | None:
        output = self._run(
            [
                "powershell",
                "-Command",
                "(Get-CimInstance -ClassName Win32_ComputerSystemProduct).UUID",
            ]
        )
        return _usable_uuid(output.strip() if output else "")

    def _from_wmic(self) -> str | None:
        output = self._run(["wmic", "csproduct", "get", "UUID"])
        if not output:
            return None
        for line in output.splitlines():
            line = line.strip()
            if line and line != "UUID" and _usable_uuid(line):
                return line
        return None

    def _from_registry(self) -> str | None:
        output = self._run(
            [
                "powershell",
                "-Command",
                "(Get-ItemProperty -Path 'HKLM:\\SOFTWARE\\Microsoft\\Cryptography' "
                "-Name 'MachineGuid').MachineGuid",
            ]
        )
        value = output.strip() if output else ""
        return value or None


def _usable_uuid(value: str) -> str | None:
    if not value or value.upper() == EncryptionDefaults.BLANK_SYSTEM_UUID:
        return None
    return value


class StaticIdentity(IdentityProvider):
    """Fixed identity, for tests and for callers that manage identity themselves."""

    def __init__(self, machine_id: str, username: str) -> None:
        self._machine_id = machine_id
        self._username = username

    def machine_id(self) -> str:
        if not self._machine_id:
            raise MachineIdentityError("machine identifier is empty")
        return self._machine_id

    def username(self) -> str:
        if not self._username:
            raise MachineIdentityError("username is empty")
        return self._username


__all__ = [
    "IdentityProvider",
    "SystemIdentity",
    "StaticIdentity",
    "run_command",
]
