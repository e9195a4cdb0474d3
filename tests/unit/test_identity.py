"""Unit tests for machine and user identity probes."""

import pytest

from canvas_cli.core.auth.exceptions import MachineIdentityError
from canvas_cli.core.auth.identity import StaticIdentity, SystemIdentity


class FakeRunner:
    """Command runner returning canned output per program name."""

    def __init__(self, outputs=None):
        self.outputs = outputs or {}
        self.calls = []

    def __call__(self, args):
        self.calls.append(list(args))
        return self.outputs.get(args[0])


def _identity(tmp_path, environ=None, outputs=None, files=()):
    runner = FakeRunner(outputs)
    identity = SystemIdentity(
        command_runner=runner,
        environ=environ if environ is not None else {},
        machine_id_files=[tmp_path / name for name in files] or [tmp_path / "missing"],
    )
    return identity, runner


@pytest.mark.unit
class TestMachineId:
    """Test cases for SystemIdentity.machine_id."""

    def test_environment_override_wins(self, tmp_path):
        (tmp_path / "machine-id").write_text("from-file\n")
        identity, runner = _identity(
            tmp_path,
            environ={"CANVAS_CLI_MACHINE_ID": "from-env"},
            files=["machine-id"],
        )

        assert identity.machine_id() == "from-env"
        assert runner.calls == []

    def test_reads_linux_machine_id_file(self, tmp_path):
        (tmp_path / "machine-id").write_text("abc123\n")
        identity, _ = _identity(tmp_path, files=["machine-id"])

        assert identity.machine_id() == "abc123"

    def test_skips_empty_machine_id_file(self, tmp_path):
        (tmp_path / "etc-machine-id").write_text("\n")
        (tmp_path / "dbus-machine-id").write_text("dbus-id\n")
        identity, _ = _identity(tmp_path, files=["etc-machine-id", "dbus-machine-id"])

        assert identity.machine_id() == "dbus-id"

    def test_parses_macos_ioreg(self, tmp_path):
        ioreg = (
            '+-o J314sAP  <class IOPlatformExpertDevice>\n'
            '    "IOPlatformSerialNumber" = "C02XXXXX"\n'
            '    "IOPlatformUUID" = "5A2B9C3D-1111-2222-3333-444455556666"\n'
        )
        identity, _ = _identity(tmp_path, outputs={"ioreg": ioreg})

        assert identity.machine_id() == "5A2B9C3D-1111-2222-3333-444455556666"

    def test_rejects_blank_windows_uuid(self, tmp_path):
        """Test that the all-F placeholder UUID is skipped for the next probe."""
        identity, _ = _identity(
            tmp_path,
            outputs={
                "powershell": "FFFFFFFF-FFFF-FFFF-FFFF-FFFFFFFFFFFF\r\n",
                "wmic": "UUID\r\n4C4C4544-0042-3510-8051-B7C04F4E3732\r\n",
            },
        )

        assert identity.machine_id() == "4C4C4544-0042-3510-8051-B7C04F4E3732"

    def test_no_identifier_raises(self, tmp_path):
        identity, runner = _identity(tmp_path)

        with pytest.raises(MachineIdentityError, match="CANVAS_CLI_MACHINE_ID"):
            identity.machine_id()

        # Never falls back to the hostname
        assert all(call[0] != "hostname" for call in runner.calls)


@pytest.mark.unit
class TestUsername:
    """Test cases for SystemIdentity.username."""

    def test_prefers_user_variable(self, tmp_path):
        identity, _ = _identity(tmp_path, environ={"USER": "alice", "LOGNAME": "other"})

        assert identity.username() == "alice"

    def test_falls_back_to_logname(self, tmp_path):
        identity, _ = _identity(tmp_path, environ={"LOGNAME": "carol"})

        assert identity.username() == "carol"

    def test_falls_back_to_whoami(self, tmp_path):
        identity, runner = _identity(tmp_path, outputs={"whoami": "CORP\\dave\r\n"})

        assert identity.username() == "CORP\\dave"
        assert runner.calls == [["whoami"]]

    def test_empty_username_raises(self, tmp_path):
        identity, _ = _identity(tmp_path, environ={"USER": "  "})

        with pytest.raises(MachineIdentityError):
            identity.username()


@pytest.mark.unit
class TestStaticIdentity:
    def test_returns_values(self):
        identity = StaticIdentity("machine", "user")

        assert identity.machine_id() == "machine"
        assert identity.username() == "user"

    def test_empty_values_raise(self):
        with pytest.raises(MachineIdentityError):
            StaticIdentity("", "user").machine_id()
        with pytest.raises(MachineIdentityError):
            StaticIdentity("machine", "").username()
