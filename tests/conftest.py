"""Shared pytest configuration and fixtures for canvas-cli tests."""

import datetime
import socket

import pytest

from canvas_cli.core.auth import FileTokenStore, OAuthToken, StaticIdentity, TokenCipher

# Import HTTP mocking and keyring fixtures from fixtures modules
pytest_plugins = ["tests.fixtures.mock_http", "tests.fixtures.keyring_backends"]

TEST_MACHINE_ID = "0123456789abcdef0123456789abcdef"
TEST_USERNAME = "tester"


@pytest.fixture
def identity():
    """Deterministic machine and user identity."""
    return StaticIdentity(TEST_MACHINE_ID, TEST_USERNAME)


@pytest.fixture
def cipher(identity):
    """Cipher keyed by the test identity."""
    return TokenCipher(identity)


@pytest.fixture
def file_store(tmp_path, cipher):
    """Encrypted file store rooted in a temporary config directory."""
    return FileTokenStore(tmp_path, cipher=cipher)


@pytest.fixture
def machine_identity_env(monkeypatch):
    """Pin the host identity through the environment."""
    monkeypatch.setenv("CANVAS_CLI_MACHINE_ID", TEST_MACHINE_ID)
    monkeypatch.setenv("USER", TEST_USERNAME)


@pytest.fixture
def free_port():
    """An unprivileged localhost port that was free a moment ago."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def fresh_token():
    """Token valid for one more hour."""
    return OAuthToken(
        access_token="access-fresh",
        refresh_token="refresh-1",
        expiry=datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(hours=1),
    )


@pytest.fixture
def expiring_token():
    """Token expiring in two minutes (inside the refresh buffer)."""
    return OAuthToken(
        access_token="access-expiring",
        refresh_token="refresh-1",
        expiry=datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(minutes=2),
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: marks tests as unit tests (fast, no external deps)")
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (binds localhost sockets)"
    )
    config.addinivalue_line("markers", "cli: marks tests exercising the typer commands")


def pytest_collection_modifyitems(config, items):
    """Add markers to tests based on their location."""
    for item in items:
        path = str(item.fspath)
        if "tests/unit/" in path:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in path:
            item.add_marker(pytest.mark.integration)
        elif "tests/cli/" in path:
            item.add_marker(pytest.mark.cli)
