"""Unit tests for PKCE and CSRF state generation."""

import base64
import hashlib
import re

import pytest

from canvas_cli.core.auth.pkce import PKCEChallenge, generate_pkce, generate_state

_URL_SAFE = re.compile(r"^[A-Za-z0-9_-]+$")


@pytest.mark.unit
class TestGeneratePkce:
    """Test cases for generate_pkce."""

    def test_verifier_is_43_url_safe_characters(self):
        """Test that 32 random bytes encode to a 43 character verifier without padding."""
        pkce = generate_pkce()

        assert len(pkce.verifier) == 43
        assert _URL_SAFE.match(pkce.verifier)
        assert "=" not in pkce.verifier

    def test_challenge_is_s256_of_verifier(self):
        """Test that the challenge is the base64url SHA-256 of the verifier."""
        pkce = generate_pkce()

        digest = hashlib.sha256(pkce.verifier.encode("ascii")).digest()
        expected = base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")

        assert pkce.challenge == expected
        assert pkce.method == "S256"
        assert pkce.challenge != pkce.verifier

    def test_pairs_are_unique(self):
        """Test that successive calls never repeat a verifier."""
        verifiers = {generate_pkce().verifier for _ in range(50)}

        assert len(verifiers) == 50

    def test_repr_hides_verifier(self):
        """Test that the verifier does not leak into logs via repr."""
        pkce = generate_pkce()

        assert pkce.verifier not in repr(pkce)
        assert pkce.challenge in repr(pkce)

    def test_challenge_is_immutable(self):
        """Test that the pair cannot be modified after creation."""
        pkce = PKCEChallenge(verifier="v", challenge="c")

        with pytest.raises(AttributeError):
            pkce.verifier = "other"  # type: ignore[misc]


@pytest.mark.unit
class TestGenerateState:
    """Test cases for generate_state."""

    def test_state_is_url_safe(self):
        state = generate_state()

        assert len(state) == 43
        assert _URL_SAFE.match(state)

    def test_states_are_unique(self):
        assert generate_state() != generate_state()
