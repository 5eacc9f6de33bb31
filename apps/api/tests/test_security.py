"""Tests for password hashing and session tokens."""

from datetime import timedelta

import pytest

from medgenius.auth import create_access_token, decode_access_token, hash_password, verify_password
from medgenius.core.errors import AuthError


class TestPasswords:
    """Test bcrypt hashing."""

    def test_hash_verifies(self) -> None:
        hashed = hash_password("secret123")

        assert hashed != "secret123"
        assert verify_password("secret123", hashed)
        assert not verify_password("secret124", hashed)

    def test_salted(self) -> None:
        """The same password hashes differently each time."""
        assert hash_password("secret123") != hash_password("secret123")

    def test_malformed_hash_does_not_verify(self) -> None:
        assert not verify_password("secret123", "not-a-bcrypt-hash")


class TestTokens:
    """Test JWT issue and verification."""

    def test_round_trip_subject(self) -> None:
        assert decode_access_token(create_access_token("user-1")) == "user-1"

    def test_expired(self) -> None:
        token = create_access_token("user-1", expires_in=timedelta(seconds=-1))

        with pytest.raises(AuthError, match="Session expired"):
            decode_access_token(token)

    def test_garbage(self) -> None:
        with pytest.raises(AuthError):
            decode_access_token("not.a.token")
