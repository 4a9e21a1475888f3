"""Unit tests for password hashing and session tokens."""

from datetime import timedelta

import jwt

from fitsocial.core import security
from fitsocial.core.config import settings


class TestPasswords:

    def test_hash_and_verify(self):
        hashed = security.get_password_hash("password123")

        assert hashed != "password123"
        assert security.verify_password("password123", hashed)
        assert not security.verify_password("wrong-password", hashed)

    def test_plaintext_stored_value_never_verifies(self):
        assert not security.verify_password("password123", "password123")


class TestSessionTokens:

    def test_round_trip(self):
        token = security.create_session_token(42)
        assert security.decode_session_token(token) == 42

    def test_expired_token(self):
        token = security.create_session_token(42, expires_delta=timedelta(seconds=-5))
        assert security.decode_session_token(token) is None

    def test_token_signed_with_another_key(self):
        token = jwt.encode({"sub": "42"}, "not-the-secret", algorithm=settings.JWT_ALGORITHM)
        assert security.decode_session_token(token) is None

    def test_garbage_token(self):
        assert security.decode_session_token("not-a-token") is None

    def test_non_numeric_subject(self):
        token = jwt.encode({"sub": "admin"}, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
        assert security.decode_session_token(token) is None


def test_default_avatar_uses_username_as_seed():
    assert security.default_avatar("johndoe") == "https://api.dicebear.com/7.x/avataaars/svg?seed=johndoe"
