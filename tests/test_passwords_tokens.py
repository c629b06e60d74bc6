"""
Tests for bcrypt password hashing and JWT session tokens.
"""

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from securevault.auth.passwords import PasswordHasher
from securevault.auth.tokens import SessionTokenService
from securevault.core.errors import InvalidToken

SECRET = "test-signing-key-0123456789abcdef"


@pytest.fixture
def hasher():
    return PasswordHasher(rounds=4)


@pytest.fixture
def tokens():
    return SessionTokenService(SECRET)


class TestPasswordHasher:

    def test_hash_and_verify(self, hasher):
        hashed = hasher.hash("secret1")
        assert hashed.startswith("$2b$04$")
        assert hasher.verify("secret1", hashed)
        assert not hasher.verify("secret2", hashed)

    def test_salted(self, hasher):
        assert hasher.hash("secret1") != hasher.hash("secret1")

    def test_long_passwords_not_truncated(self, hasher):
        base = "x" * 80
        hashed = hasher.hash(base + "a")
        assert not hasher.verify(base + "b", hashed)

    def test_malformed_hash_is_mismatch(self, hasher):
        assert hasher.verify("secret1", "not-a-bcrypt-hash") is False

    def test_dummy_verify_always_false(self, hasher):
        assert hasher.dummy_verify("dummy") is False
        assert hasher.dummy_verify("anything") is False


class TestSessionTokenService:

    def test_issue_and_verify(self, tokens):
        assert tokens.verify(tokens.issue("a@x.com")) == "a@x.com"

    def test_tokens_are_unique(self, tokens):
        assert tokens.issue("a@x.com") != tokens.issue("a@x.com")

    def test_default_ttl_seven_days(self, tokens):
        claims = jwt.get_unverified_claims(tokens.issue("a@x.com"))
        assert claims["exp"] - claims["iat"] == 7 * 24 * 3600

    def test_expired(self):
        claims = {
            "sub": "a@x.com",
            "iat": datetime.now(timezone.utc) - timedelta(days=8),
            "exp": datetime.now(timezone.utc) - timedelta(days=1),
        }
        token = jwt.encode(claims, SECRET, algorithm="HS256")
        with pytest.raises(InvalidToken):
            SessionTokenService(SECRET).verify(token)

    def test_wrong_signing_key(self, tokens):
        other = SessionTokenService("another-signing-key-0123456789")
        with pytest.raises(InvalidToken):
            tokens.verify(other.issue("a@x.com"))

    def test_missing_subject(self):
        token = jwt.encode(
            {"exp": datetime.now(timezone.utc) + timedelta(hours=1)}, SECRET, algorithm="HS256",
        )
        with pytest.raises(InvalidToken):
            SessionTokenService(SECRET).verify(token)

    @pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
    def test_malformed(self, tokens, token):
        with pytest.raises(InvalidToken):
            tokens.verify(token)

    def test_empty_secret_rejected(self):
        with pytest.raises(ValueError):
            SessionTokenService("")
