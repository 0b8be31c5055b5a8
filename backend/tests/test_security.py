"""Tests for password hashing, bearer tokens and reset tokens."""

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from devcamper.config import settings
from devcamper.exceptions import UnauthenticatedError
from devcamper.security import (
    create_access_token,
    decode_access_token,
    generate_reset_token,
    hash_password,
    hash_reset_token,
    verify_password,
)


class TestPasswords:
    def test_hash_differs_from_plaintext(self):
        hashed = hash_password("123456")
        assert hashed != "123456"
        assert hashed.startswith("$2")

    def test_verify_matches_only_original(self):
        hashed = hash_password("123456")
        assert verify_password("123456", hashed) is True
        assert verify_password("1234567", hashed) is False

    def test_same_password_hashes_differently(self):
        assert hash_password("123456") != hash_password("123456")

    def test_malformed_hash_does_not_raise(self):
        assert verify_password("123456", "not-a-bcrypt-hash") is False
        assert verify_password("123456", "") is False
        assert verify_password("123456", None) is False


class TestAccessTokens:
    def test_round_trip_returns_subject(self):
        token = create_access_token("5d7a514b5d2c12c7449be042")
        assert decode_access_token(token) == "5d7a514b5d2c12c7449be042"

    def test_expiry_is_configured_days_ahead(self):
        token = create_access_token("abc")
        claims = jwt.get_unverified_claims(token)
        expected = datetime.now(timezone.utc) + timedelta(days=settings.jwt_expire_days)
        assert abs(claims["exp"] - expected.timestamp()) < 60

    def test_expired_token_rejected(self):
        token = create_access_token("abc", expires_delta=timedelta(seconds=-10))
        with pytest.raises(UnauthenticatedError):
            decode_access_token(token)

    def test_foreign_signature_rejected(self):
        token = jwt.encode({"sub": "abc"}, "some-other-secret", algorithm="HS256")
        with pytest.raises(UnauthenticatedError):
            decode_access_token(token)

    def test_garbage_rejected(self):
        with pytest.raises(UnauthenticatedError):
            decode_access_token("not.a.token")

    def test_missing_subject_rejected(self):
        token = jwt.encode(
            {"exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(UnauthenticatedError):
            decode_access_token(token)


class TestResetTokens:
    def test_digest_reproducible_from_raw(self):
        raw, digest, _ = generate_reset_token()
        assert len(raw) == 40
        assert digest == hash_reset_token(raw)
        assert digest != raw

    def test_expiry_window(self):
        _, _, expires_at = generate_reset_token()
        remaining = expires_at - datetime.now(timezone.utc)
        assert timedelta(minutes=settings.reset_token_expire_minutes - 1) < remaining
        assert remaining <= timedelta(minutes=settings.reset_token_expire_minutes)

    def test_tokens_are_unique(self):
        assert generate_reset_token()[0] != generate_reset_token()[0]
