"""
Unit tests for password hashing and token helpers.
"""

from datetime import timedelta

from campuscore.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    generate_reset_token,
    hash_password,
    hash_token,
    verify_password,
)


class TestPasswordHashing:
    """Tests for bcrypt hashing."""

    def test_hash_is_not_plain_password(self):
        hashed = hash_password("s3cret-pass")
        assert hashed != "s3cret-pass"
        assert hashed.startswith("$2")

    def test_same_password_gets_different_salts(self):
        assert hash_password("s3cret-pass") != hash_password("s3cret-pass")

    def test_verify_accepts_correct_password(self):
        hashed = hash_password("s3cret-pass")
        assert verify_password("s3cret-pass", hashed) is True

    def test_verify_rejects_wrong_password(self):
        hashed = hash_password("s3cret-pass")
        assert verify_password("wrong-pass", hashed) is False

    def test_verify_malformed_hash_returns_false(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False

    def test_verify_empty_hash_returns_false(self):
        assert verify_password("anything", "") is False


class TestTokens:
    """Tests for JWT creation and validation."""

    def test_access_token_round_trip_claims(self):
        token = create_access_token(
            subject="user-1",
            additional_claims={"role": "teacher", "tenant_id": "tenant-1"},
        )
        payload = decode_token(token)

        assert payload is not None
        assert payload["sub"] == "user-1"
        assert payload["role"] == "teacher"
        assert payload["tenant_id"] == "tenant-1"
        assert payload["type"] == "access"
        assert payload["exp"] > payload["iat"]

    def test_refresh_token_type(self):
        payload = decode_token(create_refresh_token(subject="user-1"))
        assert payload is not None
        assert payload["type"] == "refresh"
        assert "role" not in payload

    def test_expired_token_is_rejected(self):
        token = create_access_token(subject="user-1", expires_delta=timedelta(seconds=-5))
        assert decode_token(token) is None

    def test_tampered_token_is_rejected(self):
        token = create_access_token(subject="user-1")
        header, payload, signature = token.split(".")
        tampered = f"{header}.{payload}.{signature[:-2]}xx"
        assert decode_token(tampered) is None

    def test_garbage_token_is_rejected(self):
        assert decode_token("not.a.jwt") is None


class TestResetTokens:
    """Tests for one-time reset tokens."""

    def test_reset_tokens_are_unique(self):
        assert generate_reset_token() != generate_reset_token()

    def test_hash_token_is_sha256_hex(self):
        digest = hash_token("abc")
        assert len(digest) == 64
        assert digest == hash_token("abc")
        assert digest != hash_token("abd")
