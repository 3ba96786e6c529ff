"""
Security Utilities

Password hashing (bcrypt), JWT creation/validation (python-jose) and
one-time token helpers used by the password reset flow.
"""

import hashlib
import logging
import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
from jose import JWTError, jwt

from campuscore.core.config import settings

logger = logging.getLogger(__name__)

# bcrypt ignores everything after 72 bytes
BCRYPT_MAX_BYTES = 72
RESET_TOKEN_LENGTH = 32


def hash_password(password: str) -> str:
    """Hash a password with a per-password salt."""
    password_bytes = password.encode("utf-8")[:BCRYPT_MAX_BYTES]
    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=settings.bcrypt_rounds))
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Compare a candidate password with a stored bcrypt hash.

    Returns False for malformed hashes instead of raising.
    """
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES],
            hashed_password.encode("utf-8"),
        )
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


def _encode(claims: dict[str, Any]) -> str:
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_access_token(
    subject: str,
    additional_claims: dict[str, Any] | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a signed access token.

    Args:
        subject: User ID stored in the ``sub`` claim
        additional_claims: Extra claims (email, role, tenant_id, ...)
        expires_delta: Override for the configured lifetime

    Returns:
        Encoded JWT string
    """
    now = datetime.now(UTC)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    claims: dict[str, Any] = dict(additional_claims or {})
    claims.update({"sub": subject, "iat": now, "exp": expire, "type": "access"})
    return _encode(claims)


def create_refresh_token(subject: str, expires_delta: timedelta | None = None) -> str:
    """Create a long-lived refresh token carrying only the subject."""
    now = datetime.now(UTC)
    expire = now + (expires_delta or timedelta(days=settings.refresh_token_expire_days))
    return _encode({"sub": subject, "iat": now, "exp": expire, "type": "refresh"})


def decode_token(token: str) -> dict[str, Any] | None:
    """
    Decode and validate a JWT.

    Signature, algorithm and expiry are checked by python-jose.

    Returns:
        The claims dict, or None when the token is invalid or expired
    """
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.debug(f"Token rejected: {e}")
        return None


def generate_reset_token() -> str:
    """Generate a URL-safe random token for password reset links."""
    return secrets.token_urlsafe(RESET_TOKEN_LENGTH)


def hash_token(token: str) -> str:
    """SHA-256 digest of a one-time token; only the digest is stored."""
    return hashlib.sha256(token.encode()).hexdigest()
