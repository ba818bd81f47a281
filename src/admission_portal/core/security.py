"""
Security Utilities

Password hashing (bcrypt) and JWT encoding/decoding (python-jose).
"""

import logging
import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
from jose import JWTError, jwt

from admission_portal.core.config import settings

logger = logging.getLogger(__name__)


def hash_password(plain_password: str) -> str:
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(plain_password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored hash is invalid or corrupted
        return False


def _encode(claims: dict[str, Any], expires_delta: timedelta) -> str:
    now = datetime.now(UTC)
    to_encode = claims.copy()
    to_encode.update({"iat": now, "exp": now + expires_delta})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_access_token(
    *,
    subject: str,
    additional_claims: dict[str, Any] | None = None,
    expires_minutes: int | None = None,
) -> str:
    """
    Create a signed access token.

    Args:
        subject: The user id, stored in the ``sub`` claim
        additional_claims: Extra claims (email, role, name)
        expires_minutes: Override for the configured lifetime

    Returns:
        Encoded JWT string
    """
    if expires_minutes is None:
        expires_minutes = settings.access_token_expire_minutes

    claims = {"sub": subject, "type": "access"}
    if additional_claims:
        claims.update(additional_claims)
    return _encode(claims, timedelta(minutes=expires_minutes))


def create_refresh_token(*, subject: str, expires_days: int | None = None) -> str:
    if expires_days is None:
        expires_days = settings.refresh_token_expire_days

    claims = {"sub": subject, "type": "refresh", "jti": secrets.token_urlsafe(16)}
    return _encode(claims, timedelta(days=expires_days))


def decode_token(token: str) -> dict[str, Any] | None:
    """
    Decode and validate a JWT.

    Returns:
        The claims dict, or None when the signature is invalid or the token expired
    """
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.debug(f"Token decode failed: {e}")
        return None


def generate_verification_code(length: int = 6) -> str:
    """Generate a numeric one-time code for email verification."""
    return "".join(secrets.choice("0123456789") for _ in range(length))
