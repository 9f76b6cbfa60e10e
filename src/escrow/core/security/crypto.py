"""Cryptographic utilities - access tokens and verification code digests."""

import hmac
import secrets
from datetime import UTC, datetime, timedelta
from hashlib import sha256
from typing import Any
from uuid import UUID

from jose import JWTError, jwt

from src.escrow.core.config import get_settings

VERIFICATION_CODE_DIGITS = 6


def generate_verification_code() -> str:
    """Return a 6-digit code sampled uniformly over 000000-999999."""
    return f"{secrets.randbelow(10**VERIFICATION_CODE_DIGITS):0{VERIFICATION_CODE_DIGITS}d}"


def hash_verification_code(user_id: UUID, code: str) -> str:
    """Keyed digest of a verification code, salted with the owning user id.

    Deterministic for a given (user, code) pair so the digest can be looked up.
    """
    settings = get_settings()
    message = f"{user_id}:{code}".encode()
    return hmac.new(settings.verification_code_secret.encode(), message, sha256).hexdigest()


def create_access_token(
    subject: str | UUID,
    role: str,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT access token in the identity provider's format."""
    settings = get_settings()
    expire = datetime.now(UTC) + (expires_delta or timedelta(minutes=30))

    to_encode = {
        "sub": str(subject),
        "role": role,
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(  # type: ignore[no-any-return]
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_token(token: str) -> dict[str, Any] | None:
    """Decode and validate JWT token. Returns None on any error."""
    settings = get_settings()
    try:
        return jwt.decode(  # type: ignore[no-any-return]
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        return None
