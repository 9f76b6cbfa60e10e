"""Security utilities.

Re-exports all security-related functions for convenience.
"""

from src.escrow.core.security.crypto import (
    VERIFICATION_CODE_DIGITS,
    create_access_token,
    decode_token,
    generate_verification_code,
    hash_verification_code,
)

__all__ = [
    "VERIFICATION_CODE_DIGITS",
    "create_access_token",
    "decode_token",
    "generate_verification_code",
    "hash_verification_code",
]
