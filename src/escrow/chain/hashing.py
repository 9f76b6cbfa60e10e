"""Content hash validation for draft proofs."""

import re

from src.escrow.core.exceptions import ValidationError

_SHA256_HEX = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")


def normalize_sha256(value: str, field: str = "hash") -> str:
    """Validate a hex SHA-256 digest and return it lowercase without 0x.

    Raises:
        ValidationError: not 64 hex characters (optional 0x prefix)
    """
    candidate = value.strip() if isinstance(value, str) else ""
    if not _SHA256_HEX.match(candidate):
        raise ValidationError(f"Invalid {field}: expected a 64-character hex SHA-256 digest.")
    if candidate[:2] in ("0x", "0X"):
        candidate = candidate[2:]
    return candidate.lower()
