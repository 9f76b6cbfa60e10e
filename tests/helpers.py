"""Shared test helpers."""

from src.escrow.core.security import create_access_token
from src.escrow.models import User


def auth_headers(user: User) -> dict[str, str]:
    """Bearer header carrying an access token for the user."""
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}
