"""User model with custodial wallet."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from src.escrow.models.base import utc_now
from src.escrow.models.enums import UserRole


class User(SQLModel, table=True):
    """Portal user. Credentials live with the identity provider."""

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(max_length=255, unique=True, index=True)
    full_name: str = Field(max_length=100)
    role: str = Field(default=UserRole.CLIENT.value, max_length=20, index=True)
    # Custodial wallet, created lazily on first ledger interaction
    wallet_address: str | None = Field(default=None, max_length=42)
    wallet_private_key: str | None = Field(default=None, max_length=66)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utc_now)
