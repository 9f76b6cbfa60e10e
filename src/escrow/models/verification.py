"""One-time verification codes gating privileged actions."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import Index
from sqlmodel import Field, SQLModel

from src.escrow.models.base import utc_now


class MfaCode(SQLModel, table=True):
    """Issued verification code. Only the keyed digest is stored.

    used_at is set exactly once, on consumption.
    """

    __tablename__ = "mfa_codes"
    __table_args__ = (Index("ix_mfa_codes_user_hash", "user_id", "code_hash"),)

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(foreign_key="users.id", index=True)
    code_hash: str = Field(max_length=64)
    purpose: str | None = Field(default=None, max_length=50)
    expires_at: datetime = Field(index=True)
    used_at: datetime | None = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now)
