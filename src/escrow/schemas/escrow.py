"""Escrow action schemas for API request/response."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class EscrowActionRequest(BaseModel):
    """Every escrow action carries a one-time verification code."""

    verification_code: str = Field(min_length=1, max_length=32)


class SplitRequest(EscrowActionRequest):
    # Range is checked by the service so bad input never reaches the ledger
    client_percent: int


class AnchorProofRequest(EscrowActionRequest):
    action: str = Field(min_length=1, max_length=64)
    draft_hash: str = Field(min_length=1, max_length=130)
    previous_hash: str | None = Field(default=None, max_length=130)


class ProjectEscrowRead(BaseModel):
    """Escrow-relevant view of a project."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    status: str
    escrow_address: str | None
    escrow_paused: bool
    quoted_amount: Decimal
    deposit_amount: Decimal
    balance_amount: Decimal
    review_due_at: datetime | None
    updated_at: datetime


class AnchorProofResponse(BaseModel):
    project_id: UUID
    tx_hash: str
