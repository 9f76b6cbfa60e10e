"""Payment schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class PaymentRequest(BaseModel):
    purpose: Literal["DEPOSIT", "BALANCE"]
    # Required in FIAT mode, ignored in CRYPTO mode
    method: str | None = Field(default=None, max_length=20)


class PaymentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    project_id: UUID
    type: str
    status: str
    amount: Decimal
    tx_hash: str | None
    details: dict[str, Any] | None
    created_at: datetime
