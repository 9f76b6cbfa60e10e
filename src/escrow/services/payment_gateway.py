"""Off-ledger payment method selection and a mock processor.

The mock stands in for a real card/FPX processor behind the same interface.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from src.escrow.core.config import get_settings
from src.escrow.core.logging import get_logger

logger = get_logger(__name__)


class PaymentMethod(str, Enum):
    FPX = "FPX"
    VISA = "VISA"
    MASTERCARD = "MASTERCARD"


class PaymentMode(str, Enum):
    FIAT = "FIAT"
    CRYPTO = "CRYPTO"


@dataclass(frozen=True)
class PaymentAcknowledgement:
    provider: str
    reference: str
    method: PaymentMethod
    amount: Decimal


def get_payment_mode() -> PaymentMode:
    """Configured payment mode. Anything other than CRYPTO means FIAT."""
    mode = (get_settings().payment_mode or "").strip().upper()
    return PaymentMode.CRYPTO if mode == PaymentMode.CRYPTO.value else PaymentMode.FIAT


def parse_method(raw: object) -> PaymentMethod | None:
    """Case-insensitive match against the supported methods, else None."""
    if not isinstance(raw, str):
        return None
    try:
        return PaymentMethod(raw.strip().upper())
    except ValueError:
        return None


async def process_mock(
    method: PaymentMethod,
    amount: Decimal,
    project_id: UUID,
    user_id: UUID,
    purpose: str,
) -> PaymentAcknowledgement:
    reference = f"MOCK-{purpose}-{uuid4()}"
    logger.info(
        "Mock payment processed",
        project_id=str(project_id),
        user_id=str(user_id),
        method=method.value,
        purpose=purpose,
        reference=reference,
    )
    return PaymentAcknowledgement(
        provider="MOCK",
        reference=reference,
        method=method,
        amount=amount,
    )
