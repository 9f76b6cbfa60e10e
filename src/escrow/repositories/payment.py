"""Repository for Payment entity."""

from uuid import UUID

from sqlmodel import select

from src.escrow.models import Payment, PaymentStatus
from src.escrow.repositories.base import BaseRepository


class PaymentRepository(BaseRepository[Payment]):
    model = Payment

    async def exists_completed(self, project_id: UUID, payment_type: str) -> bool:
        """True if a COMPLETED payment of this type exists for the project."""
        result = await self.session.execute(
            select(Payment.id)
            .where(
                Payment.project_id == project_id,
                Payment.type == payment_type,
                Payment.status == PaymentStatus.COMPLETED.value,
            )
            .limit(1)
        )
        return result.scalar_one_or_none() is not None
