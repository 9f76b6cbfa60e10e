"""Repository for MfaCode entity."""

from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import and_, delete, or_, update
from sqlmodel import select

from src.escrow.models import MfaCode
from src.escrow.models.base import utc_now
from src.escrow.repositories.base import BaseRepository


class VerificationCodeRepository(BaseRepository[MfaCode]):
    model = MfaCode

    async def find_latest_valid(
        self,
        user_id: UUID,
        code_hash: str,
        purpose: str | None,
        now: datetime,
    ) -> MfaCode | None:
        """Newest unused, unexpired code matching the digest.

        A code issued with a purpose only matches that purpose. A code issued
        without one matches any request.
        """
        query = select(MfaCode).where(
            MfaCode.user_id == user_id,
            MfaCode.code_hash == code_hash,
            MfaCode.used_at == None,  # noqa: E711
            MfaCode.expires_at > now,
        )
        if purpose is not None:
            query = query.where(
                or_(MfaCode.purpose == None, MfaCode.purpose == purpose)  # type: ignore[arg-type]  # noqa: E711
            )
        else:
            query = query.where(MfaCode.purpose == None)  # noqa: E711
        query = query.order_by(MfaCode.created_at.desc()).limit(1)  # type: ignore[attr-defined]
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def mark_used(self, code_id: UUID, now: datetime) -> bool:
        """Consume a code. False if another caller consumed it first."""
        stmt = (
            update(MfaCode)
            .where(MfaCode.id == code_id)  # type: ignore[arg-type]
            .where(MfaCode.used_at == None)  # type: ignore[arg-type]  # noqa: E711
            .values(used_at=now)
        )
        result = await self.session.execute(stmt)
        return bool(result.rowcount)  # type: ignore[attr-defined]

    async def cleanup_expired(self, retention_days: int) -> int:
        """Delete codes expired or used more than retention_days ago.

        Idempotent: DELETE operations are inherently idempotent.

        Returns:
            Number of codes deleted
        """
        cutoff = utc_now() - timedelta(days=retention_days)
        stmt = delete(MfaCode).where(
            or_(
                MfaCode.expires_at < cutoff,  # type: ignore[arg-type]
                and_(
                    MfaCode.used_at != None,  # type: ignore[arg-type]  # noqa: E711
                    MfaCode.used_at < cutoff,  # type: ignore[arg-type,operator]
                ),
            )
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount or 0  # type: ignore[attr-defined]
