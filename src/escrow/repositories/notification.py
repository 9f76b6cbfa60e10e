"""Repository for Notification entity."""

from uuid import UUID

from sqlmodel import select, update

from src.escrow.models import Notification
from src.escrow.models.base import utc_now
from src.escrow.repositories.base import BaseRepository


class NotificationRepository(BaseRepository[Notification]):
    model = Notification

    def add_many(self, notifications: list[Notification]) -> None:
        """Add a batch to the session (no flush/commit)."""
        self.session.add_all(notifications)

    async def list_for_user(
        self, user_id: UUID, unread_only: bool = False, limit: int = 50
    ) -> list[Notification]:
        """Newest first."""
        query = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            query = query.where(Notification.read_at == None)  # noqa: E711
        query = query.order_by(Notification.created_at.desc()).limit(limit)  # type: ignore[attr-defined]
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def mark_read(self, user_id: UUID, notification_ids: list[UUID]) -> int:
        """Mark the user's own notifications as read. Returns rows updated."""
        if not notification_ids:
            return 0
        stmt = (
            update(Notification)
            .where(Notification.user_id == user_id)  # type: ignore[arg-type]
            .where(Notification.id.in_(notification_ids))  # type: ignore[attr-defined]
            .where(Notification.read_at == None)  # type: ignore[arg-type]  # noqa: E711
            .values(read_at=utc_now())
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0  # type: ignore[attr-defined]
