"""In-app notifications."""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.escrow.models import Notification
from src.escrow.repositories import NotificationRepository, UserRepository


class NotificationService:
    """Builds and reads notifications.

    Escrow actions stage notifications inside their own unit of work, so the
    build helpers do not commit.
    """

    def __init__(
        self,
        user_repo: UserRepository,
        notification_repo: NotificationRepository,
        session: AsyncSession,
    ):
        self.user_repo = user_repo
        self.notification_repo = notification_repo
        self.session = session

    def for_users(
        self, user_ids: list[UUID | None], title: str, message: str
    ) -> list[Notification]:
        """One notification per distinct user. Empty input gives an empty list."""
        seen: set[UUID] = set()
        notifications = []
        for user_id in user_ids:
            if user_id is None or user_id in seen:
                continue
            seen.add(user_id)
            notifications.append(Notification(user_id=user_id, title=title, message=message))
        return notifications

    async def for_admins(self, title: str, message: str) -> list[Notification]:
        admin_ids: list[UUID | None] = list(await self.user_repo.list_active_admin_ids())
        return self.for_users(admin_ids, title, message)

    async def list_for_user(self, user_id: UUID, unread_only: bool = False) -> list[Notification]:
        return await self.notification_repo.list_for_user(user_id, unread_only=unread_only)

    async def mark_read(self, user_id: UUID, notification_ids: list[UUID]) -> int:
        updated = await self.notification_repo.mark_read(user_id, notification_ids)
        await self.session.commit()
        return updated
