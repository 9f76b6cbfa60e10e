"""Repository for User entity."""

from uuid import UUID

from sqlalchemy import update
from sqlmodel import select

from src.escrow.models import User, UserRole
from src.escrow.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    model = User

    async def list_active_admin_ids(self) -> list[UUID]:
        """IDs of every active ADMIN user."""
        result = await self.session.execute(
            select(User.id).where(
                User.role == UserRole.ADMIN.value,
                User.is_active == True,  # noqa: E712
            )
        )
        return list(result.scalars().all())

    async def set_wallet_if_absent(self, user: User, address: str, private_key: str) -> User:
        """Assign a custodial wallet unless one is already stored. Caller commits.

        The conditional UPDATE makes concurrent first uses agree: the loser's
        statement matches no row, and the refreshed user carries the wallet
        that was actually saved.
        """
        await self.session.execute(
            update(User)
            .where(User.id == user.id, User.wallet_address.is_(None))  # type: ignore[union-attr]
            .values(wallet_address=address, wallet_private_key=private_key)
            .execution_options(synchronize_session=False)
        )
        await self.session.flush()
        await self.session.refresh(user)
        return user
