"""Repository for ChainEvent entity."""

from uuid import UUID

from sqlalchemy.dialects.postgresql import insert
from sqlmodel import select

from src.escrow.models import ChainEvent
from src.escrow.repositories.base import BaseRepository


class ChainEventRepository(BaseRepository[ChainEvent]):
    model = ChainEvent

    async def exists(self, project_id: UUID, tx_hash: str, event_name: str) -> bool:
        """True if the (project, tx, event) triple is already recorded."""
        result = await self.session.execute(
            select(ChainEvent.id)
            .where(
                ChainEvent.project_id == project_id,
                ChainEvent.tx_hash == tx_hash,
                ChainEvent.event_name == event_name,
            )
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def insert_if_absent(self, event: ChainEvent) -> bool:
        """Insert an event unless the triple already exists.

        Returns True if a row was written. A concurrent writer that got there
        first makes this a no-op instead of an IntegrityError.
        """
        stmt = (
            insert(ChainEvent)
            .values(
                id=event.id,
                project_id=event.project_id,
                event_name=event.event_name,
                tx_hash=event.tx_hash,
                block_number=event.block_number,
                payload=event.payload,
                created_at=event.created_at,
            )
            .on_conflict_do_nothing(constraint="uq_chain_events_project_tx_event")
        )
        result = await self.session.execute(stmt)
        return bool(result.rowcount)  # type: ignore[attr-defined]

    async def list_for_project(self, project_id: UUID) -> list[ChainEvent]:
        result = await self.session.execute(
            select(ChainEvent)
            .where(ChainEvent.project_id == project_id)
            .order_by(ChainEvent.block_number, ChainEvent.created_at)  # type: ignore[arg-type]
        )
        return list(result.scalars().all())
