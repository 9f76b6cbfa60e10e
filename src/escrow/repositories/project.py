"""Repository for Project entity and its transition unit of work."""

from dataclasses import dataclass, field
from datetime import datetime

from sqlmodel import select

from src.escrow.models import (
    ChainEvent,
    Notification,
    Payment,
    Project,
    ProjectStatus,
    TimelineEntry,
)
from src.escrow.models.base import utc_now
from src.escrow.repositories.base import BaseRepository
from src.escrow.repositories.chain_event import ChainEventRepository


@dataclass
class Transition:
    """Everything one confirmed escrow action writes.

    Unset project fields are left unchanged.
    """

    status: str | None = None
    escrow_paused: bool | None = None
    escrow_address: str | None = None
    payment: Payment | None = None
    timeline: TimelineEntry | None = None
    chain_event: ChainEvent | None = None
    notifications: list[Notification] = field(default_factory=list)


class ProjectRepository(BaseRepository[Project]):
    model = Project

    async def list_with_escrow(self) -> list[Project]:
        """Projects that have a deployed escrow contract."""
        result = await self.session.execute(
            select(Project)
            .where(Project.escrow_address != None)  # noqa: E711
            .order_by(Project.created_at)  # type: ignore[arg-type]
        )
        return list(result.scalars().all())

    async def list_overdue_for_release(self, now: datetime) -> list[Project]:
        """Submitted, unpaused, deployed projects whose review window has elapsed."""
        result = await self.session.execute(
            select(Project)
            .where(
                Project.status == ProjectStatus.DRAFT_SUBMITTED.value,
                Project.review_due_at < now,  # type: ignore[operator]
                Project.escrow_address != None,  # noqa: E711
                Project.escrow_paused == False,  # noqa: E712
            )
            .order_by(Project.review_due_at)  # type: ignore[arg-type]
        )
        return list(result.scalars().all())

    async def apply_transition(self, project: Project, transition: Transition) -> Project:
        """Stage a project update with its payment, timeline, event and notifications.

        Nothing is committed here; the caller commits once so all rows land
        together or not at all.
        """
        if transition.status is not None:
            project.status = transition.status
        if transition.escrow_paused is not None:
            project.escrow_paused = transition.escrow_paused
        if transition.escrow_address is not None:
            project.escrow_address = transition.escrow_address
        project.updated_at = utc_now()
        self.session.add(project)

        for record in (transition.payment, transition.timeline):
            if record is not None:
                self.session.add(record)
        if transition.notifications:
            self.session.add_all(transition.notifications)

        await self.session.flush()

        if transition.chain_event is not None:
            # The indexer may have recorded this tx already
            await ChainEventRepository(self.session).insert_if_absent(transition.chain_event)

        return project
