"""Chain event indexer.

Re-scans each escrow's full event log on every run instead of keeping a
cursor, so restarts and reorganisations need no recovery logic. Each event
is checked for an existing (project, tx hash, event name) record before it is
written, and the insert itself ignores a concurrent duplicate, so any number
of overlapping runs converge on the same rows.
"""

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.escrow.chain import EscrowController, normalize_event_args
from src.escrow.core.logging import get_logger
from src.escrow.models import ChainEvent
from src.escrow.repositories import ChainEventRepository, ProjectRepository

logger = get_logger(__name__)


@dataclass
class IndexResult:
    indexed: int = 0
    failed: int = 0


class ChainIndexerService:
    def __init__(
        self,
        project_repo: ProjectRepository,
        event_repo: ChainEventRepository,
        escrow: EscrowController,
        session: AsyncSession,
    ):
        self.project_repo = project_repo
        self.event_repo = event_repo
        self.escrow = escrow
        self.session = session

    async def index_all(self) -> IndexResult:
        """Index every deployed escrow. One failing project does not stop the run."""
        result = IndexResult()
        projects = await self.project_repo.list_with_escrow()
        # Plain values, since a rollback expires loaded instances
        targets = [(project.id, project.escrow_address) for project in projects]

        for project_id, escrow_address in targets:
            try:
                result.indexed += await self.index_project(project_id, escrow_address)
            except Exception as e:
                await self.session.rollback()
                result.failed += 1
                logger.warning(
                    "Chain indexing failed for project",
                    project_id=str(project_id),
                    escrow_address=escrow_address,
                    error=str(e),
                )

        logger.info("Chain indexing complete", indexed=result.indexed, failed=result.failed)
        return result

    async def index_project(self, project_id: UUID, escrow_address: str | None) -> int:
        """Persist one escrow's unseen events. Returns how many were new."""
        if not escrow_address:
            return 0

        events = await self.escrow.get_events(escrow_address)
        indexed = 0
        for event in events:
            if await self.event_repo.exists(project_id, event.tx_hash, event.name):
                continue
            inserted = await self.event_repo.insert_if_absent(
                ChainEvent(
                    project_id=project_id,
                    event_name=event.name,
                    tx_hash=event.tx_hash,
                    block_number=event.block_number,
                    payload=normalize_event_args(event.args),
                )
            )
            if inserted:
                indexed += 1

        await self.session.commit()
        if indexed:
            logger.info("Chain events indexed", project_id=str(project_id), indexed=indexed)
        return indexed
