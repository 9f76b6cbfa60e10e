"""Automatic release of projects whose review window has elapsed."""

from dataclasses import dataclass

from src.escrow.core.exceptions import NotFoundError
from src.escrow.core.logging import get_logger
from src.escrow.models.base import utc_now
from src.escrow.repositories import ProjectRepository
from src.escrow.services.escrow_service import EscrowLifecycleService

logger = get_logger(__name__)


@dataclass
class ProcessResult:
    processed: int = 0
    skipped: int = 0


class ReviewTimeoutService:
    """Drives RELEASE for overdue projects.

    Each project is handled on its own: a failure is counted as skipped and
    the project stays eligible for the next scheduled run. Released projects
    drop out of the selection, which makes repeated runs harmless.
    """

    def __init__(self, project_repo: ProjectRepository, lifecycle: EscrowLifecycleService):
        self.project_repo = project_repo
        self.lifecycle = lifecycle

    async def process_overdue(self) -> ProcessResult:
        result = ProcessResult()
        overdue = await self.project_repo.list_overdue_for_release(utc_now())
        project_ids = [project.id for project in overdue]

        for project_id in project_ids:
            try:
                # Look up by id, a failed commit expires loaded instances
                project = await self.project_repo.get_by_id(project_id)
                if project is None:
                    raise NotFoundError("Project not found.")
                await self.lifecycle.release_expired(project)
                result.processed += 1
            except Exception as e:
                result.skipped += 1
                logger.warning(
                    "Automatic release skipped",
                    project_id=str(project_id),
                    error=str(e),
                    error_type=type(e).__name__,
                )

        logger.info(
            "Review timeout processed",
            processed=result.processed,
            skipped=result.skipped,
        )
        return result
