"""Scheduled escrow job activities.

Each activity opens its own session and builds the same services the API
uses, so a scheduled run and a manual trigger behave identically.
"""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession
from temporalio import activity

from src.escrow.chain import EscrowController, get_ledger_client
from src.escrow.core.db import get_session
from src.escrow.repositories import (
    ChainEventRepository,
    NotificationRepository,
    ProjectRepository,
    UserRepository,
    VerificationCodeRepository,
)
from src.escrow.services import (
    ChainIndexerService,
    EscrowLifecycleService,
    NotificationService,
    ReviewTimeoutService,
    VerificationCodeService,
    WalletService,
)


@dataclass
class IndexChainEventsOutput:
    indexed: int
    failed: int


@dataclass
class ReviewTimeoutOutput:
    processed: int
    skipped: int


def _lifecycle_service(session: AsyncSession, escrow: EscrowController) -> EscrowLifecycleService:
    user_repo = UserRepository(session)
    return EscrowLifecycleService(
        ProjectRepository(session),
        user_repo,
        NotificationService(user_repo, NotificationRepository(session), session),
        WalletService(user_repo, session, escrow.client),
        escrow,
        session,
    )


@activity.defn
async def index_chain_events() -> IndexChainEventsOutput:
    """
    Copy ledger events for every deployed escrow into the local event log.

    Idempotent: events already recorded are skipped, so overlapping or
    retried runs produce the same rows.
    """
    activity.logger.info("Indexing chain events")

    escrow = EscrowController(get_ledger_client())
    async with get_session() as session:
        service = ChainIndexerService(
            ProjectRepository(session), ChainEventRepository(session), escrow, session
        )
        result = await service.index_all()

    activity.logger.info(f"Indexed {result.indexed} events ({result.failed} projects failed)")
    return IndexChainEventsOutput(indexed=result.indexed, failed=result.failed)


@activity.defn
async def process_review_timeouts() -> ReviewTimeoutOutput:
    """
    Release escrow for projects whose review window has elapsed.

    Idempotent: released projects no longer match the overdue selection.
    """
    activity.logger.info("Processing review timeouts")

    escrow = EscrowController(get_ledger_client())
    async with get_session() as session:
        service = ReviewTimeoutService(
            ProjectRepository(session), _lifecycle_service(session, escrow)
        )
        result = await service.process_overdue()

    activity.logger.info(f"Released {result.processed} projects ({result.skipped} skipped)")
    return ReviewTimeoutOutput(processed=result.processed, skipped=result.skipped)


@activity.defn
async def cleanup_verification_codes(retention_days: int) -> int:
    """
    Delete verification codes that expired or were used before the retention window.

    Idempotent: DELETE operations are inherently idempotent.
    """
    activity.logger.info(f"Cleaning up verification codes older than {retention_days} days")

    async with get_session() as session:
        service = VerificationCodeService(VerificationCodeRepository(session), session)
        count = await service.cleanup_expired(retention_days)

    activity.logger.info(f"Deleted {count} verification codes")
    return count
