"""Manual triggers for scheduled jobs.

The same jobs run on a schedule in the Temporal worker; these endpoints let an
admin run them on demand.
"""

from fastapi import APIRouter

from src.escrow.api.dependencies import (
    AdminUser,
    IndexerServiceDep,
    JobTriggerRateLimit,
    ReviewTimeoutServiceDep,
    VerificationServiceDep,
)
from src.escrow.schemas import IndexResultRead, JobTriggerRequest, ProcessResultRead
from src.escrow.services import VerificationPurpose

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.post(
    "/index-chain-events",
    response_model=IndexResultRead,
    summary="Index chain events",
    responses={403: {"description": "Admin verification required"}},
)
async def index_chain_events(
    data: JobTriggerRequest,
    user: AdminUser,
    _limit: JobTriggerRateLimit,
    verification: VerificationServiceDep,
    indexer: IndexerServiceDep,
) -> IndexResultRead:
    """Copy every escrow's ledger events into the local event log."""
    await verification.assert_admin_verification(
        user, data.verification_code, VerificationPurpose.INDEX_CHAIN_EVENTS.value
    )
    result = await indexer.index_all()
    return IndexResultRead(indexed=result.indexed, failed=result.failed)


@router.post(
    "/review-timeouts",
    response_model=ProcessResultRead,
    summary="Settle overdue reviews",
    responses={403: {"description": "Admin verification required"}},
)
async def process_review_timeouts(
    data: JobTriggerRequest,
    user: AdminUser,
    _limit: JobTriggerRateLimit,
    verification: VerificationServiceDep,
    review_timeouts: ReviewTimeoutServiceDep,
) -> ProcessResultRead:
    """Release escrow for every project whose review window has elapsed."""
    await verification.assert_admin_verification(
        user, data.verification_code, VerificationPurpose.REVIEW_TIMEOUT.value
    )
    result = await review_timeouts.process_overdue()
    return ProcessResultRead(processed=result.processed, skipped=result.skipped)
