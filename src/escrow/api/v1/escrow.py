"""Escrow lifecycle endpoints.

Every action is gated by a one-time verification code scoped to the action.
Each call blocks until the ledger transaction is confirmed.
"""

from uuid import UUID

from fastapi import APIRouter, status

from src.escrow.api.dependencies import (
    AdminUser,
    EscrowActionRateLimit,
    LifecycleServiceDep,
    PrivilegedUser,
    VerificationServiceDep,
)
from src.escrow.schemas import (
    AnchorProofRequest,
    AnchorProofResponse,
    EscrowActionRequest,
    ProjectEscrowRead,
    SplitRequest,
)
from src.escrow.services import VerificationPurpose

router = APIRouter(prefix="/projects/{project_id}/escrow", tags=["escrow"])

_ACTION_RESPONSES = {
    400: {"description": "Missing or malformed input"},
    403: {"description": "Not an admin, or verification code rejected"},
    404: {"description": "Project not found"},
    409: {"description": "Escrow not in a state that allows this action"},
    429: {"description": "Rate limit exceeded"},
    502: {"description": "Ledger rejected the transaction"},
    504: {"description": "Ledger confirmation timed out, outcome unknown"},
}


@router.post(
    "/deploy",
    response_model=ProjectEscrowRead,
    status_code=status.HTTP_201_CREATED,
    summary="Deploy escrow contract",
    responses=_ACTION_RESPONSES,
)
async def deploy_escrow(
    project_id: UUID,
    data: EscrowActionRequest,
    user: AdminUser,
    _limit: EscrowActionRateLimit,
    verification: VerificationServiceDep,
    lifecycle: LifecycleServiceDep,
) -> ProjectEscrowRead:
    """Deploy the escrow contract for a project."""
    await verification.assert_admin_verification(
        user, data.verification_code, VerificationPurpose.DEPLOY_ESCROW.value
    )
    project = await lifecycle.deploy(project_id, user)
    return ProjectEscrowRead.model_validate(project)


@router.post(
    "/release",
    response_model=ProjectEscrowRead,
    summary="Release funds to the company",
    responses=_ACTION_RESPONSES,
)
async def release_escrow(
    project_id: UUID,
    data: EscrowActionRequest,
    user: AdminUser,
    _limit: EscrowActionRateLimit,
    verification: VerificationServiceDep,
    lifecycle: LifecycleServiceDep,
) -> ProjectEscrowRead:
    await verification.assert_admin_verification(
        user, data.verification_code, VerificationPurpose.RELEASE_FUNDS.value
    )
    project = await lifecycle.release(project_id, user)
    return ProjectEscrowRead.model_validate(project)


@router.post(
    "/refund",
    response_model=ProjectEscrowRead,
    summary="Refund the client",
    responses=_ACTION_RESPONSES,
)
async def refund_escrow(
    project_id: UUID,
    data: EscrowActionRequest,
    user: AdminUser,
    _limit: EscrowActionRateLimit,
    verification: VerificationServiceDep,
    lifecycle: LifecycleServiceDep,
) -> ProjectEscrowRead:
    await verification.assert_admin_verification(
        user, data.verification_code, VerificationPurpose.REFUND_FUNDS.value
    )
    project = await lifecycle.refund(project_id, user)
    return ProjectEscrowRead.model_validate(project)


@router.post(
    "/split",
    response_model=ProjectEscrowRead,
    summary="Split funds between client and company",
    responses=_ACTION_RESPONSES,
)
async def split_escrow(
    project_id: UUID,
    data: SplitRequest,
    user: AdminUser,
    _limit: EscrowActionRateLimit,
    verification: VerificationServiceDep,
    lifecycle: LifecycleServiceDep,
) -> ProjectEscrowRead:
    """Split the escrow. The company receives 100 - client_percent."""
    await verification.assert_admin_verification(
        user, data.verification_code, VerificationPurpose.SPLIT_FUNDS.value
    )
    project = await lifecycle.split(project_id, user, data.client_percent)
    return ProjectEscrowRead.model_validate(project)


@router.post(
    "/pause",
    response_model=ProjectEscrowRead,
    summary="Pause escrow actions",
    responses=_ACTION_RESPONSES,
)
async def pause_escrow(
    project_id: UUID,
    data: EscrowActionRequest,
    user: AdminUser,
    _limit: EscrowActionRateLimit,
    verification: VerificationServiceDep,
    lifecycle: LifecycleServiceDep,
) -> ProjectEscrowRead:
    await verification.assert_admin_verification(
        user, data.verification_code, VerificationPurpose.PAUSE_ESCROW.value
    )
    project = await lifecycle.pause(project_id, user)
    return ProjectEscrowRead.model_validate(project)


@router.post(
    "/resume",
    response_model=ProjectEscrowRead,
    summary="Resume escrow actions",
    responses=_ACTION_RESPONSES,
)
async def resume_escrow(
    project_id: UUID,
    data: EscrowActionRequest,
    user: AdminUser,
    _limit: EscrowActionRateLimit,
    verification: VerificationServiceDep,
    lifecycle: LifecycleServiceDep,
) -> ProjectEscrowRead:
    await verification.assert_admin_verification(
        user, data.verification_code, VerificationPurpose.RESUME_ESCROW.value
    )
    project = await lifecycle.resume(project_id, user)
    return ProjectEscrowRead.model_validate(project)


@router.post(
    "/proofs",
    response_model=AnchorProofResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Anchor a draft proof",
    description="Timestamp a document revision hash on the ledger.",
    responses=_ACTION_RESPONSES,
)
async def anchor_draft_proof(
    project_id: UUID,
    data: AnchorProofRequest,
    user: PrivilegedUser,
    _limit: EscrowActionRateLimit,
    verification: VerificationServiceDep,
    lifecycle: LifecycleServiceDep,
) -> AnchorProofResponse:
    await verification.assert_admin_verification(
        user, data.verification_code, VerificationPurpose.ANCHOR_DRAFT_PROOF.value
    )
    project, tx_hash = await lifecycle.anchor_draft_proof(
        project_id, user, data.action, data.draft_hash, data.previous_hash
    )
    return AnchorProofResponse(project_id=project.id, tx_hash=tx_hash)
