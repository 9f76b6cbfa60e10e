"""Client payment endpoints."""

from uuid import UUID

from fastapi import APIRouter, status

from src.escrow.api.dependencies import CurrentUser, EscrowActionRateLimit, FundingServiceDep
from src.escrow.schemas import PaymentRead, PaymentRequest

router = APIRouter(prefix="/projects/{project_id}/payments", tags=["payments"])


@router.post(
    "",
    response_model=PaymentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Pay deposit or balance",
    description=(
        "In FIAT mode the payment goes through the processor and is recorded in the "
        "escrow by the admin. In CRYPTO mode the client's wallet funds the escrow."
    ),
    responses={
        400: {"description": "Invalid purpose or payment method"},
        403: {"description": "Caller is not the project client"},
        404: {"description": "Project not found"},
        409: {"description": "Escrow not payable or already paid"},
    },
)
async def create_payment(
    project_id: UUID,
    data: PaymentRequest,
    user: CurrentUser,
    _limit: EscrowActionRateLimit,
    funding: FundingServiceDep,
) -> PaymentRead:
    payment = await funding.complete_payment(project_id, user, data.purpose, data.method)
    return PaymentRead.model_validate(payment)
