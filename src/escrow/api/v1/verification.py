"""Verification code endpoints."""

from fastapi import APIRouter, status

from src.escrow.api.dependencies import (
    PrivilegedUser,
    VerificationCodeRateLimit,
    VerificationServiceDep,
)
from src.escrow.schemas import VerificationCodeRequest, VerificationCodeResponse

router = APIRouter(prefix="/verification-codes", tags=["verification"])


@router.post(
    "",
    response_model=VerificationCodeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request a verification code",
    description="E-mail a one-time code, optionally scoped to a single action.",
    responses={
        403: {"description": "Only admins and designers can request codes"},
        429: {"description": "Rate limit exceeded"},
    },
)
async def request_verification_code(
    data: VerificationCodeRequest,
    user: PrivilegedUser,
    _limit: VerificationCodeRateLimit,
    verification: VerificationServiceDep,
) -> VerificationCodeResponse:
    purpose = data.purpose.value if data.purpose else None
    expires_at = await verification.issue(user, purpose)
    return VerificationCodeResponse(
        message="Verification code sent.",
        expires_at=expires_at,
    )
