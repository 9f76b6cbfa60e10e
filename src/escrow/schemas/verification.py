"""Verification code schemas."""

from datetime import datetime

from pydantic import BaseModel

from src.escrow.services.verification_code_service import VerificationPurpose


class VerificationCodeRequest(BaseModel):
    purpose: VerificationPurpose | None = None


class VerificationCodeResponse(BaseModel):
    message: str
    expires_at: datetime
