from src.escrow.schemas.escrow import (
    AnchorProofRequest,
    AnchorProofResponse,
    EscrowActionRequest,
    ProjectEscrowRead,
    SplitRequest,
)
from src.escrow.schemas.jobs import IndexResultRead, JobTriggerRequest, ProcessResultRead
from src.escrow.schemas.notification import MarkReadRequest, MarkReadResponse, NotificationRead
from src.escrow.schemas.payment import PaymentRead, PaymentRequest
from src.escrow.schemas.verification import VerificationCodeRequest, VerificationCodeResponse

__all__ = [
    "AnchorProofRequest",
    "AnchorProofResponse",
    "EscrowActionRequest",
    "IndexResultRead",
    "JobTriggerRequest",
    "MarkReadRequest",
    "MarkReadResponse",
    "NotificationRead",
    "PaymentRead",
    "PaymentRequest",
    "ProcessResultRead",
    "ProjectEscrowRead",
    "SplitRequest",
    "VerificationCodeRequest",
    "VerificationCodeResponse",
]
