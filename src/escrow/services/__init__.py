"""Service layer - business logic."""

from src.escrow.services.chain_indexer import ChainIndexerService, IndexResult
from src.escrow.services.escrow_service import EscrowLifecycleService
from src.escrow.services.notification_service import NotificationService
from src.escrow.services.payment_service import EscrowFundingService
from src.escrow.services.review_timeout_service import ProcessResult, ReviewTimeoutService
from src.escrow.services.verification_code_service import (
    VerificationCodeService,
    VerificationPurpose,
)
from src.escrow.services.wallet_service import WalletService

__all__ = [
    "ChainIndexerService",
    "EscrowFundingService",
    "EscrowLifecycleService",
    "IndexResult",
    "NotificationService",
    "ProcessResult",
    "ReviewTimeoutService",
    "VerificationCodeService",
    "VerificationPurpose",
    "WalletService",
]
