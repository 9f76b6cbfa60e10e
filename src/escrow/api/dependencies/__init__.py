"""FastAPI dependency injection definitions.

Re-exports all dependencies for convenience.
"""

# Auth
from src.escrow.api.dependencies.auth import (
    AdminUser,
    CurrentUser,
    PrivilegedUser,
    get_current_user,
    require_admin_role,
    require_privileged_role,
)

# Database
from src.escrow.api.dependencies.db import DBSession, get_db_session

# Rate limits
from src.escrow.api.dependencies.rate_limit import (
    EscrowActionRateLimit,
    JobTriggerRateLimit,
    NotificationRateLimit,
    VerificationCodeRateLimit,
    enforce_rate_limit,
)

# Repositories
from src.escrow.api.dependencies.repositories import (
    ChainEventRepo,
    NotificationRepo,
    PaymentRepo,
    ProjectRepo,
    UserRepo,
    VerificationCodeRepo,
    get_user_repository,
)

# Services
from src.escrow.api.dependencies.services import (
    EscrowControllerDep,
    FundingServiceDep,
    IndexerServiceDep,
    LedgerClientDep,
    LifecycleServiceDep,
    NotificationServiceDep,
    ReviewTimeoutServiceDep,
    VerificationServiceDep,
    WalletServiceDep,
    get_escrow_controller,
    get_funding_service,
    get_indexer_service,
    get_ledger,
    get_lifecycle_service,
    get_notification_service,
    get_review_timeout_service,
    get_verification_service,
    get_wallet_service,
)

__all__ = [
    # Database
    "DBSession",
    "get_db_session",
    # Auth
    "AdminUser",
    "CurrentUser",
    "PrivilegedUser",
    "get_current_user",
    "require_admin_role",
    "require_privileged_role",
    # Rate limits
    "EscrowActionRateLimit",
    "JobTriggerRateLimit",
    "NotificationRateLimit",
    "VerificationCodeRateLimit",
    "enforce_rate_limit",
    # Repositories
    "ChainEventRepo",
    "NotificationRepo",
    "PaymentRepo",
    "ProjectRepo",
    "UserRepo",
    "VerificationCodeRepo",
    "get_user_repository",
    # Services
    "EscrowControllerDep",
    "FundingServiceDep",
    "IndexerServiceDep",
    "LedgerClientDep",
    "LifecycleServiceDep",
    "NotificationServiceDep",
    "ReviewTimeoutServiceDep",
    "VerificationServiceDep",
    "WalletServiceDep",
    "get_escrow_controller",
    "get_funding_service",
    "get_indexer_service",
    "get_ledger",
    "get_lifecycle_service",
    "get_notification_service",
    "get_review_timeout_service",
    "get_verification_service",
    "get_wallet_service",
]
