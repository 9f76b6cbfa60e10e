"""Service factory dependencies."""

from typing import Annotated

from fastapi import Depends

from src.escrow.api.dependencies.db import DBSession
from src.escrow.api.dependencies.repositories import (
    ChainEventRepo,
    NotificationRepo,
    PaymentRepo,
    ProjectRepo,
    UserRepo,
    VerificationCodeRepo,
)
from src.escrow.chain import EscrowController, LedgerClient, get_ledger_client
from src.escrow.services import (
    ChainIndexerService,
    EscrowFundingService,
    EscrowLifecycleService,
    NotificationService,
    ReviewTimeoutService,
    VerificationCodeService,
    WalletService,
)


def get_ledger() -> LedgerClient:
    """Get the process-wide ledger client."""
    return get_ledger_client()


LedgerClientDep = Annotated[LedgerClient, Depends(get_ledger)]


def get_escrow_controller(client: LedgerClientDep) -> EscrowController:
    """Get escrow contract controller."""
    return EscrowController(client)


EscrowControllerDep = Annotated[EscrowController, Depends(get_escrow_controller)]


def get_wallet_service(
    user_repo: UserRepo,
    session: DBSession,
    client: LedgerClientDep,
) -> WalletService:
    """Get custodial wallet service."""
    return WalletService(user_repo, session, client)


def get_notification_service(
    user_repo: UserRepo,
    notification_repo: NotificationRepo,
    session: DBSession,
) -> NotificationService:
    """Get notification service."""
    return NotificationService(user_repo, notification_repo, session)


WalletServiceDep = Annotated[WalletService, Depends(get_wallet_service)]
NotificationServiceDep = Annotated[NotificationService, Depends(get_notification_service)]


def get_lifecycle_service(
    project_repo: ProjectRepo,
    user_repo: UserRepo,
    notifications: NotificationServiceDep,
    wallets: WalletServiceDep,
    escrow: EscrowControllerDep,
    session: DBSession,
) -> EscrowLifecycleService:
    """Get escrow lifecycle service."""
    return EscrowLifecycleService(project_repo, user_repo, notifications, wallets, escrow, session)


def get_funding_service(
    project_repo: ProjectRepo,
    payment_repo: PaymentRepo,
    user_repo: UserRepo,
    notifications: NotificationServiceDep,
    wallets: WalletServiceDep,
    escrow: EscrowControllerDep,
    session: DBSession,
) -> EscrowFundingService:
    """Get escrow funding service."""
    return EscrowFundingService(
        project_repo, payment_repo, user_repo, notifications, wallets, escrow, session
    )


def get_verification_service(
    code_repo: VerificationCodeRepo,
    session: DBSession,
) -> VerificationCodeService:
    """Get verification code service."""
    return VerificationCodeService(code_repo, session)


def get_indexer_service(
    project_repo: ProjectRepo,
    event_repo: ChainEventRepo,
    escrow: EscrowControllerDep,
    session: DBSession,
) -> ChainIndexerService:
    """Get chain event indexer."""
    return ChainIndexerService(project_repo, event_repo, escrow, session)


LifecycleServiceDep = Annotated[EscrowLifecycleService, Depends(get_lifecycle_service)]


def get_review_timeout_service(
    project_repo: ProjectRepo,
    lifecycle: LifecycleServiceDep,
) -> ReviewTimeoutService:
    """Get review-timeout settlement service."""
    return ReviewTimeoutService(project_repo, lifecycle)


FundingServiceDep = Annotated[EscrowFundingService, Depends(get_funding_service)]
VerificationServiceDep = Annotated[VerificationCodeService, Depends(get_verification_service)]
IndexerServiceDep = Annotated[ChainIndexerService, Depends(get_indexer_service)]
ReviewTimeoutServiceDep = Annotated[ReviewTimeoutService, Depends(get_review_timeout_service)]
