"""Client deposit and balance payments."""

from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.escrow.chain import EscrowController, TxResult
from src.escrow.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from src.escrow.core.logging import get_logger
from src.escrow.models import (
    TERMINAL_STATUSES,
    ChainEvent,
    Payment,
    PaymentStatus,
    PaymentType,
    Project,
    TimelineEntry,
    TimelineEventType,
    User,
)
from src.escrow.repositories import (
    PaymentRepository,
    ProjectRepository,
    Transition,
    UserRepository,
)
from src.escrow.services.notification_service import NotificationService
from src.escrow.services.payment_gateway import (
    PaymentMode,
    get_payment_mode,
    parse_method,
    process_mock,
)
from src.escrow.services.wallet_service import WalletService

logger = get_logger(__name__)

_FUNDING_PURPOSES = {
    PaymentType.DEPOSIT.value: (TimelineEventType.DEPOSIT_FUNDED, "deposit"),
    PaymentType.BALANCE.value: (TimelineEventType.BALANCE_FUNDED, "balance"),
}

# Contract event emitted by each funding call, keyed by (mode, purpose)
_FUNDING_EVENTS = {
    (PaymentMode.FIAT, PaymentType.DEPOSIT.value): "DepositRecordedFiat",
    (PaymentMode.FIAT, PaymentType.BALANCE.value): "BalanceRecordedFiat",
    (PaymentMode.CRYPTO, PaymentType.DEPOSIT.value): "DepositFunded",
    (PaymentMode.CRYPTO, PaymentType.BALANCE.value): "BalanceFunded",
}


class EscrowFundingService:
    """Completes a client's deposit or balance payment.

    In FIAT mode the money moves through the payment processor and the admin
    records it in the contract. In CRYPTO mode the client's custodial wallet
    pays the contract directly.
    """

    def __init__(
        self,
        project_repo: ProjectRepository,
        payment_repo: PaymentRepository,
        user_repo: UserRepository,
        notifications: NotificationService,
        wallets: WalletService,
        escrow: EscrowController,
        session: AsyncSession,
    ):
        self.project_repo = project_repo
        self.payment_repo = payment_repo
        self.user_repo = user_repo
        self.notifications = notifications
        self.wallets = wallets
        self.escrow = escrow
        self.session = session

    async def complete_payment(
        self,
        project_id: UUID,
        payer: User,
        purpose: str,
        method: str | None = None,
    ) -> Payment:
        purpose = (purpose or "").strip().upper()
        if purpose not in _FUNDING_PURPOSES:
            raise ValidationError("Payment purpose must be DEPOSIT or BALANCE.")
        event_type, label = _FUNDING_PURPOSES[purpose]

        mode = get_payment_mode()
        event_name = _FUNDING_EVENTS[(mode, purpose)]
        parsed_method = parse_method(method) if mode == PaymentMode.FIAT else None
        if mode == PaymentMode.FIAT and parsed_method is None:
            raise ValidationError("Select a valid payment method (FPX, VISA or MASTERCARD).")

        project = await self.project_repo.get_by_id(project_id)
        if project is None:
            raise NotFoundError("Project not found.")
        if project.client_id != payer.id:
            raise AuthorizationError("Only the project client can pay for this project.")
        if not project.escrow_address:
            raise ConflictError("Escrow contract not deployed yet.")
        if project.status in TERMINAL_STATUSES:
            raise ConflictError("Escrow for this project is already settled.")
        if project.escrow_paused:
            raise ConflictError("Escrow actions are currently paused by the admin.")
        if await self.payment_repo.exists_completed(project.id, purpose):
            raise ConflictError(f"The {label} has already been paid.")

        amount = (
            project.deposit_amount
            if purpose == PaymentType.DEPOSIT.value
            else project.balance_amount
        )

        details: dict[str, Any] = {"mode": mode.value}
        if parsed_method is not None:
            ack = await process_mock(parsed_method, amount, project.id, payer.id, purpose)
            details.update(provider=ack.provider, method=ack.method.value, reference=ack.reference)
            tx = await self._record_fiat(project, purpose)
            message = f"Client paid the {label} via {ack.method.value}."
        else:
            tx = await self._fund_on_chain(project, payer, purpose, amount)
            message = f"Client funded the {label} on-chain."

        payment = Payment(
            project_id=project.id,
            type=purpose,
            status=PaymentStatus.COMPLETED.value,
            amount=amount,
            tx_hash=tx.tx_hash,
            details=details,
        )
        transition = Transition(
            payment=payment,
            timeline=TimelineEntry(
                project_id=project.id,
                actor_id=payer.id,
                event_type=event_type.value,
                message=message,
                tx_hash=tx.tx_hash,
            ),
            chain_event=ChainEvent(
                project_id=project.id,
                event_name=event_name,
                tx_hash=tx.tx_hash,
                block_number=tx.block_number,
            ),
            notifications=await self.notifications.for_admins(
                f"{label.capitalize()} received",
                f'Client paid the {label} for "{project.title}".',
            ),
        )

        try:
            await self.project_repo.apply_transition(project, transition)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            logger.error(
                "Payment confirmed on-chain but local records were not saved",
                project_id=str(project_id),
                tx_hash=tx.tx_hash,
            )
            raise

        logger.info(
            "Escrow payment completed",
            project_id=str(project_id),
            purpose=purpose,
            mode=mode.value,
            tx_hash=tx.tx_hash,
        )
        return payment

    async def _record_fiat(self, project: Project, purpose: str) -> TxResult:
        if project.admin_id is None:
            raise ConflictError("Project has no admin to record the payment.")
        admin = await self.wallets.ensure_wallet(project.admin_id, for_signing=True)
        if not admin.wallet_private_key:
            raise AuthorizationError("Admin wallet not available.")

        if purpose == PaymentType.DEPOSIT.value:
            return await self.escrow.record_deposit_fiat(
                project.escrow_address, admin.wallet_private_key  # type: ignore[arg-type]
            )
        return await self.escrow.record_balance_fiat(
            project.escrow_address, admin.wallet_private_key  # type: ignore[arg-type]
        )

    async def _fund_on_chain(
        self, project: Project, payer: User, purpose: str, amount: Decimal
    ) -> TxResult:
        client = await self.wallets.ensure_wallet(payer.id, for_signing=True)
        if not client.wallet_private_key:
            raise AuthorizationError("Client wallet not available.")

        if purpose == PaymentType.DEPOSIT.value:
            return await self.escrow.fund_deposit(
                project.escrow_address, client.wallet_private_key, amount  # type: ignore[arg-type]
            )
        return await self.escrow.fund_balance(
            project.escrow_address, client.wallet_private_key, amount  # type: ignore[arg-type]
        )
