"""Escrow lifecycle - the project state machine.

A submitted project leaves DRAFT_SUBMITTED exactly once, for RELEASED,
REFUNDED or SPLIT. While the escrow is paused no transition is allowed.

Every action submits its ledger transaction first and waits for
confirmation. Only then are the status, payment, timeline entry, chain event
and notifications written, in one commit, with the tx hash as the
cross-reference. A ledger failure or an unconfirmed transaction leaves the
project untouched so the action can be retried.
"""

from uuid import UUID

from eth_account import Account
from sqlalchemy.ext.asyncio import AsyncSession

from src.escrow.chain import EscrowController, TxResult, normalize_sha256, validate_split_percent
from src.escrow.core.config import get_settings
from src.escrow.core.exceptions import (
    AuthorizationError,
    ConfigurationError,
    ConflictError,
    NotFoundError,
)
from src.escrow.core.logging import get_logger
from src.escrow.models import (
    TERMINAL_STATUSES,
    ChainEvent,
    Payment,
    PaymentStatus,
    PaymentType,
    Project,
    ProjectStatus,
    TimelineEntry,
    TimelineEventType,
    User,
    UserRole,
)
from src.escrow.repositories import ProjectRepository, Transition, UserRepository
from src.escrow.services.notification_service import NotificationService
from src.escrow.services.wallet_service import WalletService

logger = get_logger(__name__)


def require_admin(actor: User) -> None:
    if actor.role != UserRole.ADMIN.value:
        raise AuthorizationError("Admin access required.")


def ensure_settleable(project: Project) -> str:
    """Check a project can leave DRAFT_SUBMITTED. Returns its escrow address."""
    if not project.escrow_address:
        raise ConflictError("Escrow contract not deployed yet.")
    if project.status in TERMINAL_STATUSES:
        raise ConflictError("Escrow for this project is already settled.")
    if project.escrow_paused:
        raise ConflictError("Escrow actions are currently paused by the admin.")
    if project.status != ProjectStatus.DRAFT_SUBMITTED.value:
        raise ConflictError("Project must have a submitted draft before settlement.")
    return project.escrow_address


class EscrowLifecycleService:
    """Administrator-driven escrow actions and the automatic release path."""

    def __init__(
        self,
        project_repo: ProjectRepository,
        user_repo: UserRepository,
        notifications: NotificationService,
        wallets: WalletService,
        escrow: EscrowController,
        session: AsyncSession,
    ):
        self.project_repo = project_repo
        self.user_repo = user_repo
        self.notifications = notifications
        self.wallets = wallets
        self.escrow = escrow
        self.session = session

    async def _get_project(self, project_id: UUID) -> Project:
        project = await self.project_repo.get_by_id(project_id)
        if project is None:
            raise NotFoundError("Project not found.")
        return project

    async def _signing_key(self, user_id: UUID, label: str = "Admin") -> str:
        user = await self.wallets.ensure_wallet(user_id, for_signing=True)
        if not user.wallet_private_key:
            raise AuthorizationError(f"{label} wallet not available.")
        return user.wallet_private_key

    async def _commit(self, project: Project, transition: Transition, tx: TxResult) -> Project:
        """Write a confirmed action's records in one commit."""
        try:
            await self.project_repo.apply_transition(project, transition)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            logger.error(
                "Ledger action confirmed but local records were not saved",
                project_id=str(project.id),
                tx_hash=tx.tx_hash,
            )
            raise
        return project

    # Settlement

    async def release(self, project_id: UUID, actor: User) -> Project:
        """Release escrowed funds to the company."""
        require_admin(actor)
        project = await self._get_project(project_id)
        address = ensure_settleable(project)
        admin_key = await self._signing_key(actor.id)

        tx = await self.escrow.release(address, admin_key)
        logger.info("Escrow released", project_id=str(project.id), tx_hash=tx.tx_hash)

        return await self._commit(
            project,
            self._release_transition(
                project,
                tx,
                actor_id=actor.id,
                event_type=TimelineEventType.FUNDS_RELEASED,
                message="Admin released escrow funds to the company.",
                title="Funds released",
                notice=f'Escrow for "{project.title}" has been released to the company.',
            ),
            tx,
        )

    async def release_expired(self, project: Project) -> Project:
        """Release a project whose review window elapsed, signed by its admin.

        Raises AuthorizationError without touching the ledger if the project
        has no admin or the admin has no signing key.
        """
        address = ensure_settleable(project)
        admin = await self.user_repo.get_by_id(project.admin_id) if project.admin_id else None
        if admin is None or not admin.wallet_private_key:
            raise AuthorizationError("Project admin has no signing key.")

        tx = await self.escrow.release(address, admin.wallet_private_key)
        logger.info(
            "Escrow released after review timeout",
            project_id=str(project.id),
            tx_hash=tx.tx_hash,
        )

        return await self._commit(
            project,
            self._release_transition(
                project,
                tx,
                actor_id=admin.id,
                event_type=TimelineEventType.REVIEW_EXPIRED_RELEASED,
                message="Review window elapsed. Funds released automatically.",
                title="Automatic release",
                notice=f'Review window elapsed for "{project.title}". Funds released.',
            ),
            tx,
        )

    def _release_transition(
        self,
        project: Project,
        tx: TxResult,
        actor_id: UUID,
        event_type: TimelineEventType,
        message: str,
        title: str,
        notice: str,
    ) -> Transition:
        return Transition(
            status=ProjectStatus.RELEASED.value,
            payment=Payment(
                project_id=project.id,
                type=PaymentType.RELEASE.value,
                status=PaymentStatus.COMPLETED.value,
                amount=project.quoted_amount,
                tx_hash=tx.tx_hash,
            ),
            timeline=TimelineEntry(
                project_id=project.id,
                actor_id=actor_id,
                event_type=event_type.value,
                message=message,
                tx_hash=tx.tx_hash,
            ),
            chain_event=ChainEvent(
                project_id=project.id,
                event_name="FundsReleased",
                tx_hash=tx.tx_hash,
                block_number=tx.block_number,
            ),
            notifications=self.notifications.for_users([project.client_id], title, notice),
        )

    async def refund(self, project_id: UUID, actor: User) -> Project:
        """Return the deposit to the client."""
        require_admin(actor)
        project = await self._get_project(project_id)
        address = ensure_settleable(project)
        admin_key = await self._signing_key(actor.id)

        tx = await self.escrow.refund(address, admin_key)
        logger.info("Escrow refunded", project_id=str(project.id), tx_hash=tx.tx_hash)

        transition = Transition(
            status=ProjectStatus.REFUNDED.value,
            payment=Payment(
                project_id=project.id,
                type=PaymentType.REFUND.value,
                status=PaymentStatus.COMPLETED.value,
                amount=project.deposit_amount,
                tx_hash=tx.tx_hash,
            ),
            timeline=TimelineEntry(
                project_id=project.id,
                actor_id=actor.id,
                event_type=TimelineEventType.FUNDS_REFUNDED.value,
                message="Admin issued a refund to the client.",
                tx_hash=tx.tx_hash,
            ),
            chain_event=ChainEvent(
                project_id=project.id,
                event_name="FundsRefunded",
                tx_hash=tx.tx_hash,
                block_number=tx.block_number,
            ),
            notifications=self.notifications.for_users(
                [project.client_id],
                "Refund issued",
                f'Escrow refund processed for "{project.title}".',
            ),
        )
        return await self._commit(project, transition, tx)

    async def split(self, project_id: UUID, actor: User, client_percent: int) -> Project:
        """Split the escrow between client and company.

        The company receives 100 - client_percent.
        """
        client_percent = validate_split_percent(client_percent)
        company_percent = 100 - client_percent

        require_admin(actor)
        project = await self._get_project(project_id)
        address = ensure_settleable(project)
        admin_key = await self._signing_key(actor.id)

        tx = await self.escrow.split(address, admin_key, client_percent)
        logger.info(
            "Escrow split",
            project_id=str(project.id),
            tx_hash=tx.tx_hash,
            client_percent=client_percent,
        )

        shares = {"clientPercent": client_percent, "companyPercent": company_percent}
        transition = Transition(
            status=ProjectStatus.SPLIT.value,
            payment=Payment(
                project_id=project.id,
                type=PaymentType.SPLIT.value,
                status=PaymentStatus.COMPLETED.value,
                amount=project.quoted_amount,
                tx_hash=tx.tx_hash,
                details=shares,
            ),
            timeline=TimelineEntry(
                project_id=project.id,
                actor_id=actor.id,
                event_type=TimelineEventType.FUNDS_SPLIT.value,
                message=(
                    f"Admin split escrow: {client_percent}% to the client, "
                    f"{company_percent}% to the company."
                ),
                tx_hash=tx.tx_hash,
            ),
            chain_event=ChainEvent(
                project_id=project.id,
                event_name="FundsSplit",
                tx_hash=tx.tx_hash,
                block_number=tx.block_number,
                payload=shares,
            ),
            notifications=self.notifications.for_users(
                [project.client_id],
                "Escrow split",
                f'Escrow for "{project.title}" was split: {client_percent}% refunded to you.',
            ),
        )
        return await self._commit(project, transition, tx)

    # Pause

    async def pause(self, project_id: UUID, actor: User) -> Project:
        require_admin(actor)
        project = await self._get_project(project_id)
        address = self._ensure_pausable(project)
        if project.escrow_paused:
            raise ConflictError("Escrow is already paused.")
        admin_key = await self._signing_key(actor.id)

        tx = await self.escrow.pause(address, admin_key)
        logger.info("Escrow paused", project_id=str(project.id), tx_hash=tx.tx_hash)

        return await self._commit(
            project,
            self._pause_transition(project, tx, actor.id, paused=True),
            tx,
        )

    async def resume(self, project_id: UUID, actor: User) -> Project:
        require_admin(actor)
        project = await self._get_project(project_id)
        address = self._ensure_pausable(project)
        if not project.escrow_paused:
            raise ConflictError("Escrow is not paused.")
        admin_key = await self._signing_key(actor.id)

        tx = await self.escrow.unpause(address, admin_key)
        logger.info("Escrow resumed", project_id=str(project.id), tx_hash=tx.tx_hash)

        return await self._commit(
            project,
            self._pause_transition(project, tx, actor.id, paused=False),
            tx,
        )

    @staticmethod
    def _ensure_pausable(project: Project) -> str:
        if not project.escrow_address:
            raise ConflictError("Escrow contract not deployed yet.")
        if project.status in TERMINAL_STATUSES:
            raise ConflictError("Escrow for this project is already settled.")
        return project.escrow_address

    def _pause_transition(
        self, project: Project, tx: TxResult, actor_id: UUID, paused: bool
    ) -> Transition:
        if paused:
            event_type, event_name = TimelineEventType.ESCROW_PAUSED, "Paused"
            message, title = "Admin paused escrow actions.", "Escrow paused"
        else:
            event_type, event_name = TimelineEventType.ESCROW_RESUMED, "Unpaused"
            message, title = "Admin resumed escrow actions.", "Escrow resumed"

        return Transition(
            escrow_paused=paused,
            timeline=TimelineEntry(
                project_id=project.id,
                actor_id=actor_id,
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
            notifications=self.notifications.for_users(
                [project.client_id], title, f'{message} Project: "{project.title}".'
            ),
        )

    # Deployment and proofs

    async def deploy(self, project_id: UUID, actor: User) -> Project:
        """Deploy the project's escrow contract. The address never changes afterwards."""
        require_admin(actor)
        project = await self._get_project(project_id)
        if project.escrow_address:
            raise ConflictError("Escrow contract already deployed.")
        if project.status in TERMINAL_STATUSES:
            raise ConflictError("Escrow for this project is already settled.")

        company_key = get_settings().company_wallet_private_key
        if not company_key:
            raise ConfigurationError("COMPANY_WALLET_PRIVATE_KEY is not set.")
        company_address = Account.from_key(company_key).address

        client = await self.wallets.ensure_wallet(project.client_id)
        if not client.wallet_address:
            raise AuthorizationError("Client wallet not available.")
        admin_key = await self._signing_key(actor.id)

        address, tx = await self.escrow.deploy_escrow(
            client.wallet_address,
            company_address,
            admin_key,
            project.deposit_amount,
            project.balance_amount,
        )

        if project.admin_id is None:
            project.admin_id = actor.id

        transition = Transition(
            escrow_address=address,
            timeline=TimelineEntry(
                project_id=project.id,
                actor_id=actor.id,
                event_type=TimelineEventType.ESCROW_DEPLOYED.value,
                message=f"Escrow contract deployed at {address}.",
                tx_hash=tx.tx_hash,
            ),
            notifications=self.notifications.for_users(
                [project.client_id],
                "Escrow deployed",
                f'The escrow contract for "{project.title}" is live.',
            ),
        )
        return await self._commit(project, transition, tx)

    async def anchor_draft_proof(
        self,
        project_id: UUID,
        actor: User,
        action: str,
        draft_hash: str,
        previous_hash: str | None = None,
    ) -> tuple[Project, str]:
        """Timestamp a draft revision on the ledger. Returns (project, tx hash)."""
        normalized = normalize_sha256(draft_hash, "draft hash")
        if previous_hash:
            normalize_sha256(previous_hash, "previous hash")

        if actor.role not in (UserRole.ADMIN.value, UserRole.DESIGNER.value):
            raise AuthorizationError("Admin or designer access required.")
        project = await self._get_project(project_id)
        if not project.escrow_address:
            raise ConflictError("Escrow contract not deployed yet.")
        actor_key = await self._signing_key(actor.id, label="Actor")

        tx = await self.escrow.anchor_draft_proof(
            project.escrow_address, actor_key, action, draft_hash, previous_hash
        )

        transition = Transition(
            timeline=TimelineEntry(
                project_id=project.id,
                actor_id=actor.id,
                event_type=TimelineEventType.DRAFT_PROOF_ANCHORED.value,
                message=f"Draft proof anchored ({action}): {normalized}.",
                tx_hash=tx.tx_hash,
            ),
        )
        await self._commit(project, transition, tx)
        return project, tx.tx_hash
