"""Tests for the escrow lifecycle state machine."""

from decimal import Decimal

import pytest
from eth_account import Account

from src.escrow.core.config import get_settings
from src.escrow.core.exceptions import (
    AuthorizationError,
    ConfigurationError,
    ConflictError,
    LedgerConfirmationTimeout,
    LedgerRevertedError,
    NotFoundError,
    ValidationError,
)
from src.escrow.models import (
    ChainEvent,
    Notification,
    Payment,
    PaymentType,
    Project,
    ProjectStatus,
    TimelineEntry,
    TimelineEventType,
    User,
)
from src.escrow.services import EscrowLifecycleService
from tests.factories import ProjectFactory, UserFactory
from tests.fakes import FakeEscrowController, FakeSession, InMemoryStore

pytestmark = pytest.mark.unit

HEX64 = "b" * 64


def only(store: InMemoryStore, model: type):
    rows = store.all(model)
    assert len(rows) == 1, f"expected one {model.__name__}, found {len(rows)}"
    return rows[0]


class TestRelease:
    async def test_release_writes_all_records_in_one_commit(
        self,
        lifecycle: EscrowLifecycleService,
        escrow: FakeEscrowController,
        session: FakeSession,
        store: InMemoryStore,
        submitted_project: Project,
        admin: User,
        client_user: User,
    ) -> None:
        project = await lifecycle.release(submitted_project.id, admin)

        assert project.status == ProjectStatus.RELEASED.value
        assert escrow.write_calls == ["release"]
        assert session.commits == 1

        payment = only(store, Payment)
        timeline = only(store, TimelineEntry)
        event = only(store, ChainEvent)
        notification = only(store, Notification)

        assert payment.type == PaymentType.RELEASE.value
        assert payment.amount == Decimal("1000")
        assert timeline.event_type == TimelineEventType.FUNDS_RELEASED.value
        assert timeline.message == "Admin released escrow funds to the company."
        assert event.event_name == "FundsReleased"
        assert payment.tx_hash == timeline.tx_hash == event.tx_hash
        assert notification.user_id == client_user.id
        assert notification.title == "Funds released"

    async def test_non_admin_rejected_before_ledger(
        self,
        lifecycle: EscrowLifecycleService,
        escrow: FakeEscrowController,
        submitted_project: Project,
        designer: User,
    ) -> None:
        with pytest.raises(AuthorizationError):
            await lifecycle.release(submitted_project.id, designer)
        assert escrow.write_calls == []

    async def test_unknown_project(
        self, lifecycle: EscrowLifecycleService, admin: User
    ) -> None:
        with pytest.raises(NotFoundError):
            await lifecycle.release(ProjectFactory.build().id, admin)


class TestSettlementGuards:
    @pytest.mark.parametrize(
        "action", ["release", "refund", "split"], ids=["release", "refund", "split"]
    )
    async def test_paused_escrow_rejects_settlement(
        self,
        action: str,
        lifecycle: EscrowLifecycleService,
        escrow: FakeEscrowController,
        store: InMemoryStore,
        submitted_project: Project,
        admin: User,
    ) -> None:
        submitted_project.escrow_paused = True
        args = (50,) if action == "split" else ()

        with pytest.raises(ConflictError, match="paused"):
            await getattr(lifecycle, action)(submitted_project.id, admin, *args)

        assert escrow.write_calls == []
        assert submitted_project.status == ProjectStatus.DRAFT_SUBMITTED.value
        assert store.all(Payment) == []

    @pytest.mark.parametrize(
        "status",
        [ProjectStatus.RELEASED.value, ProjectStatus.REFUNDED.value, ProjectStatus.SPLIT.value],
    )
    async def test_terminal_project_rejects_settlement(
        self,
        status: str,
        lifecycle: EscrowLifecycleService,
        escrow: FakeEscrowController,
        submitted_project: Project,
        admin: User,
    ) -> None:
        submitted_project.status = status

        with pytest.raises(ConflictError, match="already settled"):
            await lifecycle.refund(submitted_project.id, admin)
        assert escrow.write_calls == []
        assert submitted_project.status == status

    async def test_undeployed_project_rejected(
        self,
        lifecycle: EscrowLifecycleService,
        escrow: FakeEscrowController,
        submitted_project: Project,
        admin: User,
    ) -> None:
        submitted_project.escrow_address = None

        with pytest.raises(ConflictError, match="not deployed"):
            await lifecycle.release(submitted_project.id, admin)
        assert escrow.write_calls == []

    async def test_draft_not_submitted_rejected(
        self,
        lifecycle: EscrowLifecycleService,
        submitted_project: Project,
        admin: User,
    ) -> None:
        submitted_project.status = ProjectStatus.DRAFT.value

        with pytest.raises(ConflictError, match="submitted draft"):
            await lifecycle.release(submitted_project.id, admin)


class TestLedgerFailures:
    @pytest.mark.parametrize(
        "error",
        [
            LedgerRevertedError("release reverted.", tx_hash="0x" + "1" * 64),
            LedgerConfirmationTimeout("not confirmed; outcome unknown.", tx_hash="0x" + "2" * 64),
        ],
        ids=["reverted", "timeout"],
    )
    async def test_failure_writes_nothing(
        self,
        error: Exception,
        lifecycle: EscrowLifecycleService,
        escrow: FakeEscrowController,
        session: FakeSession,
        store: InMemoryStore,
        submitted_project: Project,
        admin: User,
    ) -> None:
        escrow.error = error

        with pytest.raises(type(error)):
            await lifecycle.release(submitted_project.id, admin)

        assert submitted_project.status == ProjectStatus.DRAFT_SUBMITTED.value
        assert session.commits == 0
        for model in (Payment, TimelineEntry, ChainEvent, Notification):
            assert store.all(model) == []

    async def test_failed_commit_rolls_back_and_raises(
        self,
        lifecycle: EscrowLifecycleService,
        session: FakeSession,
        store: InMemoryStore,
        submitted_project: Project,
        admin: User,
    ) -> None:
        session.fail_on_commit = RuntimeError("database unavailable")

        with pytest.raises(RuntimeError):
            await lifecycle.release(submitted_project.id, admin)

        assert session.rollbacks == 1
        assert store.all(Payment) == []
        assert store.all(ChainEvent) == []


class TestRefund:
    async def test_refund(
        self,
        lifecycle: EscrowLifecycleService,
        store: InMemoryStore,
        submitted_project: Project,
        admin: User,
    ) -> None:
        project = await lifecycle.refund(submitted_project.id, admin)

        assert project.status == ProjectStatus.REFUNDED.value
        payment = only(store, Payment)
        assert payment.type == PaymentType.REFUND.value
        assert payment.amount == Decimal("300")
        assert only(store, ChainEvent).event_name == "FundsRefunded"
        assert only(store, Notification).title == "Refund issued"


class TestSplit:
    async def test_split_records_both_shares(
        self,
        lifecycle: EscrowLifecycleService,
        escrow: FakeEscrowController,
        store: InMemoryStore,
        submitted_project: Project,
        admin: User,
    ) -> None:
        project = await lifecycle.split(submitted_project.id, admin, 40)

        assert project.status == ProjectStatus.SPLIT.value
        assert escrow.calls[-1] == ("split", (submitted_project.escrow_address, 40))
        payment = only(store, Payment)
        assert payment.details == {"clientPercent": 40, "companyPercent": 60}
        assert only(store, ChainEvent).payload == {"clientPercent": 40, "companyPercent": 60}
        assert "40% to the client, 60% to the company" in only(store, TimelineEntry).message

    @pytest.mark.parametrize("percent", [0, 100])
    async def test_boundaries_accepted(
        self,
        percent: int,
        lifecycle: EscrowLifecycleService,
        submitted_project: Project,
        admin: User,
    ) -> None:
        project = await lifecycle.split(submitted_project.id, admin, percent)
        assert project.status == ProjectStatus.SPLIT.value

    @pytest.mark.parametrize("percent", [-1, 101, 50.5])
    async def test_invalid_percent_rejected_before_ledger(
        self,
        percent,
        lifecycle: EscrowLifecycleService,
        escrow: FakeEscrowController,
        submitted_project: Project,
        admin: User,
    ) -> None:
        with pytest.raises(ValidationError):
            await lifecycle.split(submitted_project.id, admin, percent)
        assert escrow.write_calls == []


class TestPause:
    async def test_pause_then_resume(
        self,
        lifecycle: EscrowLifecycleService,
        escrow: FakeEscrowController,
        store: InMemoryStore,
        submitted_project: Project,
        admin: User,
    ) -> None:
        project = await lifecycle.pause(submitted_project.id, admin)
        assert project.escrow_paused is True
        assert project.status == ProjectStatus.DRAFT_SUBMITTED.value

        project = await lifecycle.resume(submitted_project.id, admin)
        assert project.escrow_paused is False

        assert escrow.write_calls == ["pause", "unpause"]
        names = sorted(event.event_name for event in store.all(ChainEvent))
        assert names == ["Paused", "Unpaused"]
        assert {entry.event_type for entry in store.all(TimelineEntry)} == {
            TimelineEventType.ESCROW_PAUSED.value,
            TimelineEventType.ESCROW_RESUMED.value,
        }

    async def test_pause_twice_rejected(
        self,
        lifecycle: EscrowLifecycleService,
        submitted_project: Project,
        admin: User,
    ) -> None:
        submitted_project.escrow_paused = True
        with pytest.raises(ConflictError, match="already paused"):
            await lifecycle.pause(submitted_project.id, admin)

    async def test_resume_unpaused_rejected(
        self,
        lifecycle: EscrowLifecycleService,
        submitted_project: Project,
        admin: User,
    ) -> None:
        with pytest.raises(ConflictError, match="not paused"):
            await lifecycle.resume(submitted_project.id, admin)

    async def test_settled_escrow_cannot_be_paused(
        self,
        lifecycle: EscrowLifecycleService,
        submitted_project: Project,
        admin: User,
    ) -> None:
        submitted_project.status = ProjectStatus.RELEASED.value
        with pytest.raises(ConflictError, match="already settled"):
            await lifecycle.pause(submitted_project.id, admin)

    async def test_resume_then_release_allowed(
        self,
        lifecycle: EscrowLifecycleService,
        submitted_project: Project,
        admin: User,
    ) -> None:
        submitted_project.escrow_paused = True
        await lifecycle.resume(submitted_project.id, admin)
        project = await lifecycle.release(submitted_project.id, admin)
        assert project.status == ProjectStatus.RELEASED.value


class TestDeploy:
    @pytest.fixture
    def company_key(self, monkeypatch: pytest.MonkeyPatch) -> str:
        key = Account.create().key.hex()
        monkeypatch.setattr(get_settings(), "company_wallet_private_key", key)
        return key

    async def test_deploy_sets_address_and_creates_client_wallet(
        self,
        company_key: str,
        lifecycle: EscrowLifecycleService,
        escrow: FakeEscrowController,
        store: InMemoryStore,
        admin: User,
        client_user: User,
    ) -> None:
        project = store.put(ProjectFactory.undeployed(client_id=client_user.id))

        deployed = await lifecycle.deploy(project.id, admin)

        assert deployed.escrow_address == escrow.deployed_address
        assert deployed.admin_id == admin.id
        assert client_user.wallet_address is not None
        name, args = escrow.calls[-1]
        assert name == "deploy_escrow"
        assert args[0] == client_user.wallet_address
        assert args[1] == Account.from_key(company_key).address
        assert only(store, TimelineEntry).event_type == TimelineEventType.ESCROW_DEPLOYED.value

    async def test_address_never_changes(
        self,
        company_key: str,
        lifecycle: EscrowLifecycleService,
        escrow: FakeEscrowController,
        submitted_project: Project,
        admin: User,
    ) -> None:
        original = submitted_project.escrow_address
        with pytest.raises(ConflictError, match="already deployed"):
            await lifecycle.deploy(submitted_project.id, admin)
        assert submitted_project.escrow_address == original
        assert escrow.write_calls == []

    async def test_missing_company_key(
        self,
        lifecycle: EscrowLifecycleService,
        store: InMemoryStore,
        admin: User,
        client_user: User,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr(get_settings(), "company_wallet_private_key", None)
        project = store.put(ProjectFactory.undeployed(client_id=client_user.id))

        with pytest.raises(ConfigurationError):
            await lifecycle.deploy(project.id, admin)


class TestDraftProof:
    async def test_designer_can_anchor(
        self,
        lifecycle: EscrowLifecycleService,
        escrow: FakeEscrowController,
        store: InMemoryStore,
        submitted_project: Project,
        designer: User,
    ) -> None:
        project, tx_hash = await lifecycle.anchor_draft_proof(
            submitted_project.id, designer, "upload", "0x" + HEX64.upper()
        )

        assert project.id == submitted_project.id
        entry = only(store, TimelineEntry)
        assert entry.event_type == TimelineEventType.DRAFT_PROOF_ANCHORED.value
        assert entry.tx_hash == tx_hash
        assert HEX64 in entry.message
        # Proofs never move the project
        assert project.status == ProjectStatus.DRAFT_SUBMITTED.value

    async def test_malformed_hash_rejected_before_ledger(
        self,
        lifecycle: EscrowLifecycleService,
        escrow: FakeEscrowController,
        submitted_project: Project,
        designer: User,
    ) -> None:
        with pytest.raises(ValidationError):
            await lifecycle.anchor_draft_proof(submitted_project.id, designer, "upload", "xyz")
        with pytest.raises(ValidationError):
            await lifecycle.anchor_draft_proof(
                submitted_project.id, designer, "revise", HEX64, previous_hash="nope"
            )
        assert escrow.write_calls == []

    async def test_client_cannot_anchor(
        self,
        lifecycle: EscrowLifecycleService,
        submitted_project: Project,
        client_user: User,
    ) -> None:
        with pytest.raises(AuthorizationError):
            await lifecycle.anchor_draft_proof(submitted_project.id, client_user, "upload", HEX64)


class TestReleaseExpired:
    async def test_signed_by_project_admin(
        self,
        lifecycle: EscrowLifecycleService,
        store: InMemoryStore,
        admin: User,
        client_user: User,
    ) -> None:
        project = store.put(ProjectFactory.overdue(admin_id=admin.id, client_id=client_user.id))

        released = await lifecycle.release_expired(project)

        assert released.status == ProjectStatus.RELEASED.value
        entry = only(store, TimelineEntry)
        assert entry.event_type == TimelineEventType.REVIEW_EXPIRED_RELEASED.value
        assert entry.actor_id == admin.id
        assert entry.message == "Review window elapsed. Funds released automatically."
        assert only(store, Notification).title == "Automatic release"

    async def test_admin_without_key_rejected_before_ledger(
        self,
        lifecycle: EscrowLifecycleService,
        escrow: FakeEscrowController,
        store: InMemoryStore,
        client_user: User,
    ) -> None:
        keyless = store.put(UserFactory.admin(wallet_address=None, wallet_private_key=None))
        project = store.put(ProjectFactory.overdue(admin_id=keyless.id, client_id=client_user.id))

        with pytest.raises(AuthorizationError):
            await lifecycle.release_expired(project)
        assert escrow.write_calls == []
