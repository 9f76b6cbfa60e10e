"""Tests for automatic release after the review window elapses."""

import pytest

from src.escrow.models import (
    Notification,
    Payment,
    PaymentType,
    ProjectStatus,
    TimelineEntry,
    TimelineEventType,
    User,
)
from src.escrow.services import ReviewTimeoutService
from tests.factories import ProjectFactory, UserFactory
from tests.fakes import FakeEscrowController, InMemoryStore

pytestmark = pytest.mark.unit


class TestProcessOverdue:
    async def test_releases_overdue_project_once(
        self,
        review_timeouts: ReviewTimeoutService,
        escrow: FakeEscrowController,
        store: InMemoryStore,
        admin: User,
        client_user: User,
    ) -> None:
        project = store.put(ProjectFactory.overdue(admin_id=admin.id, client_id=client_user.id))

        first = await review_timeouts.process_overdue()
        second = await review_timeouts.process_overdue()

        assert (first.processed, first.skipped) == (1, 0)
        assert (second.processed, second.skipped) == (0, 0)
        assert project.status == ProjectStatus.RELEASED.value
        assert escrow.write_calls == ["release"]

        [payment] = store.all(Payment)
        assert payment.type == PaymentType.RELEASE.value
        assert payment.amount == project.quoted_amount
        [entry] = store.all(TimelineEntry)
        assert entry.event_type == TimelineEventType.REVIEW_EXPIRED_RELEASED.value
        assert entry.tx_hash == payment.tx_hash
        [notification] = store.all(Notification)
        assert notification.title == "Automatic release"
        assert notification.user_id == client_user.id

    async def test_ignores_projects_not_yet_due(
        self,
        review_timeouts: ReviewTimeoutService,
        escrow: FakeEscrowController,
        submitted_project,
    ) -> None:
        result = await review_timeouts.process_overdue()

        assert (result.processed, result.skipped) == (0, 0)
        assert escrow.write_calls == []

    @pytest.mark.parametrize(
        "overrides",
        [
            {"escrow_paused": True},
            {"status": ProjectStatus.REFUNDED.value},
            {"status": ProjectStatus.DRAFT.value},
            {"escrow_address": None},
        ],
        ids=["paused", "settled", "no-draft", "undeployed"],
    )
    async def test_ineligible_projects_not_selected(
        self,
        overrides: dict,
        review_timeouts: ReviewTimeoutService,
        escrow: FakeEscrowController,
        store: InMemoryStore,
        admin: User,
        client_user: User,
    ) -> None:
        store.put(ProjectFactory.overdue(admin_id=admin.id, client_id=client_user.id, **overrides))

        result = await review_timeouts.process_overdue()

        assert (result.processed, result.skipped) == (0, 0)
        assert escrow.write_calls == []

    async def test_admin_without_key_skipped(
        self,
        review_timeouts: ReviewTimeoutService,
        escrow: FakeEscrowController,
        store: InMemoryStore,
        client_user: User,
    ) -> None:
        keyless = store.put(UserFactory.admin(wallet_address=None, wallet_private_key=None))
        project = store.put(ProjectFactory.overdue(admin_id=keyless.id, client_id=client_user.id))

        result = await review_timeouts.process_overdue()

        assert (result.processed, result.skipped) == (0, 1)
        assert escrow.write_calls == []
        assert project.status == ProjectStatus.DRAFT_SUBMITTED.value

    async def test_failure_does_not_block_other_projects(
        self,
        review_timeouts: ReviewTimeoutService,
        escrow: FakeEscrowController,
        store: InMemoryStore,
        admin: User,
        client_user: User,
    ) -> None:
        store.put(ProjectFactory.overdue(admin_id=None, client_id=client_user.id))
        healthy = store.put(ProjectFactory.overdue(admin_id=admin.id, client_id=client_user.id))

        result = await review_timeouts.process_overdue()

        assert (result.processed, result.skipped) == (1, 1)
        assert healthy.status == ProjectStatus.RELEASED.value
