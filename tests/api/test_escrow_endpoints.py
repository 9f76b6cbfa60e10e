"""End-to-end tests for the escrow HTTP surface."""

from unittest.mock import MagicMock

import pytest
from httpx import AsyncClient

from src.escrow.core.config import get_settings
from src.escrow.core.exceptions import LedgerConfirmationTimeout
from src.escrow.models import Notification, Payment, Project, ProjectStatus, User
from tests.helpers import auth_headers
from tests.factories import ProjectFactory
from tests.fakes import FakeEscrowController, InMemoryStore

pytestmark = pytest.mark.unit

OVERRIDE_CODE = "424242"


@pytest.fixture
def override_code(monkeypatch: pytest.MonkeyPatch) -> str:
    monkeypatch.setattr(get_settings(), "admin_mfa_code", OVERRIDE_CODE)
    return OVERRIDE_CODE


def escrow_url(project: Project, action: str) -> str:
    return f"/api/v1/projects/{project.id}/escrow/{action}"


class TestVerifiedRelease:
    async def test_issue_then_release(
        self,
        api_client: AsyncClient,
        sent_email: MagicMock,
        store: InMemoryStore,
        submitted_project: Project,
        admin: User,
    ) -> None:
        response = await api_client.post(
            "/api/v1/verification-codes",
            json={"purpose": "release_funds"},
            headers=auth_headers(admin),
        )
        assert response.status_code == 201
        assert response.json()["message"] == "Verification code sent."
        code = sent_email.call_args.args[1]

        response = await api_client.post(
            escrow_url(submitted_project, "release"),
            json={"verification_code": f"{code[:3]}-{code[3:]}"},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == str(submitted_project.id)
        assert body["status"] == ProjectStatus.RELEASED.value
        assert len(store.all(Payment)) == 1

    async def test_code_for_another_action_rejected(
        self,
        api_client: AsyncClient,
        sent_email: MagicMock,
        escrow: FakeEscrowController,
        submitted_project: Project,
        admin: User,
    ) -> None:
        await api_client.post(
            "/api/v1/verification-codes",
            json={"purpose": "refund_funds"},
            headers=auth_headers(admin),
        )
        code = sent_email.call_args.args[1]

        response = await api_client.post(
            escrow_url(submitted_project, "release"),
            json={"verification_code": code},
            headers=auth_headers(admin),
        )

        assert response.status_code == 403
        assert response.json()["detail"] == "Invalid or expired verification code."
        assert escrow.write_calls == []

    async def test_missing_code_is_a_validation_error(
        self, api_client: AsyncClient, submitted_project: Project, admin: User
    ) -> None:
        response = await api_client.post(
            escrow_url(submitted_project, "release"), json={}, headers=auth_headers(admin)
        )

        assert response.status_code == 422


class TestEscrowActions:
    async def test_split(
        self,
        override_code: str,
        api_client: AsyncClient,
        store: InMemoryStore,
        submitted_project: Project,
        admin: User,
    ) -> None:
        response = await api_client.post(
            escrow_url(submitted_project, "split"),
            json={"verification_code": override_code, "client_percent": 40},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        assert response.json()["status"] == ProjectStatus.SPLIT.value
        [payment] = store.all(Payment)
        assert payment.details == {"clientPercent": 40, "companyPercent": 60}

    async def test_split_out_of_range(
        self,
        override_code: str,
        api_client: AsyncClient,
        escrow: FakeEscrowController,
        submitted_project: Project,
        admin: User,
    ) -> None:
        response = await api_client.post(
            escrow_url(submitted_project, "split"),
            json={"verification_code": override_code, "client_percent": 101},
            headers=auth_headers(admin),
        )

        assert response.status_code == 400
        assert escrow.write_calls == []

    async def test_paused_release_conflicts(
        self,
        override_code: str,
        api_client: AsyncClient,
        submitted_project: Project,
        admin: User,
    ) -> None:
        response = await api_client.post(
            escrow_url(submitted_project, "pause"),
            json={"verification_code": override_code},
            headers=auth_headers(admin),
        )
        assert response.status_code == 200
        assert response.json()["escrow_paused"] is True

        response = await api_client.post(
            escrow_url(submitted_project, "release"),
            json={"verification_code": override_code},
            headers=auth_headers(admin),
        )
        assert response.status_code == 409
        assert "request_id" in response.json()

    async def test_designer_cannot_release(
        self,
        override_code: str,
        api_client: AsyncClient,
        submitted_project: Project,
        designer: User,
    ) -> None:
        response = await api_client.post(
            escrow_url(submitted_project, "release"),
            json={"verification_code": override_code},
            headers=auth_headers(designer),
        )

        assert response.status_code == 403
        assert response.json()["detail"] == "Admin access required."

    async def test_unknown_project(
        self, override_code: str, api_client: AsyncClient, admin: User
    ) -> None:
        response = await api_client.post(
            escrow_url(ProjectFactory.build(), "refund"),
            json={"verification_code": override_code},
            headers=auth_headers(admin),
        )

        assert response.status_code == 404
        assert response.json()["request_id"]

    async def test_confirmation_timeout_reports_tx_hash(
        self,
        override_code: str,
        api_client: AsyncClient,
        escrow: FakeEscrowController,
        store: InMemoryStore,
        submitted_project: Project,
        admin: User,
    ) -> None:
        tx_hash = "0x" + "7" * 64
        escrow.error = LedgerConfirmationTimeout("release not confirmed.", tx_hash=tx_hash)

        response = await api_client.post(
            escrow_url(submitted_project, "release"),
            json={"verification_code": override_code},
            headers=auth_headers(admin),
        )

        assert response.status_code == 504
        body = response.json()
        assert body["tx_hash"] == tx_hash
        assert body["request_id"]
        assert submitted_project.status == ProjectStatus.DRAFT_SUBMITTED.value
        assert store.all(Payment) == []


class TestDraftProofs:
    async def test_designer_anchors_proof(
        self,
        sent_email: MagicMock,
        api_client: AsyncClient,
        submitted_project: Project,
        designer: User,
    ) -> None:
        await api_client.post(
            "/api/v1/verification-codes",
            json={"purpose": "anchor_draft_proof"},
            headers=auth_headers(designer),
        )
        code = sent_email.call_args.args[1]

        response = await api_client.post(
            escrow_url(submitted_project, "proofs"),
            json={"verification_code": code, "action": "upload", "draft_hash": "c" * 64},
            headers=auth_headers(designer),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["project_id"] == str(submitted_project.id)
        assert body["tx_hash"].startswith("0x")


class TestPaymentsAndNotifications:
    async def test_client_pays_and_admin_is_notified(
        self,
        api_client: AsyncClient,
        store: InMemoryStore,
        submitted_project: Project,
        client_user: User,
        admin: User,
    ) -> None:
        response = await api_client.post(
            f"/api/v1/projects/{submitted_project.id}/payments",
            json={"purpose": "DEPOSIT", "method": "fpx"},
            headers=auth_headers(client_user),
        )
        assert response.status_code == 201
        assert response.json()["type"] == "DEPOSIT"

        response = await api_client.get(
            "/api/v1/notifications", params={"unread_only": True}, headers=auth_headers(admin)
        )
        [notification] = response.json()
        assert notification["title"] == "Deposit received"

        response = await api_client.post(
            "/api/v1/notifications/mark-read",
            json={"ids": [notification["id"]]},
            headers=auth_headers(admin),
        )
        assert response.json() == {"updated": 1}
        assert all(n.read_at is not None for n in store.all(Notification))


class TestJobs:
    async def test_trigger_indexer(
        self,
        override_code: str,
        api_client: AsyncClient,
        submitted_project: Project,
        admin: User,
    ) -> None:
        response = await api_client.post(
            "/api/v1/jobs/index-chain-events",
            json={"verification_code": override_code},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        assert response.json() == {"indexed": 0, "failed": 0}

    async def test_trigger_review_timeouts(
        self,
        override_code: str,
        api_client: AsyncClient,
        store: InMemoryStore,
        admin: User,
        client_user: User,
    ) -> None:
        store.put(ProjectFactory.overdue(admin_id=admin.id, client_id=client_user.id))

        response = await api_client.post(
            "/api/v1/jobs/review-timeouts",
            json={"verification_code": override_code},
            headers=auth_headers(admin),
        )

        assert response.status_code == 200
        assert response.json() == {"processed": 1, "skipped": 0}
