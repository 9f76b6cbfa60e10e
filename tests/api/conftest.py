"""HTTP fixtures: the real app with services wired to the in-memory fakes."""

from collections.abc import AsyncGenerator
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from src.escrow.api.dependencies import (
    get_funding_service,
    get_indexer_service,
    get_lifecycle_service,
    get_notification_service,
    get_review_timeout_service,
    get_user_repository,
    get_verification_service,
)
from src.escrow.main import create_app


@pytest.fixture
def sent_email(monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    """Capture verification e-mails instead of sending them."""
    send = MagicMock(return_value=True)
    monkeypatch.setattr(
        "src.escrow.services.verification_code_service.send_verification_code_email", send
    )
    return send


@pytest.fixture
def app(
    user_repo,
    lifecycle,
    funding,
    indexer,
    review_timeouts,
    verification,
    notifications,
) -> FastAPI:
    app = create_app()
    app.dependency_overrides[get_user_repository] = lambda: user_repo
    app.dependency_overrides[get_lifecycle_service] = lambda: lifecycle
    app.dependency_overrides[get_funding_service] = lambda: funding
    app.dependency_overrides[get_indexer_service] = lambda: indexer
    app.dependency_overrides[get_review_timeout_service] = lambda: review_timeouts
    app.dependency_overrides[get_verification_service] = lambda: verification
    app.dependency_overrides[get_notification_service] = lambda: notifications
    return app


@pytest.fixture
async def api_client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

