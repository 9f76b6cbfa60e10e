"""Tests for bearer-token authentication and role gates."""

from datetime import timedelta

import pytest
from httpx import AsyncClient

from src.escrow.core.security import create_access_token
from src.escrow.models import User
from tests.helpers import auth_headers
from tests.factories import UserFactory
from tests.fakes import InMemoryStore

pytestmark = pytest.mark.unit


async def test_missing_header_rejected(api_client: AsyncClient) -> None:
    response = await api_client.get("/api/v1/notifications")

    assert response.status_code == 401
    assert response.json()["detail"] == "Missing or invalid authorization header"


async def test_garbage_token_rejected(api_client: AsyncClient) -> None:
    response = await api_client.get(
        "/api/v1/notifications", headers={"Authorization": "Bearer not-a-jwt"}
    )

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid or expired token"


async def test_expired_token_rejected(api_client: AsyncClient, client_user: User) -> None:
    token = create_access_token(client_user.id, client_user.role, timedelta(seconds=-1))

    response = await api_client.get(
        "/api/v1/notifications", headers={"Authorization": f"Bearer {token}"}
    )

    assert response.status_code == 401


async def test_inactive_user_rejected(api_client: AsyncClient, store: InMemoryStore) -> None:
    user = store.put(UserFactory.inactive())

    response = await api_client.get("/api/v1/notifications", headers=auth_headers(user))

    assert response.status_code == 401
    assert response.json()["detail"] == "User not found or inactive"


async def test_valid_token_accepted(api_client: AsyncClient, client_user: User) -> None:
    response = await api_client.get("/api/v1/notifications", headers=auth_headers(client_user))

    assert response.status_code == 200
    assert response.json() == []


async def test_client_cannot_request_codes(api_client: AsyncClient, client_user: User) -> None:
    response = await api_client.post(
        "/api/v1/verification-codes", json={}, headers=auth_headers(client_user)
    )

    assert response.status_code == 403
    assert response.json()["detail"] == "Admin or designer access required."
