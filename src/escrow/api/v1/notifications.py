"""In-app notification endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query

from src.escrow.api.dependencies import CurrentUser, NotificationRateLimit, NotificationServiceDep
from src.escrow.schemas import MarkReadRequest, MarkReadResponse, NotificationRead

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get(
    "",
    response_model=list[NotificationRead],
    summary="List notifications",
)
async def list_notifications(
    user: CurrentUser,
    _limit: NotificationRateLimit,
    notifications: NotificationServiceDep,
    unread_only: Annotated[bool, Query(description="Only unread notifications")] = False,
) -> list[NotificationRead]:
    items = await notifications.list_for_user(user.id, unread_only=unread_only)
    return [NotificationRead.model_validate(n) for n in items]


@router.post(
    "/mark-read",
    response_model=MarkReadResponse,
    summary="Mark notifications read",
)
async def mark_notifications_read(
    data: MarkReadRequest,
    user: CurrentUser,
    _limit: NotificationRateLimit,
    notifications: NotificationServiceDep,
) -> MarkReadResponse:
    updated = await notifications.mark_read(user.id, data.ids)
    return MarkReadResponse(updated=updated)
