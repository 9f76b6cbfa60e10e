"""Notification schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class NotificationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    message: str
    read_at: datetime | None
    created_at: datetime


class MarkReadRequest(BaseModel):
    ids: list[UUID] = Field(min_length=1, max_length=100)


class MarkReadResponse(BaseModel):
    updated: int
