"""Project escrow models - project, payments, timeline, ledger events, notifications."""

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import Column, Index, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel

from src.escrow.models.base import utc_now
from src.escrow.models.enums import PaymentStatus, ProjectStatus


class Project(SQLModel, table=True):
    """The unit of escrow.

    escrow_address is set once at deployment and never changes afterwards.
    """

    __tablename__ = "projects"
    __table_args__ = (Index("ix_projects_status_review_due", "status", "review_due_at"),)

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    title: str = Field(max_length=200)
    status: str = Field(default=ProjectStatus.DRAFT.value, max_length=30)
    escrow_address: str | None = Field(default=None, max_length=42)
    escrow_paused: bool = Field(default=False)
    quoted_amount: Decimal = Field(default=Decimal("0"), max_digits=20, decimal_places=6)
    deposit_amount: Decimal = Field(default=Decimal("0"), max_digits=20, decimal_places=6)
    balance_amount: Decimal = Field(default=Decimal("0"), max_digits=20, decimal_places=6)
    review_due_at: datetime | None = Field(default=None)
    admin_id: UUID | None = Field(default=None, foreign_key="users.id", index=True)
    client_id: UUID = Field(foreign_key="users.id", index=True)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class Payment(SQLModel, table=True):
    """Off-chain record of a monetary movement tied to a project."""

    __tablename__ = "payments"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    project_id: UUID = Field(foreign_key="projects.id", index=True)
    type: str = Field(max_length=20)  # PaymentType value
    status: str = Field(default=PaymentStatus.COMPLETED.value, max_length=20)
    amount: Decimal = Field(max_digits=20, decimal_places=6)
    tx_hash: str | None = Field(default=None, max_length=66)
    # Split percentages, provider reference, payment mode
    details: dict[str, Any] | None = Field(
        default=None,
        sa_column=Column("metadata", JSONB, nullable=True),
    )
    created_at: datetime = Field(default_factory=utc_now)


class TimelineEntry(SQLModel, table=True):
    """Append-only audit record."""

    __tablename__ = "timeline_entries"
    __table_args__ = (Index("ix_timeline_entries_project_created", "project_id", "created_at"),)

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    project_id: UUID = Field(foreign_key="projects.id")
    actor_id: UUID | None = Field(default=None, foreign_key="users.id")
    event_type: str = Field(max_length=50)  # TimelineEventType value
    message: str = Field(max_length=1000)
    tx_hash: str | None = Field(default=None, max_length=66)
    created_at: datetime = Field(default_factory=utc_now)


class ChainEvent(SQLModel, table=True):
    """Observed ledger event. Never updated or deleted."""

    __tablename__ = "chain_events"
    __table_args__ = (
        UniqueConstraint(
            "project_id", "tx_hash", "event_name", name="uq_chain_events_project_tx_event"
        ),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    project_id: UUID = Field(foreign_key="projects.id", index=True)
    event_name: str = Field(max_length=100)
    tx_hash: str = Field(max_length=66)
    block_number: int | None = Field(default=None)
    payload: Any | None = Field(default=None, sa_column=Column(JSONB, nullable=True))
    created_at: datetime = Field(default_factory=utc_now)


class Notification(SQLModel, table=True):
    """In-app notification for a single user."""

    __tablename__ = "notifications"
    __table_args__ = (Index("ix_notifications_user_created", "user_id", "created_at"),)

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(foreign_key="users.id")
    title: str = Field(max_length=200)
    message: str = Field(max_length=1000)
    read_at: datetime | None = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now)
