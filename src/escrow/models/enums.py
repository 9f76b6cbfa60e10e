"""Shared enums for models."""

from enum import Enum


class UserRole(str, Enum):
    """Portal role of a user."""

    ADMIN = "ADMIN"
    CLIENT = "CLIENT"
    DESIGNER = "DESIGNER"


class ProjectStatus(str, Enum):
    """Escrow lifecycle status.

    Only DRAFT_SUBMITTED -> {RELEASED, REFUNDED, SPLIT} is driven here.
    """

    DRAFT = "DRAFT"
    DRAFT_SUBMITTED = "DRAFT_SUBMITTED"
    RELEASED = "RELEASED"
    REFUNDED = "REFUNDED"
    SPLIT = "SPLIT"


TERMINAL_STATUSES = frozenset(
    {ProjectStatus.RELEASED.value, ProjectStatus.REFUNDED.value, ProjectStatus.SPLIT.value}
)


class PaymentType(str, Enum):
    DEPOSIT = "DEPOSIT"
    BALANCE = "BALANCE"
    RELEASE = "RELEASE"
    REFUND = "REFUND"
    SPLIT = "SPLIT"


class PaymentStatus(str, Enum):
    COMPLETED = "COMPLETED"


class TimelineEventType(str, Enum):
    """Audit trail entries written alongside state-changing actions."""

    ESCROW_DEPLOYED = "ESCROW_DEPLOYED"
    DEPOSIT_FUNDED = "DEPOSIT_FUNDED"
    BALANCE_FUNDED = "BALANCE_FUNDED"
    FUNDS_RELEASED = "FUNDS_RELEASED"
    FUNDS_REFUNDED = "FUNDS_REFUNDED"
    FUNDS_SPLIT = "FUNDS_SPLIT"
    REVIEW_EXPIRED_RELEASED = "REVIEW_EXPIRED_RELEASED"
    ESCROW_PAUSED = "ESCROW_PAUSED"
    ESCROW_RESUMED = "ESCROW_RESUMED"
    DRAFT_PROOF_ANCHORED = "DRAFT_PROOF_ANCHORED"
