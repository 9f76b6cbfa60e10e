"""Model exports.

Import from here: `from src.escrow.models import Project, User`
"""

from src.escrow.models.enums import (
    TERMINAL_STATUSES,
    PaymentStatus,
    PaymentType,
    ProjectStatus,
    TimelineEventType,
    UserRole,
)
from src.escrow.models.project import (
    ChainEvent,
    Notification,
    Payment,
    Project,
    TimelineEntry,
)
from src.escrow.models.user import User
from src.escrow.models.verification import MfaCode

__all__ = [
    # Enums
    "TERMINAL_STATUSES",
    "PaymentStatus",
    "PaymentType",
    "ProjectStatus",
    "TimelineEventType",
    "UserRole",
    # Models
    "ChainEvent",
    "MfaCode",
    "Notification",
    "Payment",
    "Project",
    "TimelineEntry",
    "User",
]
