"""Repository layer - data access abstraction."""

from src.escrow.repositories.base import BaseRepository
from src.escrow.repositories.chain_event import ChainEventRepository
from src.escrow.repositories.notification import NotificationRepository
from src.escrow.repositories.payment import PaymentRepository
from src.escrow.repositories.project import ProjectRepository, Transition
from src.escrow.repositories.user import UserRepository
from src.escrow.repositories.verification_code import VerificationCodeRepository

__all__ = [
    "BaseRepository",
    "ChainEventRepository",
    "NotificationRepository",
    "PaymentRepository",
    "ProjectRepository",
    "Transition",
    "UserRepository",
    "VerificationCodeRepository",
]
