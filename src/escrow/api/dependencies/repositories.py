"""Repository factory dependencies."""

from typing import Annotated

from fastapi import Depends

from src.escrow.api.dependencies.db import DBSession
from src.escrow.repositories import (
    ChainEventRepository,
    NotificationRepository,
    PaymentRepository,
    ProjectRepository,
    UserRepository,
    VerificationCodeRepository,
)


def get_user_repository(session: DBSession) -> UserRepository:
    return UserRepository(session)


def get_project_repository(session: DBSession) -> ProjectRepository:
    return ProjectRepository(session)


def get_payment_repository(session: DBSession) -> PaymentRepository:
    return PaymentRepository(session)


def get_chain_event_repository(session: DBSession) -> ChainEventRepository:
    return ChainEventRepository(session)


def get_notification_repository(session: DBSession) -> NotificationRepository:
    return NotificationRepository(session)


def get_verification_code_repository(session: DBSession) -> VerificationCodeRepository:
    return VerificationCodeRepository(session)


UserRepo = Annotated[UserRepository, Depends(get_user_repository)]
ProjectRepo = Annotated[ProjectRepository, Depends(get_project_repository)]
PaymentRepo = Annotated[PaymentRepository, Depends(get_payment_repository)]
ChainEventRepo = Annotated[ChainEventRepository, Depends(get_chain_event_repository)]
NotificationRepo = Annotated[NotificationRepository, Depends(get_notification_repository)]
VerificationCodeRepo = Annotated[
    VerificationCodeRepository, Depends(get_verification_code_repository)
]
