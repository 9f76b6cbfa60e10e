"""One-time verification codes for privileged actions."""

import asyncio
import hmac
import re
from datetime import datetime, timedelta
from enum import Enum
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.escrow.core.config import get_settings
from src.escrow.core.exceptions import AuthorizationError, ValidationError
from src.escrow.core.logging import get_logger
from src.escrow.core.notifications import send_verification_code_email
from src.escrow.core.security import generate_verification_code, hash_verification_code
from src.escrow.models import MfaCode, User, UserRole
from src.escrow.models.base import utc_now
from src.escrow.repositories import VerificationCodeRepository

logger = get_logger(__name__)

_CODE_PATTERN = re.compile(r"^\d{6}$")
_SEPARATORS = re.compile(r"[\s\-]+")

INVALID_CODE_MESSAGE = "Invalid or expired verification code."


class VerificationPurpose(str, Enum):
    """Scopes a code to one kind of action."""

    DEPLOY_ESCROW = "deploy_escrow"
    RELEASE_FUNDS = "release_funds"
    REFUND_FUNDS = "refund_funds"
    SPLIT_FUNDS = "split_funds"
    PAUSE_ESCROW = "pause_escrow"
    RESUME_ESCROW = "resume_escrow"
    ANCHOR_DRAFT_PROOF = "anchor_draft_proof"
    REVIEW_TIMEOUT = "review_timeout"
    INDEX_CHAIN_EVENTS = "index_chain_events"


def normalize_code(raw: str | None) -> str:
    """Strip whitespace and hyphens from a submitted code.

    Raises:
        ValidationError: nothing left after stripping
    """
    normalized = _SEPARATORS.sub("", raw or "")
    if not normalized:
        raise ValidationError("Verification code is required.")
    return normalized


class VerificationCodeService:
    """Issues and consumes 6-digit codes.

    Only a keyed digest of each code is stored. Wrong, expired and already
    used codes all fail the same way so callers cannot tell them apart.
    """

    def __init__(self, code_repo: VerificationCodeRepository, session: AsyncSession):
        self.code_repo = code_repo
        self.session = session

    async def issue(self, user: User, purpose: str | None = None) -> datetime:
        """Create a code, store its digest and e-mail the plaintext. Returns expiry."""
        settings = get_settings()
        code = generate_verification_code()
        expires_at = utc_now() + timedelta(minutes=settings.mfa_code_ttl_minutes)

        self.code_repo.add(
            MfaCode(
                user_id=user.id,
                code_hash=hash_verification_code(user.id, code),
                purpose=purpose,
                expires_at=expires_at,
            )
        )
        await self.session.commit()

        sent = await asyncio.to_thread(
            send_verification_code_email,
            user.email,
            code,
            settings.mfa_code_ttl_minutes,
            purpose,
        )
        if not sent:
            logger.warning("Verification code e-mail not delivered", user_id=str(user.id))

        logger.info(
            "Verification code issued",
            user_id=str(user.id),
            purpose=purpose,
            expires_at=expires_at.isoformat(),
        )
        return expires_at

    async def verify(self, user_id: UUID, code: str | None, purpose: str | None = None) -> bool:
        """Consume the newest matching code. True at most once per code."""
        normalized = normalize_code(code)
        if not _CODE_PATTERN.match(normalized):
            return False

        now = utc_now()
        record = await self.code_repo.find_latest_valid(
            user_id, hash_verification_code(user_id, normalized), purpose, now
        )
        if record is None:
            return False

        consumed = await self.code_repo.mark_used(record.id, now)
        await self.session.commit()
        return consumed

    async def assert_admin_verification(
        self, user: User, code: str | None, purpose: str | None = None
    ) -> None:
        """Gate a privileged action on a verification code.

        The operator-configured override code is accepted for admins without a
        lookup. Every such use is logged as a warning for audit.

        Raises:
            ValidationError: no code supplied
            AuthorizationError: code rejected
        """
        normalized = normalize_code(code)
        override = _SEPARATORS.sub("", get_settings().admin_mfa_code or "")
        if (
            override
            and user.role == UserRole.ADMIN.value
            and hmac.compare_digest(normalized.encode(), override.encode())
        ):
            logger.warning(
                "Static admin verification code used",
                user_id=str(user.id),
                purpose=purpose,
            )
            return

        if not await self.verify(user.id, normalized, purpose):
            logger.info("Verification code rejected", user_id=str(user.id), purpose=purpose)
            raise AuthorizationError(INVALID_CODE_MESSAGE)

    async def cleanup_expired(self, retention_days: int) -> int:
        deleted = await self.code_repo.cleanup_expired(retention_days)
        logger.info("Verification codes cleaned up", deleted=deleted)
        return deleted
