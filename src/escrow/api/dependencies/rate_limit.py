"""Per-user fixed-window limits for privileged endpoints."""

import math
from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends, Request

from src.escrow.api.dependencies.auth import CurrentUser
from src.escrow.core.config import Settings, get_settings
from src.escrow.core.exceptions import RateLimitExceeded
from src.escrow.core.logging import get_logger
from src.escrow.core.rate_limit import check_rate_limit, get_client_ip

logger = get_logger(__name__)


async def enforce_rate_limit(key: str, limit: int, window_ms: int) -> None:
    """Raise RateLimitExceeded when the key is over its budget."""
    if not await check_rate_limit(key, limit, window_ms):
        logger.warning("Rate limit exceeded", key=key, limit=limit, window_ms=window_ms)
        raise RateLimitExceeded(retry_after=max(1, math.ceil(window_ms / 1000)))


def _limit(
    scope: str,
    budget: Callable[[Settings], tuple[int, int]],
    per_ip: bool = True,
) -> Callable[[Request, CurrentUser], Awaitable[None]]:
    async def dependency(request: Request, user: CurrentUser) -> None:
        settings = get_settings()
        if settings.app_env == "testing":
            return
        limit, window_ms = budget(settings)
        key = f"{scope}:{user.id}"
        if per_ip:
            key = f"{key}:{get_client_ip(request)}"
        await enforce_rate_limit(key, limit, window_ms)

    return dependency


verification_code_limit = _limit(
    "verification-code",
    lambda s: (s.verification_code_rate_limit, s.verification_code_rate_window_ms),
)
escrow_action_limit = _limit(
    "escrow-action",
    lambda s: (s.escrow_action_rate_limit, s.escrow_action_rate_window_ms),
)
job_trigger_limit = _limit(
    "jobs",
    lambda s: (s.job_trigger_rate_limit, s.job_trigger_rate_window_ms),
    per_ip=False,
)
notification_limit = _limit("notifications", lambda s: (60, 60_000))

VerificationCodeRateLimit = Annotated[None, Depends(verification_code_limit)]
EscrowActionRateLimit = Annotated[None, Depends(escrow_action_limit)]
JobTriggerRateLimit = Annotated[None, Depends(job_trigger_limit)]
NotificationRateLimit = Annotated[None, Depends(notification_limit)]
