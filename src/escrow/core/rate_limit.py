"""Fixed-window rate limiting with optional Redis backend.

Uses Redis for distributed counting when REDIS_URL is configured.
Falls back to process-local buckets when Redis is unavailable.

This is a coarse abuse guard for verification-code requests, escrow actions
and job triggers, not a security boundary. Buckets held in memory are lost on
restart.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from starlette.requests import Request
from starlette.responses import JSONResponse

from src.escrow.core.config import get_settings
from src.escrow.core.logging import get_logger
from src.escrow.core.redis import get_redis

logger = get_logger(__name__)

# Lua script for an atomic fixed-window counter.
# The first hit in a window sets the expiry, so the window starts there.
_REDIS_FIXED_WINDOW_SCRIPT = """
local key = KEYS[1]
local limit = tonumber(ARGV[1])
local window_ms = tonumber(ARGV[2])

local current = redis.call('INCR', key)
if current == 1 then
    redis.call('PEXPIRE', key, window_ms)
end

if current > limit then
    return 0
end
return 1
"""

# Cache for registered Lua script SHA
_script_sha: str | None = None


@dataclass
class RateBucket:
    count: int
    reset_at: int  # epoch milliseconds


class BucketStore(Protocol):
    """Keyed counter storage used by FixedWindowRateLimiter."""

    def get(self, key: str) -> RateBucket | None: ...

    def set(self, key: str, bucket: RateBucket) -> None: ...

    def prune(self, now: int) -> int: ...

    def clear(self) -> None: ...


class InMemoryBucketStore:
    """Process-local bucket storage."""

    def __init__(self) -> None:
        self._buckets: dict[str, RateBucket] = {}

    def get(self, key: str) -> RateBucket | None:
        return self._buckets.get(key)

    def set(self, key: str, bucket: RateBucket) -> None:
        self._buckets[key] = bucket

    def prune(self, now: int) -> int:
        """Drop buckets whose window has ended. Returns how many were removed."""
        expired = [key for key, bucket in self._buckets.items() if bucket.reset_at <= now]
        for key in expired:
            del self._buckets[key]
        return len(expired)

    def clear(self) -> None:
        self._buckets.clear()

    def __len__(self) -> int:
        return len(self._buckets)


def _now_ms() -> int:
    return int(time.time() * 1000)


class FixedWindowRateLimiter:
    """Fixed-window counter.

    On first use of a key, or once its window has elapsed, the bucket resets to
    count 1 and a fresh reset time. Otherwise the count increments until it
    reaches the limit, after which calls are rejected until the window ends.

    Expired buckets are pruned at most once per sweep interval so keys seen
    once (per-IP buckets) do not accumulate.

    Single-threaded access is assumed; no lock is taken.
    """

    def __init__(
        self,
        store: BucketStore | None = None,
        clock: Callable[[], int] = _now_ms,
        sweep_interval_ms: int = 60_000,
    ):
        self.store = store if store is not None else InMemoryBucketStore()
        self.clock = clock
        self.sweep_interval_ms = sweep_interval_ms
        self._next_sweep = 0

    def allow(self, key: str, limit: int = 60, window_ms: int = 60_000) -> bool:
        now = self.clock()
        if now >= self._next_sweep:
            self.store.prune(now)
            self._next_sweep = now + self.sweep_interval_ms

        existing = self.store.get(key)

        if existing is None or existing.reset_at <= now:
            self.store.set(key, RateBucket(count=1, reset_at=now + window_ms))
            return True

        if existing.count >= limit:
            return False

        self.store.set(key, RateBucket(count=existing.count + 1, reset_at=existing.reset_at))
        return True


# Process-wide fallback limiter
limiter = FixedWindowRateLimiter()


def get_client_ip(request: Request) -> str:
    """Resolve the client IP, honouring X-Forwarded-For only from trusted proxies."""
    settings = get_settings()
    peer = request.client.host if request.client else None

    if peer and peer in settings.trusted_proxy_ips:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip() or "unknown"
        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip.strip()

    return peer or "unknown"


async def _get_or_register_script(redis: object) -> str:
    """Get cached script SHA or register the Lua script with Redis."""
    global _script_sha
    if _script_sha is None:
        _script_sha = await redis.script_load(_REDIS_FIXED_WINDOW_SCRIPT)  # type: ignore[attr-defined]
    return _script_sha


async def _check_redis_rate_limit(
    redis: object,  # Redis client (typed as object to avoid import complexity)
    key: str,
    limit: int,
    window_ms: int,
) -> bool:
    """Check a fixed-window limit in Redis. Returns True if the call is allowed."""
    script_sha = await _get_or_register_script(redis)
    result = await redis.evalsha(  # type: ignore[attr-defined]
        script_sha,
        1,
        f"ratelimit:{key}",
        str(limit),
        str(window_ms),
    )
    return bool(int(result) == 1)


async def check_rate_limit(key: str, limit: int, window_ms: int) -> bool:
    """Check a fixed-window limit, using Redis if available.

    Falls back to the in-memory limiter if Redis is unavailable or fails.
    """
    redis = await get_redis()

    if redis:
        try:
            return await _check_redis_rate_limit(redis, key, limit, window_ms)
        except Exception as e:
            logger.warning(
                "Redis rate limit check failed, falling back to in-memory",
                error=str(e),
                key=key,
            )
            # Reset script SHA in case Redis restarted
            global _script_sha
            _script_sha = None

    return limiter.allow(key, limit, window_ms)


async def global_rate_limit_middleware(
    request: Request,
    call_next: object,  # type: ignore[type-arg]
) -> JSONResponse:
    """Per-IP fixed-window limit applied to every request.

    Exempt paths: /health and the OpenAPI docs.
    """
    settings = get_settings()
    if settings.app_env == "testing" or request.url.path in (
        "/health",
        "/docs",
        "/openapi.json",
        "/redoc",
    ):
        return await call_next(request)  # type: ignore[misc, operator, no-any-return]

    client_ip = get_client_ip(request)

    if not await check_rate_limit(f"global:{client_ip}", settings.global_rate_limit_per_minute, 60_000):
        logger.warning(
            "Global rate limit exceeded",
            client_ip=client_ip,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=429,
            content={
                "detail": "Too many requests. Please slow down.",
                "retry_after": 60,
            },
            headers={"Retry-After": "60"},
        )

    return await call_next(request)  # type: ignore[misc, operator, no-any-return]
