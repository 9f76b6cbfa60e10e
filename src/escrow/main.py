import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from asgi_correlation_id import CorrelationIdMiddleware, correlation_id
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.middleware.base import RequestResponseEndpoint

from src.escrow.api.v1.router import api_router
from src.escrow.chain import get_ledger_client
from src.escrow.core.background import background_tasks
from src.escrow.core.config import get_settings
from src.escrow.core.db import dispose_engine, get_session
from src.escrow.core.exceptions import setup_exception_handlers
from src.escrow.core.logging import (
    bind_request_context,
    clear_request_context,
    get_logger,
    setup_logging,
)
from src.escrow.core.rate_limit import global_rate_limit_middleware
from src.escrow.core.redis import close_redis, get_redis

logger = get_logger(__name__)

# Health check caching
_health_cache: dict[str, Any] | None = None
_health_cache_time: float = 0
HEALTH_CACHE_TTL = 10  # seconds


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan - startup and shutdown."""
    settings = get_settings()
    setup_logging(settings.debug)
    logger.info(f"Starting {settings.app_name}")

    yield

    grace_period = settings.shutdown_grace_period
    logger.info(
        f"Shutdown initiated, waiting for {background_tasks.pending_count} background tasks..."
    )
    drained = await background_tasks.drain(timeout=grace_period)
    if not drained:
        logger.warning(f"Shutdown timeout after {grace_period}s - background tasks cancelled")

    logger.info("Closing connections...")
    await close_redis()
    await dispose_engine()
    logger.info("Shutdown complete")


OPENAPI_TAGS = [
    {"name": "verification", "description": "One-time codes for privileged actions"},
    {"name": "escrow", "description": "Escrow deployment and settlement"},
    {"name": "payments", "description": "Client deposit and balance payments"},
    {"name": "jobs", "description": "On-demand runs of scheduled jobs"},
    {"name": "notifications", "description": "In-app notifications"},
]


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Milestone escrow settlement API backed by an on-chain escrow contract",
        version="0.1.0",
        openapi_tags=OPENAPI_TAGS,
        lifespan=lifespan,
        openapi_url="/openapi.json" if settings.enable_openapi else None,
    )

    setup_exception_handlers(app)

    # Per-IP budget for every request
    app.middleware("http")(global_rate_limit_middleware)

    # Add logging context middleware
    @app.middleware("http")
    async def logging_context_middleware(
        request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Bind request_id to log context for all requests."""
        clear_request_context()
        bind_request_context(correlation_id.get())
        try:
            response = await call_next(request)
            return response
        finally:
            clear_request_context()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    )

    # Add correlation ID middleware last so it wraps everything
    app.add_middleware(CorrelationIdMiddleware)

    app.include_router(api_router)

    @app.get("/health")
    async def health() -> JSONResponse:
        """Health check with dependency validation and caching."""
        global _health_cache, _health_cache_time

        now = time.time()

        # Return cached result if still valid
        if _health_cache and (now - _health_cache_time) < HEALTH_CACHE_TTL:
            cached_response = _health_cache.copy()
            cached_response["cached"] = True
            cached_response["cache_age_seconds"] = round(now - _health_cache_time, 1)
            status_code = 200 if cached_response["status"] == "healthy" else 503
            return JSONResponse(content=cached_response, status_code=status_code)

        health_status: dict[str, Any] = {
            "status": "healthy",
            "database": "unknown",
            "ledger": "unknown",
            "redis": "not_configured",
            "cached": False,
            "timestamp": now,
        }

        # Check database
        try:
            async with get_session() as session:
                await session.execute(text("SELECT 1"))
            health_status["database"] = "healthy"
        except Exception as e:
            health_status["database"] = f"unhealthy: {str(e)}"
            health_status["status"] = "unhealthy"

        # Check ledger RPC (escrow actions fail without it, reads still work)
        try:
            health_status["block_number"] = await get_ledger_client().get_block_number()
            health_status["ledger"] = "healthy"
        except Exception as e:
            health_status["ledger"] = f"unhealthy: {str(e)}"
            if health_status["status"] == "healthy":
                health_status["status"] = "degraded"

        # Check Redis (optional - don't fail if unavailable)
        redis = await get_redis()
        if redis:
            try:
                await redis.ping()  # type: ignore[misc]
                health_status["redis"] = "healthy"
            except Exception as e:
                health_status["redis"] = f"unhealthy: {str(e)}"
                # Redis being down is "degraded", not fully unhealthy
                if health_status["status"] == "healthy":
                    health_status["status"] = "degraded"

        _health_cache = health_status
        _health_cache_time = now

        status_code = 200 if health_status["status"] == "healthy" else 503
        return JSONResponse(content=health_status, status_code=status_code)

    return app


app = create_app()
