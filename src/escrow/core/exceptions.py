"""Error taxonomy and exception handlers with request_id in responses.

Categories:
- Validation: malformed input, rejected before any I/O.
- Authorization: missing/incorrect verification code or signing key.
- Ledger: submission, confirmation or contract-level failure. No local
  state is written when one of these is raised, so the action can be retried.
- Rate limit: the caller exceeded a fixed-window budget.
"""

from asgi_correlation_id import correlation_id
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.escrow.core.logging import get_logger

logger = get_logger(__name__)


class EscrowError(Exception):
    """Base class for errors surfaced to callers."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(EscrowError):
    """Malformed hash, code, percentage or payment method."""

    status_code = 400


class NotFoundError(EscrowError):
    status_code = 404


class ConflictError(EscrowError):
    """The project is in a state that forbids the action (paused, terminal, ...)."""

    status_code = 409


class AuthorizationError(EscrowError):
    """Generic denial. Never says which check failed for verification codes."""

    status_code = 403


class ConfigurationError(EscrowError):
    """A required signing key or contract artifact is not configured."""

    status_code = 500


class RateLimitExceeded(EscrowError):
    status_code = 429

    def __init__(self, message: str = "Too many requests. Please slow down.", retry_after: int = 1):
        super().__init__(message)
        self.retry_after = retry_after


class LedgerError(EscrowError):
    """Submission or confirmation of a ledger transaction failed."""

    status_code = 502

    def __init__(self, message: str, tx_hash: str | None = None):
        super().__init__(message)
        self.tx_hash = tx_hash


class LedgerRevertedError(LedgerError):
    """The transaction was mined but the contract reverted it."""


class LedgerConfirmationTimeout(LedgerError):
    """Transaction submitted, confirmation not observed in time.

    Outcome is unknown: the transaction may still be mined later. Callers
    must treat this as retryable and never as success.
    """

    status_code = 504


def setup_exception_handlers(app: FastAPI) -> None:
    """Configure exception handlers that include request_id in responses."""

    @app.exception_handler(StarletteHTTPException)
    async def starlette_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "request_id": correlation_id.get(),
            },
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "request_id": correlation_id.get(),
            },
        )

    @app.exception_handler(EscrowError)
    async def escrow_exception_handler(request: Request, exc: EscrowError) -> JSONResponse:
        request_id = correlation_id.get()
        content: dict[str, str | None] = {"detail": exc.message, "request_id": request_id}
        headers: dict[str, str] = {}

        if isinstance(exc, LedgerError):
            logger.warning(
                "Ledger operation failed",
                error=exc.message,
                tx_hash=exc.tx_hash,
                path=request.url.path,
            )
            content["tx_hash"] = exc.tx_hash
        elif isinstance(exc, ConfigurationError):
            logger.error("Configuration error", error=exc.message, path=request.url.path)
        elif isinstance(exc, RateLimitExceeded):
            headers["Retry-After"] = str(exc.retry_after)

        return JSONResponse(status_code=exc.status_code, content=content, headers=headers)

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        request_id = correlation_id.get()
        logger.exception(
            "Unhandled exception",
            exc_info=exc,
            request_id=request_id,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "request_id": request_id,
            },
        )
