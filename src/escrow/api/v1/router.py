from fastapi import APIRouter

from src.escrow.api.v1 import escrow, jobs, notifications, payments, verification

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(verification.router)
api_router.include_router(escrow.router)
api_router.include_router(payments.router)
api_router.include_router(jobs.router)
api_router.include_router(notifications.router)
