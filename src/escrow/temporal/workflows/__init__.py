"""Temporal Workflows - Re-exports for worker registration."""

from src.escrow.temporal.workflows.chain_index import ChainIndexWorkflow
from src.escrow.temporal.workflows.review_timeout import ReviewTimeoutWorkflow
from src.escrow.temporal.workflows.verification_cleanup import VerificationCodeCleanupWorkflow

__all__ = [
    "ChainIndexWorkflow",
    "ReviewTimeoutWorkflow",
    "VerificationCodeCleanupWorkflow",
]
