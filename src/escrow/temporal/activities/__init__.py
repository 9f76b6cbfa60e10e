"""
Temporal Activities - Fine-grained, idempotent operations.

External calls (database, ledger RPC) happen here, never in workflows.
"""

from src.escrow.temporal.activities.escrow_jobs import (
    IndexChainEventsOutput,
    ReviewTimeoutOutput,
    cleanup_verification_codes,
    index_chain_events,
    process_review_timeouts,
)

__all__ = [
    # Dataclasses
    "IndexChainEventsOutput",
    "ReviewTimeoutOutput",
    # Activities
    "cleanup_verification_codes",
    "index_chain_events",
    "process_review_timeouts",
]
