"""
Verification Code Cleanup Workflow.

Deletes spent and expired verification codes. Designed to run daily via a
Temporal schedule.
"""

from datetime import timedelta

from temporalio import workflow
from temporalio.common import RetryPolicy

with workflow.unsafe.imports_passed_through():
    from src.escrow.temporal.activities import cleanup_verification_codes


@workflow.defn
class VerificationCodeCleanupWorkflow:
    @workflow.run
    async def run(self, retention_days: int = 7) -> int:
        """
        Args:
            retention_days: Days to keep expired or used codes

        Returns:
            Number of codes deleted
        """
        workflow.logger.info(f"Starting verification code cleanup (retention: {retention_days} days)")

        count = await workflow.execute_activity(
            cleanup_verification_codes,
            retention_days,
            start_to_close_timeout=timedelta(minutes=5),
            retry_policy=RetryPolicy(
                maximum_attempts=3,
                initial_interval=timedelta(seconds=2),
            ),
        )

        workflow.logger.info(f"Verification code cleanup complete: {count} deleted")
        return count
