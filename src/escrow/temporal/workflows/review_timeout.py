"""Review Timeout Workflow.

Releases funds for projects whose review window has elapsed.
"""

from datetime import timedelta

from temporalio import workflow
from temporalio.common import RetryPolicy

with workflow.unsafe.imports_passed_through():
    from src.escrow.temporal.activities import ReviewTimeoutOutput, process_review_timeouts


@workflow.defn
class ReviewTimeoutWorkflow:
    """
    Automatic release of overdue reviews.

    The activity is not retried: per-project failures are already counted as
    skipped and those projects are picked up again by the next scheduled run.
    """

    @workflow.run
    async def run(self) -> ReviewTimeoutOutput:
        workflow.logger.info("Starting review timeout processing")

        result = await workflow.execute_activity(
            process_review_timeouts,
            start_to_close_timeout=timedelta(minutes=30),
            retry_policy=RetryPolicy(maximum_attempts=1),
        )

        workflow.logger.info(
            f"Review timeouts complete: {result.processed} released, {result.skipped} skipped"
        )
        return result
