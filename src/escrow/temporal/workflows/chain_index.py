"""Chain Index Workflow.

Copies each escrow's ledger events into the local event log. Run on a
schedule; overlapping runs are harmless.
"""

from datetime import timedelta

from temporalio import workflow
from temporalio.common import RetryPolicy

with workflow.unsafe.imports_passed_through():
    from src.escrow.temporal.activities import IndexChainEventsOutput, index_chain_events


@workflow.defn
class ChainIndexWorkflow:
    @workflow.run
    async def run(self) -> IndexChainEventsOutput:
        workflow.logger.info("Starting chain event indexing")

        result = await workflow.execute_activity(
            index_chain_events,
            start_to_close_timeout=timedelta(minutes=10),
            retry_policy=RetryPolicy(
                maximum_attempts=3,
                initial_interval=timedelta(seconds=5),
            ),
        )

        workflow.logger.info(
            f"Chain indexing complete: {result.indexed} events, {result.failed} failures"
        )
        return result
