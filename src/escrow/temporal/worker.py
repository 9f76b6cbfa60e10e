"""
Temporal Worker - Separate process from API.

Runs the scheduled escrow jobs and registers their cron schedules.

Run with:
    uv run python -m src.escrow.temporal.worker
"""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import uvicorn
from fastapi import FastAPI
from temporalio.client import (
    Client,
    Schedule,
    ScheduleActionStartWorkflow,
    ScheduleAlreadyRunningError,
    ScheduleOverlapPolicy,
    SchedulePolicy,
    ScheduleSpec,
)
from temporalio.worker import Worker

from src.escrow.core.background import background_tasks
from src.escrow.core.config import Settings, get_settings
from src.escrow.core.db import dispose_engine
from src.escrow.core.logging import get_logger, setup_logging
from src.escrow.temporal.activities import (
    cleanup_verification_codes,
    index_chain_events,
    process_review_timeouts,
)
from src.escrow.temporal.client import close_temporal_client, get_temporal_client
from src.escrow.temporal.workflows import (
    ChainIndexWorkflow,
    ReviewTimeoutWorkflow,
    VerificationCodeCleanupWorkflow,
)

logger = get_logger(__name__)

WORKER_HEALTH_PORT = 8001


@dataclass(frozen=True)
class ScheduledJob:
    schedule_id: str
    workflow: Any
    cron: str | None
    args: Sequence[Any] = ()


def scheduled_jobs(settings: Settings) -> list[ScheduledJob]:
    """Jobs to register. A job whose cron is unset is not scheduled."""
    return [
        ScheduledJob("escrow-chain-index", ChainIndexWorkflow.run, settings.chain_index_schedule),
        ScheduledJob(
            "escrow-review-timeout", ReviewTimeoutWorkflow.run, settings.review_timeout_schedule
        ),
        ScheduledJob(
            "escrow-verification-cleanup",
            VerificationCodeCleanupWorkflow.run,
            settings.verification_cleanup_schedule,
            (settings.verification_cleanup_retention_days,),
        ),
    ]


async def register_schedules(client: Client, settings: Settings) -> None:
    """Create cron schedules for the escrow jobs. Existing schedules are left as they are.

    Overlapping runs are skipped, so a slow indexing pass never stacks up.
    """
    for job in scheduled_jobs(settings):
        if not job.cron:
            logger.info(f"Schedule {job.schedule_id} disabled")
            continue
        try:
            await client.create_schedule(
                job.schedule_id,
                Schedule(
                    action=ScheduleActionStartWorkflow(
                        job.workflow,
                        args=list(job.args),
                        id=f"{job.schedule_id}-run",
                        task_queue=settings.temporal_task_queue,
                    ),
                    spec=ScheduleSpec(cron_expressions=[job.cron]),
                    policy=SchedulePolicy(overlap=ScheduleOverlapPolicy.SKIP),
                ),
            )
            logger.info(f"Registered schedule {job.schedule_id} ({job.cron})")
        except ScheduleAlreadyRunningError:
            logger.info(f"Schedule {job.schedule_id} already registered")


async def create_worker(client: Client, task_queue: str) -> Worker:
    """Create the jobs worker."""
    return Worker(
        client,
        task_queue=task_queue,
        workflows=[ChainIndexWorkflow, ReviewTimeoutWorkflow, VerificationCodeCleanupWorkflow],
        activities=[index_chain_events, process_review_timeouts, cleanup_verification_codes],
        max_concurrent_activities=10,
        max_concurrent_workflow_tasks=10,
    )


async def run_health_server(task_queue: str, port: int = WORKER_HEALTH_PORT) -> None:
    """Run a lightweight health server for K8s probes."""
    health_app = FastAPI(title="Temporal Worker Health")

    @health_app.get("/health")
    async def health() -> dict[str, str]:
        return {
            "status": "healthy",
            "service": "temporal-worker",
            "task_queue": task_queue,
        }

    @health_app.get("/ready")
    async def ready() -> dict[str, str]:
        return {"status": "ready"}

    config = uvicorn.Config(
        health_app,
        host="0.0.0.0",
        port=port,
        log_level="warning",
    )
    server = uvicorn.Server(config)
    logger.info(f"Starting health server on port {port}")
    await server.serve()


async def main() -> None:
    """Main entry point for the Temporal worker."""
    settings = get_settings()
    setup_logging(settings.debug)

    client = await get_temporal_client()
    await register_schedules(client, settings)

    worker = await create_worker(client, settings.temporal_task_queue)
    logger.info(f"Polling task queue: {settings.temporal_task_queue}")

    try:
        health_task = asyncio.create_task(run_health_server(settings.temporal_task_queue))
        await worker.run()
        # Wait for health server to finish (should never happen)
        await health_task
    finally:
        await background_tasks.drain(timeout=settings.shutdown_grace_period)
        await close_temporal_client()
        await dispose_engine()


if __name__ == "__main__":
    asyncio.run(main())
