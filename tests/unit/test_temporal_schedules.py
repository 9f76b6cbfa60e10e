"""Tests for scheduled job registration."""

from unittest.mock import AsyncMock

import pytest
from temporalio.client import ScheduleAlreadyRunningError, ScheduleOverlapPolicy

from src.escrow.core.config import get_settings
from src.escrow.temporal.worker import register_schedules, scheduled_jobs
from src.escrow.temporal.workflows import (
    ChainIndexWorkflow,
    ReviewTimeoutWorkflow,
    VerificationCodeCleanupWorkflow,
)

pytestmark = pytest.mark.unit


@pytest.fixture
def settings():
    return get_settings().model_copy(
        update={
            "chain_index_schedule": "*/5 * * * *",
            "review_timeout_schedule": "*/15 * * * *",
            "verification_cleanup_schedule": "0 3 * * *",
            "verification_cleanup_retention_days": 14,
            "temporal_task_queue": "escrow-test",
        }
    )


class TestScheduledJobs:
    def test_all_jobs_listed(self, settings):
        jobs = {job.schedule_id: job for job in scheduled_jobs(settings)}

        assert set(jobs) == {
            "escrow-chain-index",
            "escrow-review-timeout",
            "escrow-verification-cleanup",
        }
        assert jobs["escrow-chain-index"].workflow == ChainIndexWorkflow.run
        assert jobs["escrow-review-timeout"].workflow == ReviewTimeoutWorkflow.run
        assert jobs["escrow-verification-cleanup"].workflow == VerificationCodeCleanupWorkflow.run
        assert jobs["escrow-verification-cleanup"].args == (14,)


class TestRegisterSchedules:
    async def test_creates_each_schedule(self, settings):
        client = AsyncMock()

        await register_schedules(client, settings)

        assert client.create_schedule.await_count == 3
        ids = [call.args[0] for call in client.create_schedule.await_args_list]
        assert ids == ["escrow-chain-index", "escrow-review-timeout", "escrow-verification-cleanup"]

        schedule = client.create_schedule.await_args_list[0].args[1]
        assert schedule.spec.cron_expressions == ["*/5 * * * *"]
        assert schedule.policy.overlap == ScheduleOverlapPolicy.SKIP
        assert schedule.action.task_queue == "escrow-test"

    async def test_disabled_schedule_skipped(self, settings):
        settings = settings.model_copy(update={"review_timeout_schedule": None})
        client = AsyncMock()

        await register_schedules(client, settings)

        ids = [call.args[0] for call in client.create_schedule.await_args_list]
        assert "escrow-review-timeout" not in ids
        assert len(ids) == 2

    async def test_existing_schedule_tolerated(self, settings):
        client = AsyncMock()
        client.create_schedule.side_effect = [ScheduleAlreadyRunningError(), None, None]

        await register_schedules(client, settings)

        assert client.create_schedule.await_count == 3
