"""Tests for JobQueue-backed reminder jobs."""

from datetime import datetime, time, timedelta
from unittest.mock import AsyncMock, MagicMock
from zoneinfo import ZoneInfo

import pytest
from telegram.error import TelegramError

from hydranag.bot import jobs as jobs_module
from hydranag.bot.jobs import JobQueueScheduler, fire_reminder_job
from hydranag.db.models import PendingJob
from hydranag.engine.gate import ReminderGate
from hydranag.engine.planner import ReminderPayload, ScheduledJob
from hydranag.utils.constants import reminder_tag

UTC = ZoneInfo("UTC")


def nine_am_job(user_id: int) -> ScheduledJob:
    return ScheduledJob(
        id=9 * 3600,
        user_id=user_id,
        payload=ReminderPayload(dose_ml=200, scheduled_time=time(9, 0)),
        delay=timedelta(hours=1),
    )


@pytest.mark.asyncio
async def test_submit_queues_and_records(repo):
    """Test a submitted job is queued by tag and persisted."""
    user = await repo.create_user(1)
    job_queue = MagicMock()
    scheduler = JobQueueScheduler(job_queue, repo)
    tag = reminder_tag(user.id)

    handle = await scheduler.submit(nine_am_job(user.id), tag)

    pending = await repo.get_pending_jobs(tag)
    assert len(pending) == 1
    assert pending[0].id == handle
    assert pending[0].notification_id == 9 * 3600
    assert pending[0].dose_ml == 200

    job_queue.run_once.assert_called_once()
    kwargs = job_queue.run_once.call_args.kwargs
    assert kwargs["name"] == tag
    assert kwargs["when"] == timedelta(hours=1)
    assert kwargs["data"].id == handle


@pytest.mark.asyncio
async def test_cancel_all_removes_queued_and_persisted(repo):
    """Test cancelling a tag clears both the queue and the table."""
    user = await repo.create_user(1)
    queued = [MagicMock(), MagicMock()]
    job_queue = MagicMock()
    job_queue.get_jobs_by_name.return_value = queued
    scheduler = JobQueueScheduler(job_queue, repo)
    tag = reminder_tag(user.id)

    await scheduler.submit(nine_am_job(user.id), tag)
    await scheduler.submit(nine_am_job(user.id), tag)

    assert await scheduler.cancel_all(tag) == 2
    job_queue.get_jobs_by_name.assert_called_with(tag)
    for job in queued:
        job.schedule_removal.assert_called_once()
    assert await repo.get_pending_jobs(tag) == []


@pytest.mark.asyncio
async def test_cancel_all_with_nothing_pending(repo):
    """Test cancelling an empty tag is not an error."""
    job_queue = MagicMock()
    job_queue.get_jobs_by_name.return_value = []
    scheduler = JobQueueScheduler(job_queue, repo)

    assert await scheduler.cancel_all(reminder_tag(42)) == 0


@pytest.mark.asyncio
async def test_restore_requeues_pending_jobs(repo):
    """Test startup recovery puts persisted jobs back on the queue."""
    user = await repo.create_user(1)
    now = datetime.now(UTC)
    for fire_at in (now - timedelta(minutes=5), now + timedelta(hours=2)):
        await repo.add_pending_job(
            PendingJob(
                user_id=user.id,
                tag=reminder_tag(user.id),
                notification_id=9 * 3600,
                dose_ml=200,
                scheduled_time=time(9, 0),
                fire_at=fire_at,
            )
        )
    job_queue = MagicMock()
    scheduler = JobQueueScheduler(job_queue, repo)

    assert await scheduler.restore() == 2

    delays = [c.kwargs["when"] for c in job_queue.run_once.call_args_list]
    assert delays[0] == timedelta(0)
    assert timedelta(hours=1) < delays[1] <= timedelta(hours=2)


def make_context(pending, repo, dispatcher):
    context = MagicMock()
    context.job.data = pending
    context.bot_data = {"repo": repo, "gate": ReminderGate(dispatcher)}
    return context


async def persist_nine_am(repo, user_id):
    return await repo.add_pending_job(
        PendingJob(
            user_id=user_id,
            tag=reminder_tag(user_id),
            notification_id=9 * 3600,
            dose_ml=200,
            scheduled_time=time(9, 0),
            fire_at=datetime(2026, 3, 1, 9, 0, tzinfo=UTC),
        )
    )


@pytest.mark.asyncio
async def test_fire_reminder_job_shows_and_retires(repo, dispatcher, monkeypatch):
    """Test a fired job goes through the gate and its row is removed."""
    monkeypatch.setattr(jobs_module, "local_now", lambda tz: datetime(2026, 3, 1, 9, 0, 20, tzinfo=UTC))
    user = await repo.create_user(1)
    pending = await persist_nine_am(repo, user.id)

    await fire_reminder_job(make_context(pending, repo, dispatcher))

    assert len(dispatcher.shown) == 1
    assert dispatcher.shown[0][4] == "add_water_intake/200.0"
    assert await repo.get_pending_job(pending.id) is None


@pytest.mark.asyncio
async def test_fire_reminder_job_drops_stale(repo, dispatcher, monkeypatch):
    """Test a job run long after its time is retired without showing."""
    monkeypatch.setattr(jobs_module, "local_now", lambda tz: datetime(2026, 3, 1, 9, 30, tzinfo=UTC))
    user = await repo.create_user(1)
    pending = await persist_nine_am(repo, user.id)

    await fire_reminder_job(make_context(pending, repo, dispatcher))

    assert dispatcher.shown == []
    assert await repo.get_pending_job(pending.id) is None


@pytest.mark.asyncio
async def test_fire_reminder_job_skips_cancelled(repo, dispatcher):
    """Test a job whose row was cancelled does nothing."""
    user = await repo.create_user(1)
    pending = await persist_nine_am(repo, user.id)
    await repo.delete_pending_jobs(pending.tag)

    await fire_reminder_job(make_context(pending, repo, dispatcher))

    assert dispatcher.shown == []


@pytest.mark.asyncio
async def test_fire_reminder_job_keeps_row_when_send_fails(repo, dispatcher, monkeypatch):
    """Test a Telegram failure leaves the job for the next start."""
    monkeypatch.setattr(jobs_module, "local_now", lambda tz: datetime(2026, 3, 1, 9, 0, 20, tzinfo=UTC))
    dispatcher.show = AsyncMock(side_effect=TelegramError("network down"))
    user = await repo.create_user(1)
    pending = await persist_nine_am(repo, user.id)

    await fire_reminder_job(make_context(pending, repo, dispatcher))

    assert await repo.get_pending_job(pending.id) is not None
