"""Deferred reminder jobs on top of the bot's JobQueue.

Every queued job is mirrored into the ``scheduled_jobs`` table so that a
restart can put it back on the queue. A row is removed when its job has
run or when its tag is cancelled.
"""

import logging
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from telegram.error import TelegramError
from telegram.ext import ContextTypes, JobQueue

from hydranag.db.models import PendingJob
from hydranag.db.repository import Repository
from hydranag.engine.errors import PersistenceError, SchedulingError
from hydranag.engine.gate import ReminderGate
from hydranag.engine.planner import ReminderPayload, ScheduledJob
from hydranag.utils.time_utils import local_now

logger = logging.getLogger(__name__)


class JobQueueScheduler:
    """DeferredScheduler backed by python-telegram-bot's JobQueue."""

    def __init__(self, job_queue: JobQueue, repo: Repository):
        self.job_queue = job_queue
        self.repo = repo

    async def cancel_all(self, tag: str) -> int:
        """Cancel every queued job under the tag. Zero jobs is not an error."""
        queued = self.job_queue.get_jobs_by_name(tag)
        for job in queued:
            job.schedule_removal()

        try:
            deleted = await self.repo.delete_pending_jobs(tag)
        except PersistenceError as e:
            raise SchedulingError(f"Could not clear pending jobs for {tag}: {e}") from e

        return max(len(queued), deleted)

    async def submit(self, job: ScheduledJob, tag: str) -> int:
        """Queue a reminder to run after ``job.delay``. Returns the job handle."""
        pending = PendingJob(
            user_id=job.user_id,
            tag=tag,
            notification_id=job.id,
            dose_ml=job.payload.dose_ml,
            scheduled_time=job.payload.scheduled_time,
            fire_at=datetime.now(ZoneInfo("UTC")) + job.delay,
        )

        try:
            pending = await self.repo.add_pending_job(pending)
        except PersistenceError as e:
            raise SchedulingError(f"Could not record job {job.id}: {e}") from e

        self._enqueue(pending, job.delay)
        return pending.id  # type: ignore

    async def restore(self) -> int:
        """Put persisted jobs back on the queue after a restart.

        Jobs whose time already passed run right away; the reminder gate
        drops the ones that are too late to show.
        """
        now = datetime.now(ZoneInfo("UTC"))
        pending_jobs = await self.repo.get_pending_jobs()

        for pending in pending_jobs:
            delay = max(pending.fire_at - now, timedelta(0))
            self._enqueue(pending, delay)

        if pending_jobs:
            logger.info(f"Startup recovery: restored {len(pending_jobs)} pending reminders")
        return len(pending_jobs)

    def _enqueue(self, pending: PendingJob, delay: timedelta) -> None:
        self.job_queue.run_once(
            fire_reminder_job,
            when=delay,
            data=pending,
            name=pending.tag,
        )


async def fire_reminder_job(context: ContextTypes.DEFAULT_TYPE) -> None:
    """Job callback: run the reminder gate, then retire the job."""
    pending: PendingJob = context.job.data  # type: ignore
    repo: Repository = context.bot_data["repo"]
    gate: ReminderGate = context.bot_data["gate"]

    try:
        if not await repo.get_pending_job(pending.id):  # type: ignore
            logger.info(f"Reminder job {pending.id} was cancelled, skipping")
            return

        user = await repo.get_user_by_id(pending.user_id)
        if not user:
            logger.warning(f"User not found for reminder job {pending.id}")
            await repo.delete_pending_job(pending.id)  # type: ignore
            return

        payload = ReminderPayload(dose_ml=pending.dose_ml, scheduled_time=pending.scheduled_time)
        outcome = await gate.fire(
            user.id,  # type: ignore
            pending.notification_id,
            payload,
            local_now(user.timezone),
        )
        await repo.delete_pending_job(pending.id)  # type: ignore
        logger.debug(f"Reminder job {pending.id} finished: {outcome.value}")

    except TelegramError as e:
        logger.error(f"Failed to send reminder {pending.notification_id} to user {pending.user_id}: {e}")
        # Row stays; a restart re-runs it and the gate drops it if it is too late by then
    except PersistenceError as e:
        logger.error(f"Reminder job {pending.id} could not reach the database: {e}")
