"""Reminder scheduling cycle: validate, persist, cancel, recompute, submit."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Awaitable, Callable, Dict, TypeVar

from hydranag.db.models import ReminderSettings
from hydranag.engine.errors import (
    HydranagError,
    PersistenceError,
    SchedulingError,
    ValidationError,
)
from hydranag.engine.interfaces import DeferredScheduler, IntakeStore
from hydranag.engine.planner import ReminderPlan, build_jobs, compute_plan
from hydranag.engine.validator import validation_problem
from hydranag.utils.constants import MAX_REMINDERS_PER_DAY, reminder_tag

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SchedulerState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    PERSISTING = "persisting"
    CANCELLING = "cancelling"
    RECOMPUTING = "recomputing"
    SUBMITTING = "submitting"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass(frozen=True)
class CycleStatus:
    """Outcome of the most recent scheduling cycle for a user."""

    state: SchedulerState
    submitted: int = 0
    failed_in: SchedulerState | None = None
    error: HydranagError | None = None
    plan: ReminderPlan | None = None


class ReminderScheduler:
    """Turns a saved settings snapshot into a fresh set of deferred reminders.

    One cycle runs per "save settings" action:

        IDLE -> VALIDATING -> PERSISTING -> CANCELLING -> RECOMPUTING
             -> SUBMITTING -> COMPLETE | FAILED

    Cycles for the same user are serialized; a save that arrives while a
    cycle is in flight waits for it to finish. Every collaborator call is
    bounded by ``timeout`` seconds.
    """

    def __init__(
        self,
        store: IntakeStore,
        jobs: DeferredScheduler,
        timeout: float = 10.0,
        max_reminders: int = MAX_REMINDERS_PER_DAY,
        clock: Callable[[], datetime] | None = None,
    ):
        self.store = store
        self.jobs = jobs
        self.timeout = timeout
        self.max_reminders = max_reminders
        self._clock = clock or (lambda: datetime.now().astimezone())
        self._locks: Dict[int, asyncio.Lock] = {}
        self._status: Dict[int, CycleStatus] = {}
        self._state: Dict[int, SchedulerState] = {}
        self._known_settings: Dict[int, ReminderSettings] = {}

    # State inspection

    def state(self, user_id: int) -> SchedulerState:
        """Where the user's current (or last) cycle is."""
        return self._state.get(user_id, SchedulerState.IDLE)

    def last_cycle(self, user_id: int) -> CycleStatus | None:
        """Result of the user's last finished cycle, if any."""
        return self._status.get(user_id)

    def is_busy(self, user_id: int) -> bool:
        lock = self._locks.get(user_id)
        return lock is not None and lock.locked()

    # Settings

    async def load_settings(self, user_id: int) -> ReminderSettings:
        """Persisted settings, falling back to the last known or defaults."""
        try:
            settings = await self._store_call(
                self.store.get_reminder_settings(user_id), "loading settings"
            )
        except PersistenceError as e:
            logger.warning(f"Could not load settings for user {user_id}, using fallback: {e}")
            return self._known_settings.get(user_id, ReminderSettings())

        if settings is None:
            settings = self._known_settings.get(user_id, ReminderSettings())
        self._known_settings[user_id] = settings
        return settings

    async def consumed_on(self, user_id: int, day: date) -> int:
        """Millilitres recorded for the given day (0 before the first write)."""
        intake = await self._store_call(self.store.get_intake(user_id, day), "reading intake")
        if intake is None or intake.date != day:
            return 0
        return intake.consumed_ml

    async def preview(
        self, user_id: int, settings: ReminderSettings, now: datetime | None = None
    ) -> ReminderPlan:
        """Plan the given (possibly unsaved) settings would produce right now.

        Raises:
            ValidationError: if the settings fail the schedule checks
            PersistenceError: if today's intake cannot be read
        """
        if now is None:
            now = self._clock()
        self._check(settings)
        consumed = await self.consumed_on(user_id, now.date())
        return compute_plan(
            settings.window,
            settings.interval_minutes,
            settings.daily_goal_ml,
            consumed,
            now,
        )

    # Scheduling cycle

    async def save_settings(
        self, user_id: int, settings: ReminderSettings, now: datetime | None = None
    ) -> CycleStatus:
        """Persist settings and replace the user's pending reminders.

        Returns:
            The COMPLETE cycle status, with the number of jobs submitted

        Raises:
            ValidationError: settings rejected, nothing changed
            PersistenceError: store failure, previous schedule (if the
                failure happened before cancelling) left active
            SchedulingError: cancel or submit failed; jobs submitted before
                the failure stay queued
        """
        lock = self._locks.setdefault(user_id, asyncio.Lock())
        if lock.locked():
            logger.info(f"Scheduling cycle for user {user_id} queued behind in-flight cycle")

        async with lock:
            return await self._run_cycle(user_id, settings, now)

    async def _run_cycle(
        self, user_id: int, settings: ReminderSettings, now: datetime | None
    ) -> CycleStatus:
        submitted = 0
        tag = reminder_tag(user_id)

        try:
            self._enter(user_id, SchedulerState.VALIDATING)
            self._check(settings)

            self._enter(user_id, SchedulerState.PERSISTING)
            await self._store_call(
                self.store.save_reminder_settings(user_id, settings), "saving settings"
            )
            self._known_settings[user_id] = settings

            self._enter(user_id, SchedulerState.CANCELLING)
            cancelled = await self._jobs_call(self.jobs.cancel_all(tag), "cancelling jobs")
            logger.info(f"Cancelled {cancelled} pending reminders for user {user_id}")

            self._enter(user_id, SchedulerState.RECOMPUTING)
            if now is None:
                now = self._clock()
            plan = None
            jobs = []
            if settings.enabled:
                consumed = await self.consumed_on(user_id, now.date())
                plan = compute_plan(
                    settings.window,
                    settings.interval_minutes,
                    settings.daily_goal_ml,
                    consumed,
                    now,
                )
                jobs = build_jobs(user_id, plan, now)

            self._enter(user_id, SchedulerState.SUBMITTING)
            for job in jobs:
                try:
                    await self._jobs_call(self.jobs.submit(job, tag), "submitting job")
                except SchedulingError as e:
                    raise SchedulingError(
                        f"Scheduled {submitted} of {len(jobs)} reminders: {e}",
                        submitted=submitted,
                    ) from e
                submitted += 1
                logger.debug(
                    f"Scheduled reminder {job.id} for user {user_id} at "
                    f"{job.payload.scheduled_time} ({job.payload.dose_ml} mL)"
                )

        except HydranagError as e:
            failed_in = self.state(user_id)
            status = CycleStatus(
                state=SchedulerState.FAILED,
                submitted=submitted,
                failed_in=failed_in,
                error=e,
            )
            self._finish(user_id, status)
            logger.error(f"Scheduling cycle for user {user_id} failed while {failed_in.value}: {e}")
            raise

        status = CycleStatus(state=SchedulerState.COMPLETE, submitted=submitted, plan=plan)
        self._finish(user_id, status)
        logger.info(f"Successfully scheduled {submitted} reminders for user {user_id}")
        return status

    # Helpers

    def _check(self, settings: ReminderSettings) -> None:
        if settings.daily_goal_ml <= 0:
            raise ValidationError("The daily goal must be a positive amount.")
        problem = validation_problem(settings.window, settings.interval_minutes, self.max_reminders)
        if problem:
            raise ValidationError(problem)

    def _enter(self, user_id: int, state: SchedulerState) -> None:
        self._state[user_id] = state
        logger.debug(f"User {user_id} scheduling cycle -> {state.value}")

    def _finish(self, user_id: int, status: CycleStatus) -> None:
        self._state[user_id] = status.state
        self._status[user_id] = status

    async def _store_call(self, call: Awaitable[T], what: str) -> T:
        try:
            return await asyncio.wait_for(call, self.timeout)
        except asyncio.TimeoutError as e:
            raise PersistenceError(f"Timed out {what}") from e

    async def _jobs_call(self, call: Awaitable[T], what: str) -> T:
        try:
            return await asyncio.wait_for(call, self.timeout)
        except asyncio.TimeoutError as e:
            raise SchedulingError(f"Timed out {what}") from e
        except HydranagError:
            raise
        except Exception as e:
            raise SchedulingError(f"Failed {what}: {e}") from e
