"""Collaborator interfaces the engine is wired to at construction."""

from datetime import date
from typing import Protocol

from hydranag.db.models import IntakeState, ReminderSettings
from hydranag.engine.planner import ScheduledJob


class IntakeStore(Protocol):
    """Per-user settings and per-day intake. Failures raise PersistenceError."""

    async def get_reminder_settings(self, user_id: int) -> ReminderSettings | None: ...

    async def save_reminder_settings(self, user_id: int, settings: ReminderSettings) -> None: ...

    async def get_intake(self, user_id: int, day: date) -> IntakeState | None: ...

    async def set_intake(self, user_id: int, state: IntakeState) -> None: ...


class DeferredScheduler(Protocol):
    """Runs submitted jobs at or after their delay, surviving restarts."""

    async def cancel_all(self, tag: str) -> int: ...

    async def submit(self, job: ScheduledJob, tag: str) -> int: ...


class NotificationDispatcher(Protocol):
    """Delivers reminder notifications and owns the enabled flag."""

    async def is_enabled(self, user_id: int) -> bool: ...

    async def is_active(self, user_id: int, notification_id: int) -> bool: ...

    async def show(
        self,
        user_id: int,
        notification_id: int,
        title: str,
        body: str,
        deep_link: str,
    ) -> None: ...
