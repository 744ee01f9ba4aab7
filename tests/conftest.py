"""Shared fakes for the engine's collaborators."""

import asyncio
from datetime import date

import pytest
import pytest_asyncio

from hydranag.db.migrations import run_migrations
from hydranag.db.models import IntakeState, ReminderSettings
from hydranag.db.repository import Repository
from hydranag.engine.errors import PersistenceError, SchedulingError
from hydranag.engine.planner import ScheduledJob


class FakeStore:
    """In-memory intake store."""

    def __init__(self):
        self.settings: dict[int, ReminderSettings] = {}
        self.intake: dict[tuple[int, date], IntakeState] = {}
        self.fail_reads = False
        self.fail_writes = False
        self.hang = False

    async def _maybe_hang(self):
        if self.hang:
            await asyncio.sleep(10)

    async def get_reminder_settings(self, user_id):
        await self._maybe_hang()
        if self.fail_reads:
            raise PersistenceError("read failed")
        return self.settings.get(user_id)

    async def save_reminder_settings(self, user_id, settings):
        await self._maybe_hang()
        if self.fail_writes:
            raise PersistenceError("write failed")
        self.settings[user_id] = settings

    async def get_intake(self, user_id, day):
        if self.fail_reads:
            raise PersistenceError("read failed")
        return self.intake.get((user_id, day))

    async def set_intake(self, user_id, state):
        self.intake[(user_id, state.date)] = state


class FakeJobs:
    """Deferred scheduler that records every call in order."""

    def __init__(self, fail_after: int | None = None):
        self.active: dict[str, list[ScheduledJob]] = {}
        self.calls: list[tuple] = []
        self.fail_after = fail_after
        self.cancel_error: Exception | None = None
        self._submitted = 0

    async def cancel_all(self, tag):
        await asyncio.sleep(0)
        if self.cancel_error:
            raise self.cancel_error
        self.calls.append(("cancel", tag))
        return len(self.active.pop(tag, []))

    async def submit(self, job, tag):
        await asyncio.sleep(0)
        if self.fail_after is not None and self._submitted >= self.fail_after:
            raise SchedulingError("queue full")
        self._submitted += 1
        self.calls.append(("submit", tag, job.id))
        self.active.setdefault(tag, []).append(job)
        return self._submitted


class FakeDispatcher:
    """Notification dispatcher that remembers what it showed."""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self.active: set[tuple[int, int]] = set()
        self.shown: list[tuple] = []

    async def is_enabled(self, user_id):
        return self.enabled

    async def is_active(self, user_id, notification_id):
        return (user_id, notification_id) in self.active

    async def show(self, user_id, notification_id, title, body, deep_link):
        self.shown.append((user_id, notification_id, title, body, deep_link))
        self.active.add((user_id, notification_id))


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def jobs():
    return FakeJobs()


@pytest.fixture
def dispatcher():
    return FakeDispatcher()


@pytest_asyncio.fixture
async def repo(tmp_path):
    """A migrated SQLite repository in a temp directory."""
    db_path = tmp_path / "test.db"
    await run_migrations(db_path)

    repository = Repository(db_path)
    await repository.connect()
    yield repository
    await repository.close()
