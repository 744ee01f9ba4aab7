"""Data models."""

from dataclasses import dataclass
from datetime import date, datetime, time

from hydranag.engine.time_window import TimeWindow
from hydranag.utils.constants import (
    DEFAULT_DAILY_GOAL_ML,
    DEFAULT_INTERVAL_MINUTES,
    DEFAULT_WINDOW_END,
    DEFAULT_WINDOW_START,
)


@dataclass
class User:
    """Telegram user."""

    telegram_id: int
    timezone: str
    notifications_enabled: bool
    created_at: datetime
    id: int | None = None


@dataclass(frozen=True)
class ReminderSettings:
    """A user's saved reminder configuration.

    Snapshots are replaced wholesale; use ``dataclasses.replace`` to derive
    an edited copy.
    """

    window: TimeWindow = TimeWindow(DEFAULT_WINDOW_START, DEFAULT_WINDOW_END)
    interval_minutes: int = DEFAULT_INTERVAL_MINUTES
    daily_goal_ml: int = DEFAULT_DAILY_GOAL_ML
    enabled: bool = True


@dataclass(frozen=True)
class IntakeState:
    """Liquid consumed by one user on one calendar day."""

    date: date
    consumed_ml: int = 0


@dataclass
class PendingJob:
    """A deferred reminder job persisted until it fires or is cancelled."""

    user_id: int
    tag: str
    notification_id: int
    dose_ml: int
    scheduled_time: time  # User-local wall clock
    fire_at: datetime  # UTC
    id: int | None = None
