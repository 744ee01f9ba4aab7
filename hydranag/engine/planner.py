"""Reminder plan computation: dose per reminder and fire times.

Everything here is a pure function of the settings, the intake so far and
the current wall-clock time. Plans are recomputed from scratch whenever any
input changes; nothing is carried over between computations.
"""

from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import List, Tuple

from hydranag.engine.time_window import TimeWindow
from hydranag.utils.time_utils import (
    at_time,
    seconds_of_day,
    time_between,
    time_from_minutes,
)

MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class ReminderPlan:
    """Derived schedule for the rest of the day."""

    dose_ml: int
    reminder_count: int
    remaining_ml: int
    fire_times: Tuple[time, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.fire_times


@dataclass(frozen=True)
class ReminderPayload:
    """What a reminder carries to its fire-time callback."""

    dose_ml: int
    scheduled_time: time


@dataclass(frozen=True)
class ScheduledJob:
    """One deferred reminder, consumed exactly once when it fires."""

    id: int  # Second-of-day of the fire time, unique within a generation
    user_id: int
    payload: ReminderPayload
    delay: timedelta


def remaining_ml(daily_goal_ml: int, consumed_ml: int) -> int:
    """Liquid still to drink today, never negative."""
    return max(0, daily_goal_ml - consumed_ml)


def reminder_count(window: TimeWindow, interval_minutes: int) -> int:
    """How many reminders of the given interval fit into the window."""
    if interval_minutes <= 0:
        raise ValueError("interval_minutes must be positive")
    return window.duration_minutes() // interval_minutes


def dose_per_reminder(remaining: int, count: int) -> int:
    """Integer millilitres to prompt at each reminder (floor division)."""
    if remaining <= 0 or count <= 0:
        return 0
    return remaining // count


def next_interval_boundary_after(now: time, interval_minutes: int) -> int:
    """Minute-of-day of the first interval boundary strictly after ``now``.

    Boundaries sit on whole multiples of the interval counted from
    midnight, so 13:30 with a 120 minute interval gives 14:00. The result
    may be 1440 or more when no boundary is left today.
    """
    minute_of_day = now.hour * 60 + now.minute
    return (minute_of_day // interval_minutes + 1) * interval_minutes


def fire_times(window: TimeWindow, interval_minutes: int, now: datetime) -> List[time]:
    """Ordered reminder times for the rest of the day.

    Starts at the window start, or at the next interval boundary once the
    window has opened, and steps by exactly ``interval_minutes`` while still
    before the window end.
    """
    if interval_minutes <= 0:
        raise ValueError("interval_minutes must be positive")

    now_t = now.time()
    if now_t > window.start:
        anchor = next_interval_boundary_after(now_t, interval_minutes)
    else:
        anchor = window.start.hour * 60 + window.start.minute

    end_seconds = seconds_of_day(window.end)
    times = []
    minutes = anchor
    while minutes < MINUTES_PER_DAY and minutes * 60 < end_seconds:
        times.append(time_from_minutes(minutes))
        minutes += interval_minutes

    return times


def compute_plan(
    window: TimeWindow,
    interval_minutes: int,
    daily_goal_ml: int,
    consumed_ml: int,
    now: datetime,
) -> ReminderPlan:
    """Build the reminder plan for the rest of ``now``'s day.

    Raises:
        InvalidWindow: if the window does not end after it starts
        ValueError: if interval_minutes is not positive
    """
    remaining = remaining_ml(daily_goal_ml, consumed_ml)
    count = reminder_count(window, interval_minutes)

    # Interval longer than the window: nothing to remind about today
    if count <= 0:
        return ReminderPlan(dose_ml=0, reminder_count=0, remaining_ml=remaining)

    return ReminderPlan(
        dose_ml=dose_per_reminder(remaining, count),
        reminder_count=count,
        remaining_ml=remaining,
        fire_times=tuple(fire_times(window, interval_minutes, now)),
    )


def build_jobs(user_id: int, plan: ReminderPlan, now: datetime) -> List[ScheduledJob]:
    """Map each upcoming fire time to a ScheduledJob.

    Fire times that are not strictly in the future are dropped.
    """
    jobs = []
    for fire_time in plan.fire_times:
        delay = time_between(now, at_time(now, fire_time))
        if delay <= timedelta(0):
            continue
        jobs.append(
            ScheduledJob(
                id=seconds_of_day(fire_time),
                user_id=user_id,
                payload=ReminderPayload(dose_ml=plan.dose_ml, scheduled_time=fire_time),
                delay=delay,
            )
        )
    return jobs


def goal_percentage(daily_goal_ml: int, consumed_ml: int) -> float:
    """Share of today's goal already consumed, capped at 100."""
    if daily_goal_ml <= 0:
        return 100.0
    remaining = remaining_ml(daily_goal_ml, consumed_ml)
    if remaining == 0:
        return 100.0
    return (1 - remaining / daily_goal_ml) * 100


def reminders_needed(daily_goal_ml: int, consumed_ml: int, dose_ml: int) -> int:
    """Reminders of ``dose_ml`` still needed to reach the goal."""
    remaining = remaining_ml(daily_goal_ml, consumed_ml)
    if remaining == 0 or dose_ml <= 0:
        return 0
    return remaining // dose_ml
