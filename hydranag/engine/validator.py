"""Policy checks for a candidate reminder schedule."""

from hydranag.engine.errors import InvalidWindow
from hydranag.engine.time_window import TimeWindow
from hydranag.utils.constants import MAX_REMINDERS_PER_DAY
from hydranag.utils.time_utils import format_duration


def validation_problem(
    window: TimeWindow,
    interval_minutes: int,
    max_reminders: int = MAX_REMINDERS_PER_DAY,
) -> str | None:
    """Describe the first policy check the schedule fails.

    Checks, in order:
    1. The window is well formed and lasts at least a minute.
    2. At least one interval fits into the window.
    3. The window does not imply more than ``max_reminders`` reminders.

    Returns:
        A user-facing message, or None if the schedule is acceptable
    """
    try:
        total_minutes = window.duration_minutes()
    except InvalidWindow:
        total_minutes = 0

    if total_minutes <= 0:
        return "The end time must be after the start time."

    if interval_minutes <= 0:
        return "The interval must be at least one minute."

    if total_minutes < interval_minutes:
        return (
            f"The interval ({format_duration(interval_minutes)}) is longer than "
            f"the window ({format_duration(total_minutes)})."
        )

    count = total_minutes // interval_minutes
    if count > max_reminders:
        return (
            f"That would be {count} reminders a day. "
            f"Use a longer interval (max {max_reminders} reminders)."
        )

    return None


def validate(
    window: TimeWindow,
    interval_minutes: int,
    max_reminders: int = MAX_REMINDERS_PER_DAY,
) -> bool:
    """Check whether a window and interval form an acceptable schedule."""
    return validation_problem(window, interval_minutes, max_reminders) is None
