"""Constants and default values."""

from datetime import time

# Default reminder settings (seeded for new users)
DEFAULT_WINDOW_START = time(9, 0)
DEFAULT_WINDOW_END = time(19, 0)
DEFAULT_INTERVAL_MINUTES = 60
DEFAULT_DAILY_GOAL_ML = 2000

# Limits
MAX_REMINDERS_PER_DAY = 24
MAX_DAILY_GOAL_ML = 10000
MAX_SINGLE_INTAKE_ML = 5000

# Fire-time tolerance: a reminder delivered later than this is stale
STALE_TOLERANCE_MINUTES = 1

# Deferred job tagging
REMINDER_TAG_PREFIX = "water_reminder"

# Notification content
NOTIFICATION_TITLE = "Time to Hydrate!"
DEEP_LINK_PREFIX = "add_water_intake"

# Default timezone
DEFAULT_TIMEZONE = "UTC"


def reminder_tag(user_id: int) -> str:
    """Group tag shared by every pending reminder job of one user."""
    return f"{REMINDER_TAG_PREFIX}:{user_id}"
