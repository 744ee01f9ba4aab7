"""Time and timezone utilities."""

from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from dateutil import parser as date_parser


def from_utc(dt: datetime, tz: str) -> datetime:
    """Convert a UTC datetime to the given timezone."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=ZoneInfo("UTC"))
    return dt.astimezone(ZoneInfo(tz))


def local_now(tz: str) -> datetime:
    """Current wall-clock time in the user's timezone."""
    return from_utc(datetime.now(ZoneInfo("UTC")), tz)


def parse_time_of_day(text: str) -> time:
    """Parse a user-entered clock time.

    Accepts "09:00", "9:30", "9am", "7 PM", "21.15" and similar.

    Raises:
        ValueError: if the text is not a recognizable time of day
    """
    cleaned = text.strip().lower().replace(".", ":")
    if not cleaned:
        raise ValueError("Empty time")

    try:
        parsed = date_parser.parse(cleaned, default=datetime(2000, 1, 1))
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Unrecognized time: {text}") from e

    if parsed.date() != date(2000, 1, 1):
        raise ValueError(f"Expected a time of day, got a date: {text}")

    return parsed.time().replace(second=0, microsecond=0)


def seconds_of_day(t: time) -> int:
    """Seconds elapsed since midnight for a clock time."""
    return t.hour * 3600 + t.minute * 60 + t.second


def time_from_minutes(minutes: int) -> time:
    """Clock time for a minute offset from midnight (0 <= minutes < 1440)."""
    return time(minutes // 60, minutes % 60)


def at_time(day: datetime, t: time) -> datetime:
    """The datetime on ``day``'s date at clock time ``t``, keeping tzinfo."""
    return datetime.combine(day.date(), t, tzinfo=day.tzinfo)


def time_between(start: datetime, end: datetime) -> timedelta:
    """Real elapsed time from start to end.

    Aware datetimes are compared in UTC, so a DST change in between counts.
    """
    if start.tzinfo is not None and end.tzinfo is not None:
        start = start.astimezone(ZoneInfo("UTC"))
        end = end.astimezone(ZoneInfo("UTC"))
    return end - start


def whole_minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from start to end, truncated toward zero."""
    return int(time_between(start, end) / timedelta(minutes=1))


def format_time(t: time) -> str:
    """Format a clock time as HH:MM."""
    return t.strftime("%H:%M")


def format_duration(minutes: int) -> str:
    """Format minutes into a human-readable duration.

    Examples:
        15 -> "15 minutes"
        60 -> "1 hour"
        90 -> "1.5 hours"
        1440 -> "1 day"
    """
    if minutes < 60:
        return f"{minutes} minute{'s' if minutes != 1 else ''}"
    elif minutes < 1440:
        hours = minutes / 60
        if hours == int(hours):
            return f"{int(hours)} hour{'s' if hours != 1 else ''}"
        return f"{hours:.1f} hours"
    else:
        days = minutes / 1440
        if days == int(days):
            return f"{int(days)} day{'s' if days != 1 else ''}"
        return f"{days:.1f} days"


def format_relative_time(dt: datetime, now: datetime | None = None) -> str:
    """Format an upcoming datetime relative to now.

    Examples:
        "now"
        "in 5 minutes"
        "in 2 hours"
    """
    if now is None:
        now = datetime.now(ZoneInfo("UTC"))

    total_seconds = time_between(now, dt).total_seconds()

    if total_seconds < 60:
        return "now"
    elif total_seconds < 3600:
        minutes = int(total_seconds / 60)
        return f"in {minutes} minute{'s' if minutes != 1 else ''}"
    else:
        hours = int(total_seconds / 3600)
        return f"in {hours} hour{'s' if hours != 1 else ''}"
