"""Message text formatters."""

from datetime import datetime

from hydranag.db.models import ReminderSettings
from hydranag.engine.planner import (
    ReminderPlan,
    goal_percentage,
    remaining_ml,
    reminders_needed,
)
from hydranag.utils.time_utils import (
    at_time,
    format_duration,
    format_relative_time,
    format_time,
)

MAX_LISTED_TIMES = 8


def format_notification(title: str, body: str) -> str:
    """Format a reminder notification."""
    return f"💧 <b>{title}</b>\n\n{body}"


def format_settings(
    settings: ReminderSettings, notifications_enabled: bool, timezone: str
) -> str:
    """Format a settings snapshot."""
    lines = [
        f"🕘 Window: {settings.window}",
        f"🔁 Every {format_duration(settings.interval_minutes)}",
        f"🎯 Daily goal: {settings.daily_goal_ml} mL",
        f"⏰ Reminders: {'on' if settings.enabled else 'off'}",
        f"🔔 Notifications: {'on' if notifications_enabled else 'off'}",
        f"🌍 Timezone: <code>{timezone}</code>",
    ]
    return "\n".join(lines)


def format_plan(plan: ReminderPlan, now: datetime) -> str:
    """Format a reminder plan for the rest of today."""
    if plan.remaining_ml == 0:
        return "🎉 Goal reached for today, no more reminders needed."

    if plan.reminder_count == 0:
        return "⚠️ The interval is longer than the window, so no reminders fit."

    lines = [
        f"💧 {plan.dose_ml} mL per reminder ({plan.reminder_count} reminders/day)",
        f"📉 Remaining today: {plan.remaining_ml} mL",
    ]

    if plan.is_empty:
        lines.append("No reminders left today.")
        return "\n".join(lines)

    upcoming = plan.fire_times[:MAX_LISTED_TIMES]
    times = ", ".join(format_time(t) for t in upcoming)
    if len(plan.fire_times) > MAX_LISTED_TIMES:
        times += f" (+{len(plan.fire_times) - MAX_LISTED_TIMES} more)"
    lines.append(f"⏰ Next: {times}")
    lines.append(f"   First one {format_relative_time(at_time(now, plan.fire_times[0]), now)}")

    return "\n".join(lines)


def format_progress(daily_goal_ml: int, consumed_ml: int, dose_ml: int = 0) -> str:
    """Format today's intake against the goal.

    With a ``dose_ml``, also says how many reminders of that size are left.
    """
    percentage = goal_percentage(daily_goal_ml, consumed_ml)
    filled = int(percentage // 10)
    bar = "🟦" * filled + "⬜" * (10 - filled)
    remaining = remaining_ml(daily_goal_ml, consumed_ml)

    lines = [
        "<b>Today's Hydration</b>\n",
        bar,
        f"{consumed_ml} / {daily_goal_ml} mL ({percentage:.0f}%)",
    ]
    if remaining:
        lines.append(f"Still to go: {remaining} mL")
        needed = reminders_needed(daily_goal_ml, consumed_ml, dose_ml)
        if needed:
            lines.append(f"That's about {needed} more reminder(s) of {dose_ml} mL")
    else:
        lines.append("🎉 Goal reached!")

    return "\n".join(lines)


def format_welcome_message() -> str:
    """Format the welcome message for /start."""
    return """
<b>Welcome to HydraNag!</b> 💧

I'll remind you to drink water through the day and tell you how much to drink each time.

<b>Quick Start:</b>
• /settings - See your reminder window and today's plan
• /window 09:00 19:00 - When to remind you
• /interval 60 - How often (minutes)
• /goal 2000 - Daily goal (mL)
• /save - Schedule today's reminders

Tap "Log it" on a reminder to record what you drank.
""".strip()


def format_help_message() -> str:
    """Format the help message."""
    return """
<b>HydraNag Commands 💧</b>

<b>Reminder Settings:</b>
/settings - Current settings and today's plan
/window &lt;start&gt; &lt;end&gt; - Reminder window: <code>/window 9am 7pm</code>
/interval &lt;minutes&gt; - Time between reminders: <code>/interval 45</code>
/goal &lt;ml&gt; - Daily goal: <code>/goal 2500</code>
/reminders on|off - Turn scheduled reminders on or off
/save - Save changes and reschedule

<b>Tracking:</b>
/drink &lt;ml&gt; - Log a drink: <code>/drink 250</code>
/progress - Today's intake

<b>Other:</b>
/notifications on|off - Mute or unmute all notifications
/timezone &lt;tz&gt; - Set timezone (e.g., Europe/Berlin)

<b>Tips:</b>
• Windows can't cross midnight: the end must be after the start
• Reminders older than a minute are dropped, so you won't get a burst after being offline
• Logging a drink changes the dose for the next /save
""".strip()
