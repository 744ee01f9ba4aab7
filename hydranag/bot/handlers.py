"""Command handlers."""

import logging
from dataclasses import replace
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from telegram import Update
from telegram.ext import ContextTypes

from hydranag.bot.formatters import (
    format_help_message,
    format_plan,
    format_progress,
    format_settings,
    format_welcome_message,
)
from hydranag.bot.keyboards import save_settings_keyboard
from hydranag.db.models import ReminderSettings, User
from hydranag.db.repository import Repository
from hydranag.engine.errors import (
    HydranagError,
    PersistenceError,
    SchedulingError,
    ValidationError,
)
from hydranag.engine.scheduler import ReminderScheduler
from hydranag.engine.time_window import TimeWindow
from hydranag.engine.validator import validation_problem
from hydranag.utils.constants import MAX_DAILY_GOAL_ML, MAX_SINGLE_INTAKE_ML
from hydranag.utils.time_utils import local_now, parse_time_of_day

logger = logging.getLogger(__name__)

DRAFT_KEY = "draft_settings"


async def require_user(update: Update, context: ContextTypes.DEFAULT_TYPE) -> User | None:
    """Look up the sender, asking them to /start first if unknown."""
    repo: Repository = context.bot_data["repo"]
    user = await repo.get_user_by_telegram_id(update.effective_user.id)  # type: ignore

    if not user and update.effective_message:
        await update.effective_message.reply_text("Please /start the bot first.")
    return user


async def _current_draft(context: ContextTypes.DEFAULT_TYPE, user: User) -> ReminderSettings:
    """Unsaved edits if there are any, else the saved settings."""
    draft = context.user_data.get(DRAFT_KEY)
    if draft is not None:
        return draft

    scheduler: ReminderScheduler = context.bot_data["scheduler"]
    return await scheduler.load_settings(user.id)  # type: ignore


async def _update_draft(
    update: Update,
    context: ContextTypes.DEFAULT_TYPE,
    user: User,
    draft: ReminderSettings,
) -> None:
    """Store the edited draft and reply with what it would schedule."""
    context.user_data[DRAFT_KEY] = draft
    scheduler: ReminderScheduler = context.bot_data["scheduler"]

    problem = validation_problem(draft.window, draft.interval_minutes, scheduler.max_reminders)
    if problem:
        await update.message.reply_html(  # type: ignore
            f"⚠️ {problem}\n\n<b>Draft:</b> {draft.window}, every {draft.interval_minutes} min"
        )
        return

    now = local_now(user.timezone)
    try:
        plan = await scheduler.preview(user.id, draft, now)  # type: ignore
    except HydranagError as e:
        await update.message.reply_text(f"⚠️ Couldn't preview the schedule: {e}")  # type: ignore
        return

    await update.message.reply_html(  # type: ignore
        f"<b>Unsaved changes</b>\n\n{format_settings(draft, user.notifications_enabled, user.timezone)}\n\n"
        f"{format_plan(plan, now)}",
        reply_markup=save_settings_keyboard(),
    )


async def save_draft(context: ContextTypes.DEFAULT_TYPE, user: User) -> str:
    """Save the user's draft (or current settings) and reschedule.

    Returns:
        HTML reply describing the outcome
    """
    scheduler: ReminderScheduler = context.bot_data["scheduler"]
    settings = await _current_draft(context, user)
    now = local_now(user.timezone)

    try:
        status = await scheduler.save_settings(user.id, settings, now)  # type: ignore
    except ValidationError as e:
        return f"⚠️ {e}\n\nNothing was changed."
    except PersistenceError:
        return (
            "❌ Couldn't save your settings.\n\n"
            "Your previous schedule is still active. Please try again."
        )
    except SchedulingError as e:
        logger.error(f"Partial schedule for user {user.id}: {e}")
        return (
            f"⚠️ Settings saved, but only {e.submitted} reminder(s) could be scheduled.\n\n"
            "Please /save again."
        )

    context.user_data.pop(DRAFT_KEY, None)

    if not settings.enabled:
        return "✓ Settings saved. Reminders are <b>off</b>."

    message = f"✓ Settings saved. <b>{status.submitted}</b> reminder(s) scheduled for today."
    if status.plan is not None:
        message += f"\n\n{format_plan(status.plan, now)}"
    return message


async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start command."""
    if not update.effective_user or not update.message:
        return

    repo: Repository = context.bot_data["repo"]
    telegram_id = update.effective_user.id

    # Get or create user
    user = await repo.get_user_by_telegram_id(telegram_id)
    if user is None:
        user = await repo.create_user(telegram_id)
        logger.info(f"New user created: {telegram_id}")

    await update.message.reply_html(format_welcome_message())


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help command."""
    if not update.message:
        return

    await update.message.reply_html(format_help_message())


async def settings_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /settings command - show saved settings and today's plan."""
    if not update.effective_user or not update.message:
        return

    user = await require_user(update, context)
    if not user:
        return

    scheduler: ReminderScheduler = context.bot_data["scheduler"]
    settings = await scheduler.load_settings(user.id)  # type: ignore
    now = local_now(user.timezone)

    message = f"<b>Your Settings</b>\n\n{format_settings(settings, user.notifications_enabled, user.timezone)}"

    try:
        plan = await scheduler.preview(user.id, settings, now)  # type: ignore
        message += f"\n\n{format_plan(plan, now)}"
    except HydranagError as e:
        message += f"\n\n⚠️ {e}"

    if settings.enabled and settings.window.is_well_formed() and settings.window.contains(now.time()):
        message += "\n\n🟢 You're inside your reminder window right now."

    if context.user_data.get(DRAFT_KEY) is not None:
        message += "\n\n✎ You have unsaved changes. Send /save to apply them."

    await update.message.reply_html(message)


async def window_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /window <start> <end> command."""
    if not update.effective_user or not update.message:
        return

    user = await require_user(update, context)
    if not user:
        return

    if not context.args or len(context.args) != 2:
        await update.message.reply_html(
            "Usage: <code>/window &lt;start&gt; &lt;end&gt;</code>\n\n"
            "Example: <code>/window 09:00 19:00</code>"
        )
        return

    try:
        start = parse_time_of_day(context.args[0])
        end = parse_time_of_day(context.args[1])
    except ValueError:
        await update.message.reply_text(
            "Invalid time format. Use HH:MM (24-hour) or 9am/7pm\n\n"
            "Example: /window 09:00 19:00"
        )
        return

    draft = await _current_draft(context, user)
    await _update_draft(update, context, user, replace(draft, window=TimeWindow(start, end)))


async def interval_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /interval <minutes> command."""
    if not update.effective_user or not update.message:
        return

    user = await require_user(update, context)
    if not user:
        return

    if not context.args or len(context.args) != 1:
        await update.message.reply_text("Usage: /interval <minutes>\n\nExample: /interval 45")
        return

    try:
        minutes = int(context.args[0])
    except ValueError:
        await update.message.reply_text("Invalid interval. Must be a number of minutes.")
        return

    if minutes <= 0:
        await update.message.reply_text("The interval must be at least one minute.")
        return

    draft = await _current_draft(context, user)
    await _update_draft(update, context, user, replace(draft, interval_minutes=minutes))


async def goal_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /goal <ml> command."""
    if not update.effective_user or not update.message:
        return

    user = await require_user(update, context)
    if not user:
        return

    if not context.args or len(context.args) != 1:
        await update.message.reply_text("Usage: /goal <ml>\n\nExample: /goal 2000")
        return

    try:
        goal = int(context.args[0])
    except ValueError:
        await update.message.reply_text("Invalid goal. Must be a number of millilitres.")
        return

    if not 0 < goal <= MAX_DAILY_GOAL_ML:
        await update.message.reply_text(f"The goal must be between 1 and {MAX_DAILY_GOAL_ML} mL.")
        return

    draft = await _current_draft(context, user)
    await _update_draft(update, context, user, replace(draft, daily_goal_ml=goal))


async def reminders_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /reminders on|off command."""
    if not update.effective_user or not update.message:
        return

    user = await require_user(update, context)
    if not user:
        return

    if not context.args or context.args[0].lower() not in ("on", "off"):
        await update.message.reply_text("Usage: /reminders on|off")
        return

    draft = await _current_draft(context, user)
    await _update_draft(update, context, user, replace(draft, enabled=context.args[0].lower() == "on"))


async def save_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /save command - persist settings and reschedule."""
    if not update.effective_user or not update.message:
        return

    user = await require_user(update, context)
    if not user:
        return

    await update.message.reply_html(await save_draft(context, user))


async def drink_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /drink <ml> command - record intake."""
    if not update.effective_user or not update.message:
        return

    user = await require_user(update, context)
    if not user:
        return

    if not context.args or len(context.args) != 1:
        await update.message.reply_text("Usage: /drink <ml>\n\nExample: /drink 250")
        return

    try:
        amount = int(context.args[0])
    except ValueError:
        await update.message.reply_text("Invalid amount. Must be a number of millilitres.")
        return

    if not 0 < amount <= MAX_SINGLE_INTAKE_ML:
        await update.message.reply_text(f"The amount must be between 1 and {MAX_SINGLE_INTAKE_ML} mL.")
        return

    await update.message.reply_html(await record_intake(context, user, amount))


async def record_intake(context: ContextTypes.DEFAULT_TYPE, user: User, amount_ml: int) -> str:
    """Add a drink to today's intake and describe the new progress."""
    repo: Repository = context.bot_data["repo"]
    scheduler: ReminderScheduler = context.bot_data["scheduler"]

    today = local_now(user.timezone).date()
    intake = await repo.add_intake(user.id, today, amount_ml)  # type: ignore
    settings = await scheduler.load_settings(user.id)  # type: ignore

    logger.info(f"User {user.id} logged {amount_ml} mL ({intake.consumed_ml} mL today)")
    return f"✓ Logged {amount_ml} mL\n\n{format_progress(settings.daily_goal_ml, intake.consumed_ml)}"


async def progress_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /progress command."""
    if not update.effective_user or not update.message:
        return

    user = await require_user(update, context)
    if not user:
        return

    scheduler: ReminderScheduler = context.bot_data["scheduler"]
    settings = await scheduler.load_settings(user.id)  # type: ignore
    now = local_now(user.timezone)
    consumed = await scheduler.consumed_on(user.id, now.date())  # type: ignore

    dose = 0
    try:
        dose = (await scheduler.preview(user.id, settings, now)).dose_ml  # type: ignore
    except ValidationError as e:
        logger.debug(f"No dose for user {user.id} progress: {e}")

    await update.message.reply_html(format_progress(settings.daily_goal_ml, consumed, dose))


async def notifications_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /notifications on|off command."""
    if not update.effective_user or not update.message:
        return

    user = await require_user(update, context)
    if not user:
        return

    if not context.args or context.args[0].lower() not in ("on", "off"):
        state = "on" if user.notifications_enabled else "off"
        await update.message.reply_html(
            f"<b>Notifications are {state}.</b>\n\n"
            "To change: <code>/notifications on</code> or <code>/notifications off</code>"
        )
        return

    enabled = context.args[0].lower() == "on"
    repo: Repository = context.bot_data["repo"]
    await repo.update_user_settings(user.id, notifications_enabled=enabled)  # type: ignore

    if enabled:
        await update.message.reply_text("🔔 Notifications on.")
    else:
        await update.message.reply_text(
            "🔕 Notifications off. Scheduled reminders will be skipped until you turn them back on."
        )


async def timezone_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /timezone <timezone> command."""
    if not update.effective_user or not update.message:
        return

    user = await require_user(update, context)
    if not user:
        return

    # If no timezone provided, show current
    if not context.args or len(context.args) == 0:
        await update.message.reply_html(
            f"<b>Current timezone:</b> {user.timezone}\n\n"
            "To change: <code>/timezone Europe/Berlin</code>\n\n"
            "See full list: https://en.wikipedia.org/wiki/List_of_tz_database_time_zones"
        )
        return

    new_timezone = context.args[0]

    try:
        ZoneInfo(new_timezone)
    except (ZoneInfoNotFoundError, ValueError):
        await update.message.reply_text(
            f"Invalid timezone: {new_timezone}\n\n"
            "Use format like: America/Toronto, Europe/London, etc."
        )
        return

    repo: Repository = context.bot_data["repo"]
    await repo.update_user_settings(user.id, timezone=new_timezone)  # type: ignore

    await update.message.reply_html(
        f"✓ Timezone updated to <b>{new_timezone}</b>\n\n"
        "Send /save to reschedule today's reminders in the new timezone."
    )
