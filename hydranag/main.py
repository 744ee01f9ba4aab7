"""Main entry point for the HydraNag bot."""

import logging
import sys

from telegram.ext import Application, CallbackQueryHandler, CommandHandler

from hydranag.bot.callbacks import callback_router
from hydranag.bot.dispatcher import TelegramDispatcher
from hydranag.bot.handlers import (
    drink_command,
    goal_command,
    help_command,
    interval_command,
    notifications_command,
    progress_command,
    reminders_command,
    save_command,
    settings_command,
    start_command,
    timezone_command,
    window_command,
)
from hydranag.bot.jobs import JobQueueScheduler
from hydranag.config import Config
from hydranag.db.migrations import run_migrations
from hydranag.db.repository import Repository
from hydranag.engine.gate import ReminderGate
from hydranag.engine.scheduler import ReminderScheduler
from hydranag.utils.error_handler import error_handler

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, Config.LOG_LEVEL),
    stream=sys.stdout,
)

logger = logging.getLogger(__name__)


async def post_init(application: Application) -> None:
    """Initialize bot resources after application is created."""
    # Initialize database
    await run_migrations(Config.DATABASE_PATH)

    # Create repository and store in bot_data
    repo = Repository(Config.DATABASE_PATH)
    await repo.connect()
    application.bot_data["repo"] = repo

    if application.job_queue is None:
        raise RuntimeError("JobQueue unavailable: install python-telegram-bot[job-queue]")

    jobs = JobQueueScheduler(application.job_queue, repo)
    dispatcher = TelegramDispatcher(application.bot, repo)

    application.bot_data["jobs"] = jobs
    application.bot_data["dispatcher"] = dispatcher
    application.bot_data["gate"] = ReminderGate(
        dispatcher, tolerance_minutes=Config.STALE_TOLERANCE_MINUTES
    )
    application.bot_data["scheduler"] = ReminderScheduler(
        repo,
        jobs,
        timeout=Config.COLLABORATOR_TIMEOUT,
        max_reminders=Config.MAX_REMINDERS_PER_DAY,
    )

    # Put reminders queued before the last shutdown back on the queue
    await jobs.restore()

    logger.info("HydraNag initialized successfully")


async def post_shutdown(application: Application) -> None:
    """Cleanup resources on shutdown."""
    repo: Repository = application.bot_data.get("repo")
    if repo:
        await repo.close()

    logger.info("HydraNag shut down")


def main() -> None:
    """Start the bot."""
    # Validate configuration
    try:
        Config.validate()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    # Create application
    application = (
        Application.builder()
        .token(Config.TELEGRAM_BOT_TOKEN)
        .post_init(post_init)
        .post_shutdown(post_shutdown)
        .build()
    )

    # Commands
    application.add_handler(CommandHandler("start", start_command))
    application.add_handler(CommandHandler("help", help_command))
    application.add_handler(CommandHandler("drink", drink_command))
    application.add_handler(CommandHandler("progress", progress_command))

    # Settings commands
    application.add_handler(CommandHandler("settings", settings_command))
    application.add_handler(CommandHandler("window", window_command))
    application.add_handler(CommandHandler("interval", interval_command))
    application.add_handler(CommandHandler("goal", goal_command))
    application.add_handler(CommandHandler("reminders", reminders_command))
    application.add_handler(CommandHandler("save", save_command))
    application.add_handler(CommandHandler("notifications", notifications_command))
    application.add_handler(CommandHandler("timezone", timezone_command))

    # Callback queries (buttons)
    application.add_handler(CallbackQueryHandler(callback_router))

    # Error handler
    application.add_error_handler(error_handler)

    # Start the bot
    logger.info("Starting HydraNag bot...")
    application.run_polling(allowed_updates=["message", "callback_query"])


if __name__ == "__main__":
    main()
