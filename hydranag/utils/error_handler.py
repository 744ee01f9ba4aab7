"""Global error handler for the bot."""

import logging
import traceback

from telegram import Update
from telegram.error import TelegramError
from telegram.ext import ContextTypes

from hydranag.engine.errors import PersistenceError

logger = logging.getLogger(__name__)


async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle errors in the bot."""
    # Log the error
    logger.error("Exception while handling an update:", exc_info=context.error)

    tb_list = traceback.format_exception(None, context.error, context.error.__traceback__)  # type: ignore
    tb_string = "".join(tb_list)
    logger.debug(f"Traceback:\n{tb_string}")

    # Try to notify the user
    if isinstance(update, Update) and update.effective_message:
        error = context.error
        error_message = (
            "😅 Oops! Something went wrong.\n\n"
            "The error has been logged. Please try again or use /help for assistance."
        )

        # Provide specific error messages for common issues
        if isinstance(error, PersistenceError):
            error_message = (
                "💾 I couldn't reach my storage just now.\n\n"
                "Nothing was changed. Please try again in a moment."
            )
        elif "Timeout" in str(error) or "Timed out" in str(error):
            error_message = (
                "⏱️ Request timed out.\n\n"
                "Please try again in a moment."
            )
        elif "Network" in str(error):
            error_message = (
                "🌐 Network error.\n\n"
                "Please check your connection and try again."
            )

        try:
            await update.effective_message.reply_text(error_message)
        except TelegramError as e:
            logger.error(f"Failed to send error message to user: {e}")
