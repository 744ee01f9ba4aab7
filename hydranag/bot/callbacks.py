"""Callback query handlers for inline buttons."""

import logging

from telegram import Update
from telegram.ext import ContextTypes

from hydranag.bot.dispatcher import TelegramDispatcher
from hydranag.bot.handlers import DRAFT_KEY, record_intake, require_user, save_draft
from hydranag.bot.keyboards import confirm_intake_keyboard
from hydranag.engine.gate import parse_deep_link
from hydranag.utils.constants import DEEP_LINK_PREFIX, MAX_SINGLE_INTAKE_ML

logger = logging.getLogger(__name__)


async def handle_drink_link(update: Update, context: ContextTypes.DEFAULT_TYPE, link: str) -> None:
    """Handle a tap on a reminder notification.

    Dismisses the notification and opens the intake confirmation with the
    reminder's dose filled in.
    """
    query = update.callback_query
    if not query or not update.effective_user:
        return

    user = await require_user(update, context)
    if not user:
        await query.answer()
        return

    try:
        dose = parse_deep_link(link)
    except ValueError:
        await query.answer("Unknown action")
        return

    dispatcher: TelegramDispatcher = context.bot_data["dispatcher"]
    if query.message:
        dispatcher.dismiss(user.id, query.message.message_id)  # type: ignore

    await query.answer()

    if not query.message:
        return

    if dose == 0:
        await query.message.edit_text(
            "🎉 You've already reached today's goal.\n\nUse /drink to log anything extra."
        )
        return

    await query.message.edit_text(
        f"💧 <b>Log {dose} mL?</b>",
        parse_mode="HTML",
        reply_markup=confirm_intake_keyboard(dose),
    )


async def handle_intake_confirmation(
    update: Update, context: ContextTypes.DEFAULT_TYPE, amount_ml: int
) -> None:
    """Handle 'Log' button press on an intake confirmation."""
    query = update.callback_query
    if not query or not update.effective_user:
        return

    user = await require_user(update, context)
    if not user:
        await query.answer()
        return

    if not 0 < amount_ml <= MAX_SINGLE_INTAKE_ML:
        await query.answer("Invalid amount")
        return

    message = await record_intake(context, user, amount_ml)

    if query.message:
        await query.message.edit_text(message, parse_mode="HTML")
    await query.answer(f"✓ Logged {amount_ml} mL")


async def handle_save_settings(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle 'Save & schedule' button press under a draft preview."""
    query = update.callback_query
    if not query or not update.effective_user:
        return

    user = await require_user(update, context)
    if not user:
        await query.answer()
        return

    await query.answer()
    message = await save_draft(context, user)

    if query.message:
        await query.message.edit_text(message, parse_mode="HTML")


async def callback_router(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Route callback queries to appropriate handlers."""
    if not update.callback_query:
        return

    query = update.callback_query
    data = query.data

    if not data:
        return

    if data.startswith(f"{DEEP_LINK_PREFIX}/"):
        await handle_drink_link(update, context, data)
        return

    # Parse callback data
    parts = data.split(":")

    if parts[0] == "intake" and len(parts) == 2:
        try:
            amount = int(parts[1])
        except ValueError:
            await query.answer("Invalid amount")
            return
        await handle_intake_confirmation(update, context, amount)

    elif parts[0] == "save" and parts[1:] == ["settings"]:
        await handle_save_settings(update, context)

    elif parts[0] == "cancel":
        if parts[1:] == ["settings"]:
            context.user_data.pop(DRAFT_KEY, None)
            if query.message:
                await query.message.edit_text("❌ Changes discarded.")
        elif query.message:
            await query.message.edit_text("❌ Cancelled.")
        await query.answer("Cancelled")

    else:
        await query.answer("Unknown action")
