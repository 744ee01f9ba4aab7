"""Inline keyboard builders."""

from telegram import InlineKeyboardButton, InlineKeyboardMarkup


def drink_keyboard(deep_link: str) -> InlineKeyboardMarkup:
    """Keyboard for reminder notifications: tap to log the suggested dose."""
    return InlineKeyboardMarkup(
        [[InlineKeyboardButton("💧 Log it", callback_data=deep_link)]]
    )


def confirm_intake_keyboard(amount_ml: int) -> InlineKeyboardMarkup:
    """Keyboard for intake confirmation: Log, Cancel."""
    return InlineKeyboardMarkup(
        [
            [
                InlineKeyboardButton(f"✓ Log {amount_ml} mL", callback_data=f"intake:{amount_ml}"),
                InlineKeyboardButton("✗ Cancel", callback_data="cancel:intake"),
            ]
        ]
    )


def save_settings_keyboard() -> InlineKeyboardMarkup:
    """Keyboard under a draft preview: Save, Discard."""
    return InlineKeyboardMarkup(
        [
            [
                InlineKeyboardButton("✓ Save & schedule", callback_data="save:settings"),
                InlineKeyboardButton("✗ Discard", callback_data="cancel:settings"),
            ]
        ]
    )
