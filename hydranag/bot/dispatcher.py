"""Telegram delivery of reminder notifications."""

import logging
from datetime import date
from typing import Dict, Tuple

from telegram import Bot

from hydranag.bot.formatters import format_notification
from hydranag.bot.keyboards import drink_keyboard
from hydranag.db.repository import Repository
from hydranag.utils.time_utils import local_now

logger = logging.getLogger(__name__)


class TelegramDispatcher:
    """Sends reminder messages and tracks which ones are still showing.

    A notification stays active from the moment it is sent until the user
    taps it, or until the user's local day changes (ids repeat daily).
    """

    def __init__(self, bot: Bot, repo: Repository):
        self.bot = bot
        self.repo = repo
        # (user_id, notification_id) -> (local date shown, telegram message id)
        self._active: Dict[Tuple[int, int], Tuple[date, int]] = {}

    async def is_enabled(self, user_id: int) -> bool:
        user = await self.repo.get_user_by_id(user_id)
        return bool(user and user.notifications_enabled)

    async def is_active(self, user_id: int, notification_id: int) -> bool:
        entry = self._active.get((user_id, notification_id))
        if entry is None:
            return False

        user = await self.repo.get_user_by_id(user_id)
        if not user:
            return False

        shown_on, _ = entry
        if shown_on != local_now(user.timezone).date():
            del self._active[(user_id, notification_id)]
            return False
        return True

    async def show(
        self,
        user_id: int,
        notification_id: int,
        title: str,
        body: str,
        deep_link: str,
    ) -> None:
        """Send one reminder message with a button carrying the deep link."""
        user = await self.repo.get_user_by_id(user_id)
        if not user:
            logger.warning(f"User not found for notification {notification_id}")
            return

        sent_message = await self.bot.send_message(
            chat_id=user.telegram_id,
            text=format_notification(title, body),
            parse_mode="HTML",
            reply_markup=drink_keyboard(deep_link),
        )

        self._active[(user_id, notification_id)] = (
            local_now(user.timezone).date(),
            sent_message.message_id,
        )

    def dismiss(self, user_id: int, message_id: int) -> bool:
        """Forget the notification shown as ``message_id`` (tapped by the user)."""
        for key, (_, active_message_id) in list(self._active.items()):
            if key[0] == user_id and active_message_id == message_id:
                del self._active[key]
                return True
        return False
