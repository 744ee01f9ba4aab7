"""Fire-time decision: should this reminder actually be shown?"""

import logging
from datetime import datetime
from enum import Enum

from hydranag.engine.interfaces import NotificationDispatcher
from hydranag.engine.planner import ReminderPayload
from hydranag.utils.constants import (
    DEEP_LINK_PREFIX,
    NOTIFICATION_TITLE,
    STALE_TOLERANCE_MINUTES,
)
from hydranag.utils.time_utils import at_time, format_time, whole_minutes_between

logger = logging.getLogger(__name__)


class GateOutcome(str, Enum):
    SHOWN = "shown"
    SUPPRESSED_DISABLED = "suppressed_disabled"
    SUPPRESSED_STALE = "suppressed_stale"
    SUPPRESSED_DUPLICATE = "suppressed_duplicate"

    @property
    def suppressed(self) -> bool:
        return self is not GateOutcome.SHOWN


def deep_link(dose_ml: int) -> str:
    """Route back into intake recording with the dose pre-filled."""
    return f"{DEEP_LINK_PREFIX}/{float(dose_ml)}"


def parse_deep_link(link: str) -> int:
    """Dose in millilitres from an ``add_water_intake/<dose>`` link.

    Raises:
        ValueError: if the link is not an intake link
    """
    prefix, _, amount = link.partition("/")
    if prefix != DEEP_LINK_PREFIX or not amount:
        raise ValueError(f"Not an intake link: {link}")
    try:
        dose = int(float(amount))
    except OverflowError as e:
        raise ValueError(f"Dose out of range in link: {link}") from e
    if dose < 0:
        raise ValueError(f"Negative dose in link: {link}")
    return dose


def notification_body(dose_ml: int) -> str:
    return f"Drink {dose_ml / 1000:.1f}L of water now"


class ReminderGate:
    """Decides, when a reminder job fires, whether to surface it.

    Holds no state of its own; "enabled" and "already showing" are both
    answered by the dispatcher.
    """

    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        tolerance_minutes: int = STALE_TOLERANCE_MINUTES,
    ):
        self.dispatcher = dispatcher
        self.tolerance_minutes = tolerance_minutes

    async def fire(
        self,
        user_id: int,
        notification_id: int,
        payload: ReminderPayload,
        now: datetime,
    ) -> GateOutcome:
        """Run the checks and show the notification if they all pass.

        Args:
            user_id: Owner of the reminder
            notification_id: The job's id, reused as the notification id
            payload: Dose and scheduled wall-clock time
            now: Current time in the user's timezone
        """
        if not await self.dispatcher.is_enabled(user_id):
            logger.info(f"Reminder {notification_id} for user {user_id} skipped: notifications disabled")
            return GateOutcome.SUPPRESSED_DISABLED

        scheduled = at_time(now, payload.scheduled_time)
        minutes_off = abs(whole_minutes_between(scheduled, now))
        if minutes_off > self.tolerance_minutes:
            logger.info(
                f"Reminder {notification_id} for user {user_id} skipped: scheduled for "
                f"{format_time(payload.scheduled_time)}, {minutes_off} minutes off"
            )
            return GateOutcome.SUPPRESSED_STALE

        if await self.dispatcher.is_active(user_id, notification_id):
            logger.info(f"Reminder {notification_id} for user {user_id} already showing, skipping")
            return GateOutcome.SUPPRESSED_DUPLICATE

        await self.dispatcher.show(
            user_id,
            notification_id,
            NOTIFICATION_TITLE,
            notification_body(payload.dose_ml),
            deep_link(payload.dose_ml),
        )
        logger.info(f"Showed reminder {notification_id} for user {user_id} ({payload.dose_ml} mL)")
        return GateOutcome.SHOWN
