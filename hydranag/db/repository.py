"""Database repository - all SQL queries."""

import functools
import logging
from datetime import date, datetime, time
from pathlib import Path
from typing import List

import aiosqlite

from hydranag.db.models import IntakeState, PendingJob, ReminderSettings, User
from hydranag.engine.errors import PersistenceError
from hydranag.engine.time_window import TimeWindow

logger = logging.getLogger(__name__)


def store_operation(func):
    """Surface SQLite failures as PersistenceError."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except aiosqlite.Error as e:
            logger.error(f"{func.__name__} failed: {e}")
            raise PersistenceError(f"{func.__name__} failed: {e}") from e

    return wrapper


class Repository:
    """Database access layer.

    Also serves as the engine's intake store: settings and intake methods
    raise PersistenceError on database failures.
    """

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """Open database connection."""
        self._db = await aiosqlite.connect(self.db_path)
        self._db.row_factory = aiosqlite.Row
        await self._db.execute("PRAGMA foreign_keys = ON")
        logger.info(f"Connected to database at {self.db_path}")

    async def close(self) -> None:
        """Close database connection."""
        if self._db:
            await self._db.close()
            self._db = None
            logger.info("Database connection closed")

    @property
    def db(self) -> aiosqlite.Connection:
        """Get the database connection."""
        if self._db is None:
            raise RuntimeError("Database not connected")
        return self._db

    # User operations

    @store_operation
    async def get_user_by_telegram_id(self, telegram_id: int) -> User | None:
        """Get user by Telegram ID."""
        async with self.db.execute(
            "SELECT * FROM users WHERE telegram_id = ?", (telegram_id,)
        ) as cursor:
            row = await cursor.fetchone()
            return self._row_to_user(row) if row else None

    @store_operation
    async def get_user_by_id(self, user_id: int) -> User | None:
        """Get user by database ID."""
        async with self.db.execute(
            "SELECT * FROM users WHERE id = ?", (user_id,)
        ) as cursor:
            row = await cursor.fetchone()
            return self._row_to_user(row) if row else None

    @store_operation
    async def create_user(self, telegram_id: int) -> User:
        """Create a new user with default settings."""
        async with self.db.execute(
            """
            INSERT INTO users (telegram_id)
            VALUES (?)
            RETURNING *
            """,
            (telegram_id,),
        ) as cursor:
            row = await cursor.fetchone()
        await self.db.commit()

        logger.info(f"Created user {telegram_id}")
        return self._row_to_user(row)

    @store_operation
    async def update_user_settings(
        self,
        user_id: int,
        timezone: str | None = None,
        notifications_enabled: bool | None = None,
    ) -> None:
        """Update user settings. Fields left as None are not touched."""
        updates = []
        params: list = []

        if timezone is not None:
            updates.append("timezone = ?")
            params.append(timezone)
        if notifications_enabled is not None:
            updates.append("notifications_enabled = ?")
            params.append(1 if notifications_enabled else 0)

        if updates:
            params.append(user_id)
            await self.db.execute(
                f"UPDATE users SET {', '.join(updates)} WHERE id = ?", params
            )
            await self.db.commit()

    # Reminder settings

    @store_operation
    async def get_reminder_settings(self, user_id: int) -> ReminderSettings | None:
        """Get the saved reminder settings snapshot, if the user ever saved one."""
        async with self.db.execute(
            "SELECT * FROM reminder_settings WHERE user_id = ?", (user_id,)
        ) as cursor:
            row = await cursor.fetchone()
            if row:
                return ReminderSettings(
                    window=TimeWindow(
                        start=time.fromisoformat(row["start_time"]),
                        end=time.fromisoformat(row["end_time"]),
                    ),
                    interval_minutes=row["interval_minutes"],
                    daily_goal_ml=row["daily_goal_ml"],
                    enabled=bool(row["enabled"]),
                )
            return None

    @store_operation
    async def save_reminder_settings(self, user_id: int, settings: ReminderSettings) -> None:
        """Replace the user's reminder settings snapshot."""
        await self.db.execute(
            """
            INSERT INTO reminder_settings (
                user_id, start_time, end_time, interval_minutes, daily_goal_ml, enabled
            ) VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(user_id) DO UPDATE SET
                start_time = excluded.start_time,
                end_time = excluded.end_time,
                interval_minutes = excluded.interval_minutes,
                daily_goal_ml = excluded.daily_goal_ml,
                enabled = excluded.enabled,
                updated_at = datetime('now')
            """,
            (
                user_id,
                settings.window.start.isoformat(timespec="minutes"),
                settings.window.end.isoformat(timespec="minutes"),
                settings.interval_minutes,
                settings.daily_goal_ml,
                1 if settings.enabled else 0,
            ),
        )
        await self.db.commit()

    # Intake operations

    @store_operation
    async def get_intake(self, user_id: int, day: date) -> IntakeState | None:
        """Get the intake recorded for a day, or None before the first write."""
        async with self.db.execute(
            "SELECT * FROM intake WHERE user_id = ? AND date = ?",
            (user_id, day.isoformat()),
        ) as cursor:
            row = await cursor.fetchone()
            return self._row_to_intake(row) if row else None

    @store_operation
    async def set_intake(self, user_id: int, state: IntakeState) -> None:
        """Write a day's intake, creating the row on the first write."""
        await self.db.execute(
            """
            INSERT INTO intake (user_id, date, consumed_ml) VALUES (?, ?, ?)
            ON CONFLICT(user_id, date) DO UPDATE SET
                consumed_ml = excluded.consumed_ml,
                updated_at = datetime('now')
            """,
            (user_id, state.date.isoformat(), state.consumed_ml),
        )
        await self.db.commit()

    @store_operation
    async def add_intake(self, user_id: int, day: date, amount_ml: int) -> IntakeState:
        """Add to a day's intake in one statement and return the new total."""
        async with self.db.execute(
            """
            INSERT INTO intake (user_id, date, consumed_ml) VALUES (?, ?, ?)
            ON CONFLICT(user_id, date) DO UPDATE SET
                consumed_ml = consumed_ml + excluded.consumed_ml,
                updated_at = datetime('now')
            RETURNING *
            """,
            (user_id, day.isoformat(), amount_ml),
        ) as cursor:
            row = await cursor.fetchone()
        await self.db.commit()
        return self._row_to_intake(row)

    # Pending job operations

    @store_operation
    async def add_pending_job(self, job: PendingJob) -> PendingJob:
        """Record a queued reminder job so it survives a restart."""
        async with self.db.execute(
            """
            INSERT INTO scheduled_jobs (
                user_id, tag, notification_id, dose_ml, scheduled_time, fire_at
            ) VALUES (?, ?, ?, ?, ?, ?)
            RETURNING *
            """,
            (
                job.user_id,
                job.tag,
                job.notification_id,
                job.dose_ml,
                job.scheduled_time.isoformat(),
                job.fire_at.isoformat(),
            ),
        ) as cursor:
            row = await cursor.fetchone()
        await self.db.commit()
        return self._row_to_pending_job(row)

    @store_operation
    async def get_pending_job(self, job_id: int) -> PendingJob | None:
        """Get a pending job by ID."""
        async with self.db.execute(
            "SELECT * FROM scheduled_jobs WHERE id = ?", (job_id,)
        ) as cursor:
            row = await cursor.fetchone()
            return self._row_to_pending_job(row) if row else None

    @store_operation
    async def delete_pending_job(self, job_id: int) -> bool:
        """Remove a job once it fired. Returns False if it was already gone."""
        cursor = await self.db.execute("DELETE FROM scheduled_jobs WHERE id = ?", (job_id,))
        await self.db.commit()
        return cursor.rowcount > 0

    @store_operation
    async def delete_pending_jobs(self, tag: str) -> int:
        """Remove every pending job under a tag, returning how many went."""
        cursor = await self.db.execute("DELETE FROM scheduled_jobs WHERE tag = ?", (tag,))
        await self.db.commit()
        return cursor.rowcount

    @store_operation
    async def get_pending_jobs(self, tag: str | None = None) -> List[PendingJob]:
        """Get pending jobs in firing order, optionally for a single tag."""
        if tag:
            query = "SELECT * FROM scheduled_jobs WHERE tag = ? ORDER BY fire_at"
            params: tuple = (tag,)
        else:
            query = "SELECT * FROM scheduled_jobs ORDER BY fire_at"
            params = ()

        async with self.db.execute(query, params) as cursor:
            rows = await cursor.fetchall()
            return [self._row_to_pending_job(row) for row in rows]

    # Helper methods

    def _row_to_user(self, row: aiosqlite.Row) -> User:
        return User(
            id=row["id"],
            telegram_id=row["telegram_id"],
            timezone=row["timezone"],
            notifications_enabled=bool(row["notifications_enabled"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def _row_to_intake(self, row: aiosqlite.Row) -> IntakeState:
        return IntakeState(
            date=date.fromisoformat(row["date"]),
            consumed_ml=row["consumed_ml"],
        )

    def _row_to_pending_job(self, row: aiosqlite.Row) -> PendingJob:
        return PendingJob(
            id=row["id"],
            user_id=row["user_id"],
            tag=row["tag"],
            notification_id=row["notification_id"],
            dose_ml=row["dose_ml"],
            scheduled_time=time.fromisoformat(row["scheduled_time"]),
            fire_at=datetime.fromisoformat(row["fire_at"]),
        )
