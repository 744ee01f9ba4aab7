"""Tests for schema setup."""

import aiosqlite
import pytest

from hydranag.db.migrations import SCHEMA_VERSION, run_migrations, schema_version


@pytest.mark.asyncio
async def test_fresh_database_is_stamped(tmp_path):
    """Test a new file gets the tables and the current version."""
    db_path = tmp_path / "fresh.db"

    assert await run_migrations(db_path) == SCHEMA_VERSION

    async with aiosqlite.connect(db_path) as db:
        assert await schema_version(db) == SCHEMA_VERSION
        async with db.execute("SELECT name FROM sqlite_master WHERE type = 'table'") as cursor:
            tables = {row[0] for row in await cursor.fetchall()}

    assert {"users", "reminder_settings", "intake", "scheduled_jobs"} <= tables


@pytest.mark.asyncio
async def test_migrations_are_idempotent(tmp_path):
    """Test running on every start keeps existing data."""
    db_path = tmp_path / "again.db"
    await run_migrations(db_path)

    async with aiosqlite.connect(db_path) as db:
        await db.execute("INSERT INTO users (telegram_id) VALUES (42)")
        await db.commit()

    assert await run_migrations(db_path) == SCHEMA_VERSION

    async with aiosqlite.connect(db_path) as db:
        async with db.execute("SELECT COUNT(*) FROM users") as cursor:
            assert (await cursor.fetchone())[0] == 1


@pytest.mark.asyncio
async def test_newer_schema_is_refused(tmp_path):
    """Test a file from a newer release is not touched."""
    db_path = tmp_path / "newer.db"
    async with aiosqlite.connect(db_path) as db:
        await db.execute(f"PRAGMA user_version = {SCHEMA_VERSION + 1}")
        await db.commit()

    with pytest.raises(RuntimeError):
        await run_migrations(db_path)
