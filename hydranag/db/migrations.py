"""Schema setup, tracked with SQLite's ``user_version`` pragma."""

import logging
from pathlib import Path

import aiosqlite

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
SCHEMA_PATH = Path(__file__).with_name("schema.sql")


async def schema_version(db: aiosqlite.Connection) -> int:
    """Version stamped on the database file, 0 for a fresh file."""
    async with db.execute("PRAGMA user_version") as cursor:
        row = await cursor.fetchone()
    return row[0] if row else 0


async def run_migrations(db_path: Path) -> int:
    """Bring the database file at ``db_path`` to ``SCHEMA_VERSION``.

    Returns:
        The schema version the file ended up at

    Raises:
        RuntimeError: if the file was written by a newer release
    """
    async with aiosqlite.connect(db_path) as db:
        found = await schema_version(db)

        if found > SCHEMA_VERSION:
            raise RuntimeError(
                f"Database {db_path} has schema v{found}, this release knows v{SCHEMA_VERSION}"
            )

        if found == SCHEMA_VERSION:
            logger.debug(f"Database {db_path} already at schema v{found}")
            return found

        await db.executescript(SCHEMA_PATH.read_text())
        await db.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
        await db.commit()

    logger.info(f"Database {db_path} migrated from schema v{found} to v{SCHEMA_VERSION}")
    return SCHEMA_VERSION
