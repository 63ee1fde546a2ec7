"""
Database connection and initialization.
"""

import aiosqlite
from datetime import datetime, timezone
from pathlib import Path
from uuid import uuid4

from stash_playlists.config import settings
from stash_playlists.logging import get_logger
from stash_playlists.models import SETTING_DEFINITIONS

logger = get_logger('database')


async def _table_columns(db: aiosqlite.Connection, table_name: str) -> set[str]:
    cursor = await db.execute(f"PRAGMA table_info({table_name})")
    rows = await cursor.fetchall()
    return {row[1] for row in rows}


async def _migrate_items_rating(db: aiosqlite.Connection) -> None:
    item_columns = await _table_columns(db, "items")
    if "rating" in item_columns:
        return

    logger.info("Applying migration: add items.rating")
    await db.execute("ALTER TABLE items ADD COLUMN rating INTEGER")


async def _seed_default_settings(db: aiosqlite.Connection) -> int:
    now = datetime.now(timezone.utc).isoformat()
    seeded = 0
    for definition in SETTING_DEFINITIONS:
        cursor = await db.execute(
            """INSERT INTO settings (id, key, value, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?)
               ON CONFLICT(key) DO NOTHING""",
            (str(uuid4()), definition.key, definition.default_value, now, now),
        )
        seeded += cursor.rowcount
    return seeded


async def init_db(db_path: str | None = None):
    """
    Initialize database with schema.

    :param db_path: Database file, defaults to ``settings.DATABASE_PATH``
    :type db_path: str | None
    :return: None
    :rtype: None
    """
    path = Path(db_path or settings.DATABASE_PATH)
    path.parent.mkdir(parents=True, exist_ok=True)

    async with aiosqlite.connect(path) as db:
        schema_path = Path(__file__).parent / "init_db.sql"
        with open(schema_path) as f:
            await db.executescript(f.read())
        await _migrate_items_rating(db)
        seeded = await _seed_default_settings(db)
        await db.commit()
        if seeded:
            logger.info(f"Seeded {seeded} default settings")
        logger.info(f"Database initialized at {path}")
