"""
Actor management service.
"""

from datetime import datetime, timezone

import aiosqlite

from stash_playlists.logging import get_logger
from stash_playlists.models import Actor, ActorUpsert

logger = get_logger('services.actors')


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_to_actor(row: dict) -> Actor:
    return Actor(
        id=row["id"],
        name=row["name"],
        image_path=row["image_path"],
        rating=row["rating"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class ActorService:
    """Service for performers saved into the app."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    async def _get_db(self) -> aiosqlite.Connection:
        db = await aiosqlite.connect(self.db_path)
        db.row_factory = aiosqlite.Row
        await db.execute("PRAGMA foreign_keys = ON")
        return db

    async def list_actors(self) -> list[Actor]:
        db = await self._get_db()
        try:
            cursor = await db.execute("SELECT * FROM actors ORDER BY created_at DESC")
            rows = await cursor.fetchall()
            return [_row_to_actor(dict(r)) for r in rows]
        finally:
            await db.close()

    async def get_actor(self, actor_id: str) -> Actor | None:
        db = await self._get_db()
        try:
            cursor = await db.execute("SELECT * FROM actors WHERE id = ?", (actor_id,))
            row = await cursor.fetchone()
            return _row_to_actor(dict(row)) if row else None
        finally:
            await db.close()

    async def upsert_actor(self, data: ActorUpsert) -> Actor:
        now = _now()
        db = await self._get_db()
        try:
            await db.execute(
                """INSERT INTO actors (id, name, image_path, rating, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?)
                   ON CONFLICT(id) DO UPDATE SET
                       name = excluded.name,
                       image_path = excluded.image_path,
                       rating = excluded.rating,
                       updated_at = excluded.updated_at""",
                (data.id, data.name, data.image_path, data.rating, now, now),
            )
            await db.commit()
        finally:
            await db.close()

        logger.info(f"Saved actor: {data.name} ({data.id})")
        return await self.get_actor(data.id)

    async def delete_actor(self, actor_id: str) -> bool:
        db = await self._get_db()
        try:
            cursor = await db.execute("DELETE FROM actors WHERE id = ?", (actor_id,))
            await db.commit()
            return cursor.rowcount > 0
        finally:
            await db.close()
