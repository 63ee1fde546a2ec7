"""Item rating service."""

from datetime import datetime, timezone

import aiosqlite

from stash_playlists.logging import get_logger
from stash_playlists.models import Item, ItemRating, RatingUpdate

logger = get_logger('services.items')


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_to_item(row: dict) -> Item:
    return Item(
        id=row["id"],
        title=row["title"],
        start_time=row["start_time"],
        end_time=row["end_time"],
        screenshot=row.get("screenshot"),
        stream=row.get("stream"),
        preview=row.get("preview"),
        rating=row.get("rating"),
        scene_id=row.get("scene_id"),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class ItemService:
    """Ratings for marker items kept in the local store."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    async def _get_db(self) -> aiosqlite.Connection:
        db = await aiosqlite.connect(self.db_path)
        db.row_factory = aiosqlite.Row
        await db.execute("PRAGMA foreign_keys = ON")
        return db

    async def get_item(self, item_id: str) -> Item | None:
        db = await self._get_db()
        try:
            cursor = await db.execute("SELECT * FROM items WHERE id = ?", (item_id,))
            row = await cursor.fetchone()
            return _row_to_item(dict(row)) if row else None
        finally:
            await db.close()

    async def get_rating(self, item_id: str) -> ItemRating:
        item = await self.get_item(item_id)
        if not item:
            raise LookupError("Item not found")
        return ItemRating(id=item.id, title=item.title, rating=item.rating)

    async def _create_item(self, item_id: str, data: RatingUpdate) -> None:
        now = _now()
        db = await self._get_db()
        try:
            await db.execute(
                """INSERT INTO items (id, title, start_time, end_time, screenshot, stream, preview, scene_id, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    item_id,
                    data.title or "",
                    data.start_time or 0.0,
                    data.end_time or 0.0,
                    data.screenshot,
                    data.stream,
                    data.preview,
                    data.scene_id,
                    now,
                    now,
                ),
            )
            await db.commit()
        finally:
            await db.close()
        logger.info(f"Created local item {item_id} for rating")

    async def set_rating(self, item_id: str, data: RatingUpdate) -> ItemRating:
        """
        Set or clear an item's rating, creating the item row if needed.

        :param item_id: Marker id of the item
        :type item_id: str
        :param data: Rating payload; ``rating`` omitted keeps the stored value
        :type data: RatingUpdate
        :return: The item's rating after the update
        :rtype: ItemRating
        """
        try:
            current = await self.get_rating(item_id)
        except LookupError:
            await self._create_item(item_id, data)
            current = await self.get_rating(item_id)

        if "rating" not in data.model_fields_set:
            return current

        db = await self._get_db()
        try:
            await db.execute(
                "UPDATE items SET rating = ?, updated_at = ? WHERE id = ?",
                (data.rating, _now(), item_id),
            )
            await db.commit()
        finally:
            await db.close()
        return await self.get_rating(item_id)

    async def get_ratings(self, item_ids: list[str]) -> dict[str, int]:
        ids = [i.strip() for i in item_ids if i.strip()]
        if not ids:
            return {}
        placeholders = ", ".join("?" for _ in ids)
        db = await self._get_db()
        try:
            cursor = await db.execute(
                f"SELECT id, rating FROM items WHERE id IN ({placeholders}) AND rating IS NOT NULL",
                ids,
            )
            rows = await cursor.fetchall()
            return {row["id"]: row["rating"] for row in rows}
        finally:
            await db.close()
