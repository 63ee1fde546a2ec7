"""
Playlist management service.
"""

import json
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

import aiosqlite

from stash_playlists.logging import get_logger
from stash_playlists.models import (
    ItemOrder,
    Playlist,
    PlaylistCreate,
    PlaylistDetail,
    PlaylistEntry,
    PlaylistItemInput,
    PlaylistUpdate,
)

logger = get_logger('services.playlists')


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _load_json(raw: str | None, fallback: Any) -> Any:
    if not raw:
        return fallback
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return fallback


def _row_to_playlist(row: dict) -> Playlist:
    return Playlist(
        id=row["id"],
        name=row["name"],
        description=row.get("description"),
        type=row["type"],
        conditions=_load_json(row.get("conditions"), None),
        item_count=row.get("item_count") or 0,
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_entry(row: dict) -> PlaylistEntry:
    return PlaylistEntry(
        id=row["id"],
        title=row["title"],
        start_time=row["start_time"],
        end_time=row["end_time"],
        screenshot=row.get("screenshot"),
        stream=row.get("stream"),
        preview=row.get("preview"),
        rating=row.get("rating"),
        scene_id=row.get("scene_id"),
        item_order=row["item_order"],
    )


PLAYLIST_SELECT = """
    SELECT p.*, (SELECT COUNT(*) FROM playlist_items pi WHERE pi.playlist_id = p.id) AS item_count
    FROM playlists p
"""


class PlaylistService:
    """Service for playlists and their ordered items."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    async def _get_db(self) -> aiosqlite.Connection:
        db = await aiosqlite.connect(self.db_path)
        db.row_factory = aiosqlite.Row
        await db.execute("PRAGMA foreign_keys = ON")
        return db

    async def list_playlists(self) -> list[Playlist]:
        db = await self._get_db()
        try:
            cursor = await db.execute(f"{PLAYLIST_SELECT} ORDER BY p.created_at DESC")
            rows = await cursor.fetchall()
            return [_row_to_playlist(dict(r)) for r in rows]
        finally:
            await db.close()

    async def get_playlist(self, playlist_id: str) -> Playlist | None:
        db = await self._get_db()
        try:
            cursor = await db.execute(f"{PLAYLIST_SELECT} WHERE p.id = ?", (playlist_id,))
            row = await cursor.fetchone()
            return _row_to_playlist(dict(row)) if row else None
        finally:
            await db.close()

    async def get_playlist_detail(self, playlist_id: str) -> PlaylistDetail | None:
        playlist = await self.get_playlist(playlist_id)
        if not playlist:
            return None
        items = await self.list_items(playlist_id)
        return PlaylistDetail(**playlist.model_dump(), items=items)

    async def create_playlist(self, data: PlaylistCreate) -> Playlist:
        now = _now()
        playlist = Playlist(
            id=str(uuid4()),
            name=data.name,
            description=data.description,
            type=data.type,
            conditions=data.conditions,
            created_at=now,
            updated_at=now,
        )
        db = await self._get_db()
        try:
            await db.execute(
                """INSERT INTO playlists (id, name, description, type, conditions, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?)""",
                (
                    playlist.id,
                    playlist.name,
                    playlist.description,
                    playlist.type.value,
                    json.dumps(playlist.conditions) if playlist.conditions is not None else None,
                    now,
                    now,
                ),
            )
            await db.commit()
        finally:
            await db.close()

        logger.info(f"Created playlist: {playlist.name} ({playlist.id[:8]})")
        return playlist

    async def update_playlist(self, playlist_id: str, data: PlaylistUpdate) -> Playlist | None:
        existing = await self.get_playlist(playlist_id)
        if not existing:
            return None

        fields: dict = {}
        if data.name is not None:
            fields["name"] = data.name
        if data.description is not None:
            fields["description"] = data.description
        if data.conditions is not None:
            fields["conditions"] = json.dumps(data.conditions)

        if not fields:
            return existing

        fields["updated_at"] = _now()
        set_clause = ", ".join(f"{k} = ?" for k in fields)
        params = list(fields.values()) + [playlist_id]

        db = await self._get_db()
        try:
            await db.execute(f"UPDATE playlists SET {set_clause} WHERE id = ?", params)
            await db.commit()
        finally:
            await db.close()

        return await self.get_playlist(playlist_id)

    async def delete_playlist(self, playlist_id: str) -> bool:
        db = await self._get_db()
        try:
            cursor = await db.execute("DELETE FROM playlists WHERE id = ?", (playlist_id,))
            await db.commit()
            deleted = cursor.rowcount > 0
        finally:
            await db.close()

        if deleted:
            logger.info(f"Deleted playlist {playlist_id[:8]} and its memberships")
        return deleted

    async def list_items(self, playlist_id: str) -> list[PlaylistEntry]:
        db = await self._get_db()
        try:
            cursor = await db.execute(
                """SELECT i.*, pi.item_order
                   FROM playlist_items pi
                   JOIN items i ON i.id = pi.item_id
                   WHERE pi.playlist_id = ?
                   ORDER BY pi.item_order, pi.created_at""",
                (playlist_id,),
            )
            rows = await cursor.fetchall()
            return [_row_to_entry(dict(r)) for r in rows]
        finally:
            await db.close()

    async def add_items(self, playlist_id: str, items: list[PlaylistItemInput]) -> int:
        """
        Upsert items and append the ones not yet in the playlist.

        :param playlist_id: Target playlist
        :type playlist_id: str
        :param items: Marker payloads to add
        :type items: list[PlaylistItemInput]
        :return: Number of memberships added
        :rtype: int
        :raises LookupError: When the playlist does not exist
        """
        if not await self.get_playlist(playlist_id):
            raise LookupError("Playlist not found")

        now = _now()
        added = 0
        db = await self._get_db()
        try:
            cursor = await db.execute(
                "SELECT MAX(item_order) FROM playlist_items WHERE playlist_id = ?",
                (playlist_id,),
            )
            row = await cursor.fetchone()
            next_order = row[0] + 1 if row and row[0] is not None else 0

            for item in items:
                await db.execute(
                    """INSERT INTO items (id, title, start_time, end_time, screenshot, stream, preview, scene_id, created_at, updated_at)
                       VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                       ON CONFLICT(id) DO UPDATE SET
                           title = excluded.title,
                           start_time = excluded.start_time,
                           end_time = excluded.end_time,
                           screenshot = excluded.screenshot,
                           stream = excluded.stream,
                           preview = COALESCE(excluded.preview, items.preview),
                           scene_id = COALESCE(excluded.scene_id, items.scene_id),
                           updated_at = excluded.updated_at""",
                    (
                        item.id, item.title, item.start_time, item.end_time,
                        item.screenshot, item.stream, item.preview, item.scene_id,
                        now, now,
                    ),
                )
                cursor = await db.execute(
                    """INSERT INTO playlist_items (id, playlist_id, item_id, item_order, created_at, updated_at)
                       VALUES (?, ?, ?, ?, ?, ?)
                       ON CONFLICT(playlist_id, item_id) DO NOTHING""",
                    (str(uuid4()), playlist_id, item.id, next_order, now, now),
                )
                if cursor.rowcount > 0:
                    next_order += 1
                    added += 1
            await db.commit()
        finally:
            await db.close()

        logger.info(f"Added {added} item(s) to playlist {playlist_id[:8]}")
        return added

    async def remove_item(self, playlist_id: str, item_id: str) -> bool:
        db = await self._get_db()
        try:
            cursor = await db.execute(
                "DELETE FROM playlist_items WHERE playlist_id = ? AND item_id = ?",
                (playlist_id, item_id),
            )
            await db.commit()
            return cursor.rowcount > 0
        finally:
            await db.close()

    async def reorder_items(self, playlist_id: str, ordered_items: list[ItemOrder]) -> int:
        if not await self.get_playlist(playlist_id):
            raise LookupError("Playlist not found")

        now = _now()
        updated = 0
        db = await self._get_db()
        try:
            for entry in ordered_items:
                cursor = await db.execute(
                    """UPDATE playlist_items SET item_order = ?, updated_at = ?
                       WHERE playlist_id = ? AND item_id = ?""",
                    (entry.item_order, now, playlist_id, entry.id),
                )
                updated += cursor.rowcount
            await db.commit()
        finally:
            await db.close()
        return updated
