"""Playlist domain models."""

from pydantic import BaseModel, Field
from typing import Any, Optional
from datetime import datetime, timezone
from uuid import uuid4

from stash_playlists.models.enums import PlaylistType


class PlaylistCreate(BaseModel):
    """Payload for creating a playlist."""
    name: str = Field(min_length=1)
    description: Optional[str] = None
    type: PlaylistType = PlaylistType.MANUAL
    conditions: Optional[dict[str, Any]] = None


class PlaylistUpdate(BaseModel):
    """Payload for updating a playlist. Only provided fields are patched."""
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    conditions: Optional[dict[str, Any]] = None


class Playlist(BaseModel):
    """A named, ordered collection of marker items."""
    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str
    description: Optional[str] = None
    type: PlaylistType = PlaylistType.MANUAL
    conditions: Optional[dict[str, Any]] = None
    item_count: int = 0
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class PlaylistItemInput(BaseModel):
    """Marker payload added to a playlist."""
    id: str = Field(min_length=1)
    title: str = ""
    start_time: float = Field(default=0.0, ge=0)
    end_time: float = Field(default=0.0, ge=0)
    screenshot: Optional[str] = None
    stream: Optional[str] = None
    preview: Optional[str] = None
    scene_id: Optional[str] = None


class PlaylistItemsAdd(BaseModel):
    items: list[PlaylistItemInput] = Field(min_length=1)


class PlaylistItemsAdded(BaseModel):
    message: str = "Upsert complete"
    count: int


class PlaylistItemRemove(BaseModel):
    item_id: str = Field(min_length=1)


class ItemOrder(BaseModel):
    id: str
    item_order: int = Field(ge=0)


class PlaylistOrderUpdate(BaseModel):
    ordered_items: list[ItemOrder]


class PlaylistEntry(BaseModel):
    """An item as it appears inside a playlist."""
    id: str
    title: str = ""
    start_time: float = 0.0
    end_time: float = 0.0
    screenshot: Optional[str] = None
    stream: Optional[str] = None
    preview: Optional[str] = None
    rating: Optional[int] = None
    scene_id: Optional[str] = None
    item_order: int = 0


class PlaylistDetail(Playlist):
    items: list[PlaylistEntry] = Field(default_factory=list)


class WallState(BaseModel):
    """Initial layout of the 2x2 video wall."""
    playlist_id: str
    quadrants: list[PlaylistEntry]
    queue: list[PlaylistEntry]
    next_index: int
