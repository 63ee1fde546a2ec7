"""Item (locally stored marker payload) and rating models."""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime, timezone


class Item(BaseModel):
    """A marker-derived item kept in the local store."""
    id: str
    title: str = ""
    start_time: float = 0.0
    end_time: float = 0.0
    screenshot: Optional[str] = None
    stream: Optional[str] = None
    preview: Optional[str] = None
    rating: Optional[int] = None
    scene_id: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ItemRating(BaseModel):
    id: str
    title: str = ""
    rating: Optional[int] = None


class RatingUpdate(BaseModel):
    """
    Payload for rating an item.

    ``rating`` may be null to clear it; when omitted the stored rating is
    kept. The remaining fields are used only when the item has no local
    row yet.
    """
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    title: Optional[str] = None
    start_time: Optional[float] = None
    end_time: Optional[float] = None
    screenshot: Optional[str] = None
    stream: Optional[str] = None
    preview: Optional[str] = None
    scene_id: Optional[str] = None


class RatingsLookup(BaseModel):
    success: bool = True
    ratings: dict[str, int] = Field(default_factory=dict)
