"""Actor domain model."""

from pydantic import BaseModel, Field
from datetime import datetime, timezone


class ActorUpsert(BaseModel):
    """Payload for saving a performer into the app."""
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    image_path: str = Field(min_length=1)
    rating: int


class Actor(BaseModel):
    """A Stash performer imported into the local store."""
    id: str
    name: str
    image_path: str
    rating: int
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
