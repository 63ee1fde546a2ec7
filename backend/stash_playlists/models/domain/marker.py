"""Scene marker models: upstream records, drafts and draft references."""

from typing import Annotated, Literal, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from stash_playlists.models.enums import DraftState, MarkerSort


class Tag(BaseModel):
    """A Stash tag."""
    id: str
    name: str = ""


class Performer(BaseModel):
    id: str
    name: str = ""
    image_path: Optional[str] = None
    rating100: Optional[int] = None
    tags: list[Tag] = Field(default_factory=list)


class ScenePaths(BaseModel):
    screenshot: Optional[str] = None
    vtt: Optional[str] = None
    stream: Optional[str] = None
    preview: Optional[str] = None


class SceneRef(BaseModel):
    id: str
    title: Optional[str] = None


class Marker(BaseModel):
    """A scene marker as returned by Stash."""
    id: str
    title: str = ""
    seconds: float = 0.0
    end_seconds: Optional[float] = None
    primary_tag: Optional[Tag] = None
    tags: list[Tag] = Field(default_factory=list)
    scene: Optional[SceneRef] = None
    screenshot: Optional[str] = None
    stream: Optional[str] = None
    preview: Optional[str] = None

    @field_validator("title", mode="before")
    @classmethod
    def _null_title(cls, value):
        return value or ""

    @field_validator("seconds", mode="before")
    @classmethod
    def _null_seconds(cls, value):
        return value or 0.0

    @field_validator("tags", mode="before")
    @classmethod
    def _unique_tags(cls, value):
        if not value:
            return []
        seen: set[str] = set()
        unique = []
        for tag in value:
            tag_id = tag["id"] if isinstance(tag, dict) else tag.id
            if tag_id in seen:
                continue
            seen.add(tag_id)
            unique.append(tag)
        return unique


class Scene(BaseModel):
    """A Stash scene with the fields the marker editor needs."""
    id: str
    title: str = ""
    paths: ScenePaths = Field(default_factory=ScenePaths)
    tags: list[Tag] = Field(default_factory=list)
    scene_markers: list[Marker] = Field(default_factory=list)
    performers: list[Performer] = Field(default_factory=list)

    @field_validator("title", mode="before")
    @classmethod
    def _null_title(cls, value):
        return value or ""


class Draft(BaseModel):
    """Editable copy of a marker, existing or not yet created."""
    title: str = ""
    seconds: float = 0.0
    end_seconds: Optional[float] = None
    primary_tag_id: Optional[str] = None
    tag_ids: list[str] = Field(default_factory=list)


class DraftPatch(BaseModel):
    """Partial draft update. Only fields present in the payload are merged."""
    title: Optional[str] = None
    seconds: Optional[float] = None
    end_seconds: Optional[float] = None
    primary_tag_id: Optional[str] = None
    tag_ids: Optional[list[str]] = None


class DraftCreate(BaseModel):
    """Payload for starting a new marker draft."""
    seconds: float = Field(default=0.0, ge=0)
    title: str = ""
    end_seconds: Optional[float] = None
    primary_tag_id: Optional[str] = None
    tag_ids: list[str] = Field(default_factory=list)


class ExistingRef(BaseModel):
    """Draft of a marker that already exists upstream."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["existing"] = "existing"
    id: str


class PendingRef(BaseModel):
    """Draft of a marker that has not been created yet."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["pending"] = "pending"
    id: str = Field(default_factory=lambda: uuid4().hex)


MarkerRef = Annotated[Union[ExistingRef, PendingRef], Field(discriminator="kind")]


def make_ref(kind: str, ref_id: str) -> ExistingRef | PendingRef:
    if kind == "existing":
        return ExistingRef(id=ref_id)
    if kind == "pending":
        return PendingRef(id=ref_id)
    raise ValueError("kind must be one of: existing, pending")


class MarkerInput(BaseModel):
    """Create/update payload sent to the sceneMarker mutations."""
    id: Optional[str] = None
    scene_id: Optional[str] = None
    title: str
    seconds: float
    end_seconds: Optional[float] = None
    primary_tag_id: Optional[str] = None
    tag_ids: list[str] = Field(default_factory=list)


class DraftEntry(BaseModel):
    ref: MarkerRef
    draft: Draft
    dirty: bool
    state: DraftState
    primary_tag_name: Optional[str] = None


class EditSessionView(BaseModel):
    """Snapshot of one scene's editing session."""
    scene_id: str
    scene_title: str = ""
    entries: list[DraftEntry] = Field(default_factory=list)
    dirty_count: int = 0
    pending_delete: Optional[ExistingRef] = None


class BatchSaveResult(BaseModel):
    created: list[Marker] = Field(default_factory=list)
    updated: list[Marker] = Field(default_factory=list)


class MarkerCriteria(BaseModel):
    """Client-side filter and sort criteria for marker lists."""
    search: Optional[str] = None
    tag_ids: list[str] = Field(default_factory=list)
    min_rating: Optional[int] = Field(default=None, ge=1, le=5)
    sort: MarkerSort = MarkerSort.TITLE_ASC


class RatedMarker(Marker):
    """Upstream marker merged with its local rating."""
    rating: Optional[int] = None
