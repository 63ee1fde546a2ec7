"""
Stash Playlists models.

Usage:
    from stash_playlists.models import Marker, Draft, ExistingRef, PendingRef
    from stash_playlists.models import Playlist, PlaylistCreate, Actor, Setting
    from stash_playlists.models import DraftState, MarkerSort, PlaylistType
"""

# --- Enums ---
from stash_playlists.models.enums import (
    PlaylistType,
    DraftState,
    MarkerSort,
    SettingType,
)

# --- Domain models ---
from stash_playlists.models.domain import (
    Actor, ActorUpsert,
    Setting, SettingsUpdate, SettingDefinition, StashConfig,
    SETTING_DEFINITIONS, get_setting_definition,
    Item, ItemRating, RatingUpdate, RatingsLookup,
    Playlist, PlaylistCreate, PlaylistUpdate, PlaylistDetail, PlaylistEntry,
    PlaylistItemInput, PlaylistItemsAdd, PlaylistItemsAdded, PlaylistItemRemove,
    ItemOrder, PlaylistOrderUpdate, WallState,
    Tag, Performer, ScenePaths, SceneRef, Scene, Marker, RatedMarker,
    Draft, DraftPatch, DraftCreate,
    ExistingRef, PendingRef, MarkerRef, make_ref,
    MarkerInput, DraftEntry, EditSessionView, BatchSaveResult, MarkerCriteria,
)

# --- Result models ---
from stash_playlists.models.results import (
    StashResult,
    ConnectionTestResult,
    MarkerDeleted,
)

__all__ = [
    # Enums
    "PlaylistType", "DraftState", "MarkerSort", "SettingType",
    # Domain
    "Actor", "ActorUpsert",
    "Setting", "SettingsUpdate", "SettingDefinition", "StashConfig",
    "SETTING_DEFINITIONS", "get_setting_definition",
    "Item", "ItemRating", "RatingUpdate", "RatingsLookup",
    "Playlist", "PlaylistCreate", "PlaylistUpdate", "PlaylistDetail", "PlaylistEntry",
    "PlaylistItemInput", "PlaylistItemsAdd", "PlaylistItemsAdded", "PlaylistItemRemove",
    "ItemOrder", "PlaylistOrderUpdate", "WallState",
    "Tag", "Performer", "ScenePaths", "SceneRef", "Scene", "Marker", "RatedMarker",
    "Draft", "DraftPatch", "DraftCreate",
    "ExistingRef", "PendingRef", "MarkerRef", "make_ref",
    "MarkerInput", "DraftEntry", "EditSessionView", "BatchSaveResult", "MarkerCriteria",
    # Results
    "StashResult", "ConnectionTestResult", "MarkerDeleted",
]
