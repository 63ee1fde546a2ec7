"""Domain models: data stored locally or edited upstream."""

from stash_playlists.models.domain.actor import Actor, ActorUpsert
from stash_playlists.models.domain.setting import (
    Setting,
    SettingsUpdate,
    SettingDefinition,
    StashConfig,
    SETTING_DEFINITIONS,
    get_setting_definition,
)
from stash_playlists.models.domain.item import Item, ItemRating, RatingUpdate, RatingsLookup
from stash_playlists.models.domain.playlist import (
    Playlist,
    PlaylistCreate,
    PlaylistUpdate,
    PlaylistDetail,
    PlaylistEntry,
    PlaylistItemInput,
    PlaylistItemsAdd,
    PlaylistItemsAdded,
    PlaylistItemRemove,
    ItemOrder,
    PlaylistOrderUpdate,
    WallState,
)
from stash_playlists.models.domain.marker import (
    Tag,
    Performer,
    ScenePaths,
    SceneRef,
    Scene,
    Marker,
    RatedMarker,
    Draft,
    DraftPatch,
    DraftCreate,
    ExistingRef,
    PendingRef,
    MarkerRef,
    make_ref,
    MarkerInput,
    DraftEntry,
    EditSessionView,
    BatchSaveResult,
    MarkerCriteria,
)

__all__ = [
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
]
