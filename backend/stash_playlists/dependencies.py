"""
Dependency injection for FastAPI routes.

Provides typed service dependencies that enable IDE navigation (Ctrl+Click).
"""

from typing import Annotated
from fastapi import Request, Depends

from stash_playlists.services.actors import ActorService
from stash_playlists.services.items import ItemService
from stash_playlists.services.marker_edit import MarkerEditService
from stash_playlists.services.playlists import PlaylistService
from stash_playlists.services.settings import SettingsService
from stash_playlists.services.stash import StashService


def get_settings_service(request: Request) -> SettingsService:
    return request.app.state.settings_service


def get_stash_service(request: Request) -> StashService:
    return request.app.state.stash


def get_actor_service(request: Request) -> ActorService:
    return request.app.state.actor_service


def get_item_service(request: Request) -> ItemService:
    return request.app.state.item_service


def get_playlist_service(request: Request) -> PlaylistService:
    return request.app.state.playlist_service


def get_marker_edit_service(request: Request) -> MarkerEditService:
    return request.app.state.marker_edit_service


SettingsServiceDep = Annotated[SettingsService, Depends(get_settings_service)]
StashServiceDep = Annotated[StashService, Depends(get_stash_service)]
ActorServiceDep = Annotated[ActorService, Depends(get_actor_service)]
ItemServiceDep = Annotated[ItemService, Depends(get_item_service)]
PlaylistServiceDep = Annotated[PlaylistService, Depends(get_playlist_service)]
MarkerEditServiceDep = Annotated[MarkerEditService, Depends(get_marker_edit_service)]
