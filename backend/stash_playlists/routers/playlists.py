"""Playlist endpoints."""

import random
from typing import Optional

from fastapi import APIRouter, HTTPException

from stash_playlists.dependencies import PlaylistServiceDep
from stash_playlists.models import (
    Playlist,
    PlaylistCreate,
    PlaylistDetail,
    PlaylistEntry,
    PlaylistItemRemove,
    PlaylistItemsAdd,
    PlaylistItemsAdded,
    PlaylistOrderUpdate,
    PlaylistUpdate,
    WallState,
)
from stash_playlists.services.wall import WallSequencer

router = APIRouter()


@router.get("", response_model=list[Playlist])
async def list_playlists(service: PlaylistServiceDep):
    return await service.list_playlists()


@router.post("", response_model=Playlist, status_code=201)
async def create_playlist(body: PlaylistCreate, service: PlaylistServiceDep):
    return await service.create_playlist(body)


@router.get("/{playlist_id}", response_model=PlaylistDetail)
async def get_playlist(playlist_id: str, service: PlaylistServiceDep):
    playlist = await service.get_playlist_detail(playlist_id)
    if not playlist:
        raise HTTPException(404, "Playlist not found")
    return playlist


@router.put("/{playlist_id}", response_model=Playlist)
async def update_playlist(playlist_id: str, body: PlaylistUpdate, service: PlaylistServiceDep):
    playlist = await service.update_playlist(playlist_id, body)
    if not playlist:
        raise HTTPException(404, "Playlist not found")
    return playlist


@router.delete("/{playlist_id}")
async def delete_playlist(playlist_id: str, service: PlaylistServiceDep):
    deleted = await service.delete_playlist(playlist_id)
    if not deleted:
        raise HTTPException(404, "Playlist not found")
    return {"status": "deleted", "id": playlist_id}


@router.get("/{playlist_id}/items", response_model=list[PlaylistEntry])
async def list_items(playlist_id: str, service: PlaylistServiceDep):
    if not await service.get_playlist(playlist_id):
        raise HTTPException(404, "Playlist not found")
    return await service.list_items(playlist_id)


@router.post("/{playlist_id}/items", response_model=PlaylistItemsAdded)
async def add_items(playlist_id: str, body: PlaylistItemsAdd, service: PlaylistServiceDep):
    try:
        added = await service.add_items(playlist_id, body.items)
    except LookupError as exc:
        raise HTTPException(404, str(exc)) from exc
    return PlaylistItemsAdded(count=added)


@router.delete("/{playlist_id}/items")
async def remove_item(playlist_id: str, body: PlaylistItemRemove, service: PlaylistServiceDep):
    removed = await service.remove_item(playlist_id, body.item_id)
    if not removed:
        raise HTTPException(404, "Item not in playlist")
    return {"status": "deleted", "id": body.item_id}


@router.post("/{playlist_id}/items/order")
async def reorder_items(playlist_id: str, body: PlaylistOrderUpdate, service: PlaylistServiceDep):
    try:
        updated = await service.reorder_items(playlist_id, body.ordered_items)
    except LookupError as exc:
        raise HTTPException(404, str(exc)) from exc
    return {"status": "reordered", "count": updated}


@router.get("/{playlist_id}/wall", response_model=WallState)
async def get_wall(playlist_id: str, service: PlaylistServiceDep, seed: Optional[int] = None):
    if not await service.get_playlist(playlist_id):
        raise HTTPException(404, "Playlist not found")
    items = await service.list_items(playlist_id)
    try:
        wall = WallSequencer(items, rng=random.Random(seed))
    except ValueError as exc:
        raise HTTPException(400, str(exc)) from exc
    return wall.state(playlist_id)
