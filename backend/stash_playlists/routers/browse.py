"""Read-only browsing of upstream performers, markers and scenes."""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from stash_playlists.dependencies import ItemServiceDep, StashServiceDep
from stash_playlists.models import MarkerCriteria, MarkerSort, Performer, RatedMarker, Scene
from stash_playlists.services.listing import filtered_sorted
from stash_playlists.services.settings import StashConfigError
from stash_playlists.services.stash import StashError

router = APIRouter()


@router.get("/performers", response_model=list[Performer])
async def list_performers(stash: StashServiceDep, search: Optional[str] = None):
    try:
        return await stash.find_performers(search)
    except StashConfigError as exc:
        raise HTTPException(400, str(exc)) from exc
    except StashError as exc:
        raise HTTPException(502, str(exc)) from exc


@router.get("/markers", response_model=list[RatedMarker])
async def list_markers(
    stash: StashServiceDep,
    items: ItemServiceDep,
    performer_id: Optional[str] = None,
    tag_id: Optional[str] = None,
    search: Optional[str] = None,
    tag_ids: list[str] = Query(default=[]),
    min_rating: Optional[int] = Query(default=None, ge=1, le=5),
    sort: MarkerSort = MarkerSort.TITLE_ASC,
):
    try:
        markers = await stash.find_scene_markers(performer_id=performer_id, tag_id=tag_id)
    except StashConfigError as exc:
        raise HTTPException(400, str(exc)) from exc
    except StashError as exc:
        raise HTTPException(502, str(exc)) from exc

    ratings = await items.get_ratings([m.id for m in markers])
    rated = [RatedMarker(**m.model_dump(), rating=ratings.get(m.id)) for m in markers]
    criteria = MarkerCriteria(search=search, tag_ids=tag_ids, min_rating=min_rating, sort=sort)
    return filtered_sorted(rated, criteria, ratings)


@router.get("/scenes/{scene_id}", response_model=Scene)
async def get_scene(scene_id: str, stash: StashServiceDep):
    try:
        scene = await stash.find_scene(scene_id)
    except StashConfigError as exc:
        raise HTTPException(400, str(exc)) from exc
    except StashError as exc:
        raise HTTPException(502, str(exc)) from exc
    if not scene:
        raise HTTPException(404, "Scene not found")
    return scene
