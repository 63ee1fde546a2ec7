"""Item rating endpoints."""

from fastapi import APIRouter, HTTPException, Query

from stash_playlists.dependencies import ItemServiceDep
from stash_playlists.models import ItemRating, RatingUpdate, RatingsLookup

router = APIRouter()


@router.get("/ratings", response_model=RatingsLookup)
async def get_ratings(service: ItemServiceDep, ids: str = Query("")):
    item_ids = [i for i in ids.split(",") if i.strip()]
    if not item_ids:
        raise HTTPException(400, "Missing ids parameter")
    return RatingsLookup(ratings=await service.get_ratings(item_ids))


@router.get("/{item_id}/rating", response_model=ItemRating)
async def get_rating(item_id: str, service: ItemServiceDep):
    try:
        return await service.get_rating(item_id)
    except LookupError as exc:
        raise HTTPException(404, str(exc)) from exc


@router.patch("/{item_id}/rating", response_model=ItemRating)
async def set_rating(item_id: str, body: RatingUpdate, service: ItemServiceDep):
    return await service.set_rating(item_id, body)
