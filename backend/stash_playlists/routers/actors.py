"""Actor endpoints."""

from fastapi import APIRouter, HTTPException, Query

from stash_playlists.dependencies import ActorServiceDep
from stash_playlists.models import Actor, ActorUpsert

router = APIRouter()


@router.get("", response_model=list[Actor])
async def list_actors(service: ActorServiceDep):
    return await service.list_actors()


@router.post("", response_model=Actor, status_code=201)
async def save_actor(body: ActorUpsert, service: ActorServiceDep):
    return await service.upsert_actor(body)


@router.delete("")
async def delete_actor(service: ActorServiceDep, id: str = Query(..., min_length=1)):
    deleted = await service.delete_actor(id)
    if not deleted:
        raise HTTPException(404, "Actor not found")
    return {"status": "deleted", "id": id}


@router.get("/{actor_id}", response_model=Actor)
async def get_actor(actor_id: str, service: ActorServiceDep):
    actor = await service.get_actor(actor_id)
    if not actor:
        raise HTTPException(404, "Actor not found")
    return actor
