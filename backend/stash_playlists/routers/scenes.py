"""Scene marker editing endpoints."""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from stash_playlists.dependencies import ItemServiceDep, MarkerEditServiceDep
from stash_playlists.models import (
    BatchSaveResult,
    DraftCreate,
    DraftEntry,
    DraftPatch,
    EditSessionView,
    ExistingRef,
    Marker,
    MarkerCriteria,
    MarkerDeleted,
    MarkerSort,
    make_ref,
)
from stash_playlists.services.drafts import BatchSaveError, DraftBusyError
from stash_playlists.services.listing import filtered_sorted
from stash_playlists.services.stash import StashError
from stash_playlists.services.validation import BatchValidationError

router = APIRouter()


def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, BatchSaveError):
        return HTTPException(502, exc.to_detail())
    if isinstance(exc, BatchValidationError):
        return HTTPException(400, {
            "message": str(exc),
            "missing_primary_tag": exc.missing_primary_tag,
            "missing_times": exc.missing_times,
            "invalid_times": exc.invalid_times,
        })
    if isinstance(exc, DraftBusyError):
        return HTTPException(409, str(exc))
    if isinstance(exc, LookupError):
        return HTTPException(404, str(exc))
    if isinstance(exc, ValueError):
        return HTTPException(400, str(exc))
    return HTTPException(502, str(exc))


def _ref(kind: str, marker_id: str):
    try:
        return make_ref(kind, marker_id)
    except ValueError as exc:
        raise HTTPException(400, str(exc)) from exc


_HANDLED = (LookupError, ValueError, DraftBusyError, BatchSaveError, StashError)


@router.post("/{scene_id}/session", response_model=EditSessionView)
async def open_session(scene_id: str, service: MarkerEditServiceDep, refresh_tags: bool = False):
    try:
        store = await service.open_session(scene_id, refresh_tags=refresh_tags)
    except _HANDLED as exc:
        raise _http_error(exc) from exc
    return store.view()


@router.get("/{scene_id}/session", response_model=EditSessionView)
async def get_session(scene_id: str, service: MarkerEditServiceDep):
    try:
        return service.get_store(scene_id).view()
    except LookupError as exc:
        raise HTTPException(404, str(exc)) from exc


@router.delete("/{scene_id}/session")
async def close_session(scene_id: str, service: MarkerEditServiceDep):
    if not service.close_session(scene_id):
        raise HTTPException(404, f"No editing session for scene {scene_id}")
    return {"status": "closed", "scene_id": scene_id}


@router.get("/{scene_id}/drafts", response_model=list[DraftEntry])
async def list_drafts(
    scene_id: str,
    service: MarkerEditServiceDep,
    items: ItemServiceDep,
    search: Optional[str] = None,
    tag_ids: list[str] = Query(default=[]),
    min_rating: Optional[int] = Query(default=None, ge=1, le=5),
    sort: MarkerSort = MarkerSort.START_ASC,
):
    try:
        store = service.get_store(scene_id)
    except LookupError as exc:
        raise HTTPException(404, str(exc)) from exc

    entries = store.entries()
    existing_ids = [e.ref.id for e in entries if isinstance(e.ref, ExistingRef)]
    ratings = await items.get_ratings(existing_ids)
    criteria = MarkerCriteria(search=search, tag_ids=tag_ids, min_rating=min_rating, sort=sort)
    return filtered_sorted(entries, criteria, ratings)


@router.post("/{scene_id}/drafts", response_model=DraftEntry, status_code=201)
async def add_draft(scene_id: str, body: DraftCreate, service: MarkerEditServiceDep):
    try:
        store = service.get_store(scene_id)
    except LookupError as exc:
        raise HTTPException(404, str(exc)) from exc

    ref = store.add_new_draft(
        seconds=body.seconds,
        title=body.title,
        end_seconds=body.end_seconds,
        primary_tag_id=body.primary_tag_id,
        tag_ids=body.tag_ids,
    )
    return store.entry(ref)


@router.patch("/{scene_id}/drafts/{kind}/{marker_id}", response_model=DraftEntry)
async def update_draft(
    scene_id: str,
    kind: str,
    marker_id: str,
    body: DraftPatch,
    service: MarkerEditServiceDep,
):
    ref = _ref(kind, marker_id)
    try:
        store = service.get_store(scene_id)
        store.set_draft(ref, **body.model_dump(exclude_unset=True))
        return store.entry(ref)
    except (LookupError, ValueError) as exc:
        raise _http_error(exc) from exc


@router.post("/{scene_id}/drafts/{kind}/{marker_id}/save", response_model=Marker)
async def save_draft(scene_id: str, kind: str, marker_id: str, service: MarkerEditServiceDep):
    ref = _ref(kind, marker_id)
    try:
        store = service.get_store(scene_id)
        return await store.save_row(ref)
    except _HANDLED as exc:
        raise _http_error(exc) from exc


@router.post("/{scene_id}/drafts/{kind}/{marker_id}/discard", response_model=EditSessionView)
async def discard_draft(scene_id: str, kind: str, marker_id: str, service: MarkerEditServiceDep):
    ref = _ref(kind, marker_id)
    try:
        store = service.get_store(scene_id)
        store.discard_draft(ref)
    except _HANDLED as exc:
        raise _http_error(exc) from exc
    return store.view()


@router.delete("/{scene_id}/drafts/{kind}/{marker_id}")
async def delete_draft(scene_id: str, kind: str, marker_id: str, service: MarkerEditServiceDep):
    ref = _ref(kind, marker_id)
    try:
        store = service.get_store(scene_id)
        needs_confirmation = store.delete_row(ref)
    except _HANDLED as exc:
        raise _http_error(exc) from exc
    status = "pending_confirmation" if needs_confirmation else "deleted"
    return {"status": status, "kind": ref.kind, "id": ref.id}


@router.post("/{scene_id}/delete/confirm", response_model=MarkerDeleted)
async def confirm_delete(scene_id: str, service: MarkerEditServiceDep):
    try:
        store = service.get_store(scene_id)
        ref = await store.confirm_delete()
    except _HANDLED as exc:
        raise _http_error(exc) from exc
    return MarkerDeleted(success=True, id=ref.id)


@router.post("/{scene_id}/delete/cancel", response_model=EditSessionView)
async def cancel_delete(scene_id: str, service: MarkerEditServiceDep):
    try:
        store = service.get_store(scene_id)
    except LookupError as exc:
        raise HTTPException(404, str(exc)) from exc
    store.cancel_delete()
    return store.view()


@router.post("/{scene_id}/save-all", response_model=BatchSaveResult)
async def save_all(scene_id: str, service: MarkerEditServiceDep):
    try:
        store = service.get_store(scene_id)
        return await store.save_all()
    except _HANDLED as exc:
        raise _http_error(exc) from exc


@router.post("/{scene_id}/reset-all", response_model=EditSessionView)
async def reset_all(scene_id: str, service: MarkerEditServiceDep):
    try:
        store = service.get_store(scene_id)
        store.reset_all()
    except _HANDLED as exc:
        raise _http_error(exc) from exc
    return store.view()


@router.post("/{scene_id}/refetch", response_model=EditSessionView)
async def refetch(scene_id: str, service: MarkerEditServiceDep):
    try:
        service.get_store(scene_id)
        store = await service.open_session(scene_id)
    except _HANDLED as exc:
        raise _http_error(exc) from exc
    return store.view()
