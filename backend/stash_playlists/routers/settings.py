"""Settings endpoints."""

from fastapi import APIRouter, HTTPException

from stash_playlists.dependencies import SettingsServiceDep, StashServiceDep
from stash_playlists.models import (
    ConnectionTestResult,
    Setting,
    SettingDefinition,
    SettingsUpdate,
)
from stash_playlists.services.settings import SettingsValidationError, definitions_by_category

router = APIRouter()


@router.get("", response_model=list[Setting])
async def list_settings(service: SettingsServiceDep):
    return await service.list_settings()


@router.put("", response_model=list[Setting])
async def update_settings(body: SettingsUpdate, service: SettingsServiceDep):
    try:
        return await service.update_settings(body.settings)
    except SettingsValidationError as exc:
        raise HTTPException(400, {"message": "Validation failed", "errors": exc.errors}) from exc


@router.get("/definitions", response_model=dict[str, list[SettingDefinition]])
async def get_definitions():
    return definitions_by_category()


@router.post("/test-connection", response_model=ConnectionTestResult)
async def test_connection(stash: StashServiceDep):
    return await stash.test_connection()
