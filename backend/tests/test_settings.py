import asyncio

import pytest

from stash_playlists.config import settings
from stash_playlists.database.db import init_db
from stash_playlists.services.settings import (
    SettingsService,
    StashConfigError,
    normalize_server_url,
    validate_setting,
)


@pytest.fixture()
def service(db_path, monkeypatch):
    monkeypatch.setattr(settings, "STASH_SERVER", "")
    monkeypatch.setattr(settings, "STASH_API", "")
    asyncio.run(init_db(db_path))
    return SettingsService(db_path)


@pytest.mark.parametrize("raw,expected", [
    ("192.168.1.17:6969", "http://192.168.1.17:6969"),
    ("https://stash.example.com/", "https://stash.example.com"),
    ("  http://host:9999//  ", "http://host:9999"),
])
def test_normalize_server_url(raw, expected):
    assert normalize_server_url(raw) == expected


def test_normalize_server_url_rejects_blank_and_garbage():
    with pytest.raises(StashConfigError, match="missing"):
        normalize_server_url("  ")
    with pytest.raises(StashConfigError, match="not a valid URL"):
        normalize_server_url("http://host:notaport")


@pytest.mark.parametrize("key,value,error", [
    ("STASH_SERVER", "", "Stash Server URL is required"),
    ("STASH_SERVER", "http://", "Please enter a valid URL (e.g., http://192.168.1.17:6969)"),
    ("STASH_API", "short", "Stash API Key appears too short - please check it's correct"),
    ("BACKUP_HOUR", "24", "Must be between 0-23"),
    ("BACKUP_RETENTION_DAYS", "ten", "Must be a number"),
    ("THEME_MODE", "neon", "Must be one of: light, dark, system"),
    ("THEME_MODE", "dark", None),
    ("UNKNOWN_KEY", "anything", None),
])
def test_validate_setting(key, value, error):
    assert validate_setting(key, value) == error


def test_defaults_are_seeded(service):
    rows = asyncio.run(service.list_settings())
    values = {s.key: s.value for s in rows}
    assert values["THEME_MODE"] == "system"
    assert values["STASH_SERVER"] == ""


def test_invalid_update_writes_nothing(service):
    with pytest.raises(ValueError) as excinfo:
        asyncio.run(service.update_settings({"THEME_MODE": "dark", "BACKUP_HOUR": "99"}))
    assert set(excinfo.value.errors) == {"BACKUP_HOUR"}
    values = asyncio.run(service.get_values(["THEME_MODE"]))
    assert values["THEME_MODE"] == "system"


def test_stash_config_from_table(service):
    asyncio.run(service.update_settings({
        "STASH_SERVER": "10.0.0.5:9999/",
        "STASH_API": "abcdefghijkl",
    }))
    config = asyncio.run(service.get_stash_config())
    assert config.server_url == "http://10.0.0.5:9999"
    assert config.graphql_url == "http://10.0.0.5:9999/graphql"
    assert config.api_key == "abcdefghijkl"


def test_stash_config_falls_back_to_environment(service, monkeypatch):
    monkeypatch.setattr(settings, "STASH_SERVER", "https://env-stash")
    monkeypatch.setattr(settings, "STASH_API", "env-key-123456")
    config = asyncio.run(service.get_stash_config())
    assert config.graphql_url == "https://env-stash/graphql"


def test_stash_config_requires_api_key(service):
    asyncio.run(service.update_settings({"STASH_SERVER": "http://host:1"}))
    with pytest.raises(StashConfigError, match="STASH_API is missing in Settings"):
        asyncio.run(service.get_stash_config())


def test_settings_routes(client):
    r = client.get("/api/settings")
    assert r.status_code == 200
    assert any(s["key"] == "THEME_MODE" for s in r.json())

    r = client.put("/api/settings", json={"settings": {"THEME_MODE": "light"}})
    assert r.status_code == 200
    assert {s["key"]: s["value"] for s in r.json()}["THEME_MODE"] == "light"

    r = client.put("/api/settings", json={"settings": {"BACKUP_HOUR": "-1"}})
    assert r.status_code == 400
    assert r.json()["detail"]["errors"] == {"BACKUP_HOUR": "Must be between 0-23"}

    r = client.get("/api/settings/definitions")
    assert r.status_code == 200
    assert [d["key"] for d in r.json()["Stash Integration"]] == ["STASH_SERVER", "STASH_API"]

    r = client.post("/api/settings/test-connection")
    assert r.status_code == 200
    assert r.json()["success"] is True
