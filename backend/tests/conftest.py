import pytest
from fastapi.testclient import TestClient

from helpers import FakeStash
from stash_playlists.app import create_app
from stash_playlists.config import settings
from stash_playlists.dependencies import get_marker_edit_service, get_stash_service
from stash_playlists.services.marker_edit import MarkerEditService


@pytest.fixture()
def db_path(tmp_path, monkeypatch):
    """Point the app at a throwaway database."""
    path = str(tmp_path / "stash_playlists.db")
    monkeypatch.setattr(settings, "DATABASE_PATH", path)
    return path


@pytest.fixture()
def fake_stash():
    return FakeStash()


@pytest.fixture()
def marker_edit(fake_stash):
    return MarkerEditService(stash=fake_stash, refetch_delay=0)


@pytest.fixture()
def client(db_path, fake_stash, marker_edit):
    app = create_app()
    app.dependency_overrides[get_stash_service] = lambda: fake_stash
    app.dependency_overrides[get_marker_edit_service] = lambda: marker_edit
    with TestClient(app) as c:
        yield c
