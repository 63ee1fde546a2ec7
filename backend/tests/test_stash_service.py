import asyncio
import json

import httpx
import pytest

from stash_playlists.config import settings
from stash_playlists.models import MarkerInput, StashConfig
from stash_playlists.services.settings import StashConfigError
from stash_playlists.services.stash import (
    StashGraphQLError,
    StashNetworkError,
    StashService,
)

CONFIG = StashConfig(
    server_url="http://stash.local:9999",
    graphql_url="http://stash.local:9999/graphql",
    api_key="secret-api-key",
)


async def _config() -> StashConfig:
    return CONFIG


@pytest.fixture(autouse=True)
def no_retry_delay(monkeypatch):
    monkeypatch.setattr(settings, "STASH_RETRY_BASE_SECONDS", 0.0)
    monkeypatch.setattr(settings, "STASH_MAX_RETRIES", 2)


def run_with(handler, call, config_provider=_config):
    async def scenario():
        service = StashService(config_provider, transport=httpx.MockTransport(handler))
        await service.initialize()
        try:
            return await call(service)
        finally:
            await service.close()

    return asyncio.run(scenario())


def test_execute_sends_bearer_key_and_returns_data():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"data": {"findTags": {"tags": [{"id": "1", "name": "Intro"}]}}})

    tags = run_with(handler, lambda s: s.find_tags())

    assert [t.name for t in tags] == ["Intro"]
    assert str(seen[0].url) == CONFIG.graphql_url
    assert seen[0].headers["Authorization"] == "Bearer secret-api-key"


def test_graphql_errors_raise():
    def handler(request):
        return httpx.Response(200, json={"errors": [{"message": "boom"}]})

    with pytest.raises(StashGraphQLError, match="boom"):
        run_with(handler, lambda s: s.find_tags())


def test_idempotent_query_retries_transient_status():
    attempts = []

    def handler(request):
        attempts.append(1)
        if len(attempts) == 1:
            return httpx.Response(503)
        return httpx.Response(200, json={"data": {"findScene": None}})

    assert run_with(handler, lambda s: s.find_scene("1")) is None
    assert len(attempts) == 2


def test_mutation_is_not_retried_after_server_error():
    attempts = []

    def handler(request):
        attempts.append(1)
        return httpx.Response(503)

    data = MarkerInput(scene_id="1", title="x", seconds=0, end_seconds=1)
    with pytest.raises(StashNetworkError) as excinfo:
        run_with(handler, lambda s: s.create_scene_marker(data))
    assert excinfo.value.status_code == 503
    assert len(attempts) == 1


def test_mutation_retries_when_connection_never_opened():
    attempts = []

    def handler(request):
        attempts.append(json.loads(request.content))
        if len(attempts) == 1:
            raise httpx.ConnectError("refused", request=request)
        return httpx.Response(200, json={"data": {"sceneMarkerCreate": {
            "id": "55", "title": "x", "seconds": 0, "end_seconds": 1,
            "primary_tag": None, "tags": [],
        }}})

    data = MarkerInput(id="ignored", scene_id="1", title="x", seconds=0, end_seconds=1)
    marker = run_with(handler, lambda s: s.create_scene_marker(data))

    assert marker.id == "55"
    assert len(attempts) == 2
    assert "id" not in attempts[0]["variables"]["input"]


def test_transport_failure_is_wrapped():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(StashNetworkError):
        run_with(handler, lambda s: s.find_tags())


def test_connection_test_reports_missing_config():
    async def broken() -> StashConfig:
        raise StashConfigError("STASH_SERVER is missing in Settings")

    def handler(request):
        raise AssertionError("no request expected")

    result = run_with(handler, lambda s: s.test_connection(), config_provider=broken)
    assert result.success is False
    assert result.error == "STASH_SERVER is missing in Settings"


def test_connection_test_reports_version():
    def handler(request):
        return httpx.Response(200, json={"data": {"version": {"version": "v0.27.2"}}})

    result = run_with(handler, lambda s: s.test_connection())
    assert result.success is True
    assert result.version == "v0.27.2"
    assert result.graphql_url == CONFIG.graphql_url


def test_forward_relays_upstream_response():
    def handler(request):
        assert request.content == b'{"query":"{ a }"}'
        return httpx.Response(418, text="teapot", headers={"Content-Type": "text/plain"})

    response = run_with(handler, lambda s: s.forward(b'{"query":"{ a }"}'))
    assert response.status_code == 418
    assert response.text == "teapot"
