"""
Stash GraphQL integration service.

Handles scene, marker, tag and performer queries and the marker mutations
issued by editing sessions. This is the transport layer; draft tracking
lives in DraftStore.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import httpx

from stash_playlists.config import settings
from stash_playlists.logging import get_logger
from stash_playlists.models import (
    ConnectionTestResult,
    Marker,
    MarkerInput,
    Performer,
    Scene,
    StashConfig,
    Tag,
)
from stash_playlists.services.settings import StashConfigError

logger = get_logger('services.stash')
_T = TypeVar("_T")

TRANSIENT_STATUS_CODES = {429, 502, 503, 504}

MARKER_FIELDS = """
    id
    title
    seconds
    end_seconds
    primary_tag { id name }
    tags { id name }
"""

FIND_SCENE = f"""
query findSceneForMarkers($id: ID!) {{
  findScene(id: $id) {{
    id
    title
    paths {{ screenshot vtt stream preview }}
    tags {{ id name }}
    scene_markers {{ {MARKER_FIELDS} }}
    performers {{ id name image_path tags {{ id name }} }}
  }}
}}
"""

FIND_TAGS = """
query findAllTags {
  findTags(filter: { per_page: -1, sort: "name", direction: ASC }) {
    tags { id name }
  }
}
"""

FIND_PERFORMERS = """
query findPerformers($filter: FindFilterType) {
  findPerformers(filter: $filter) {
    performers { id name image_path rating100 }
  }
}
"""

FIND_SCENE_MARKERS = f"""
query findSceneMarkers($scene_marker_filter: SceneMarkerFilterType, $filter: FindFilterType) {{
  findSceneMarkers(scene_marker_filter: $scene_marker_filter, filter: $filter) {{
    scene_markers {{
      {MARKER_FIELDS}
      scene {{ id title }}
      screenshot
      stream
      preview
    }}
  }}
}}
"""

CREATE_SCENE_MARKER = f"""
mutation createSceneMarker($input: SceneMarkerCreateInput!) {{
  sceneMarkerCreate(input: $input) {{ {MARKER_FIELDS} }}
}}
"""

UPDATE_SCENE_MARKER = f"""
mutation updateSceneMarker($input: SceneMarkerUpdateInput!) {{
  sceneMarkerUpdate(input: $input) {{ {MARKER_FIELDS} }}
}}
"""

DESTROY_SCENE_MARKER = """
mutation deleteSceneMarker($id: ID!) {
  sceneMarkerDestroy(id: $id)
}
"""

UPDATE_SCENE_TAGS = """
mutation updateSceneTags($input: SceneUpdateInput!) {
  sceneUpdate(input: $input) {
    id
    tags { id name }
  }
}
"""

VERSION = """
query {
  version { version build_time }
}
"""


class StashError(RuntimeError):
    """An upstream Stash call did not succeed."""


class StashNetworkError(StashError):
    """The request failed in transport or returned a non-success status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class StashGraphQLError(StashError):
    """Stash answered with GraphQL errors."""

    def __init__(self, messages: list[str]):
        super().__init__(", ".join(messages) or "Unknown GraphQL error")
        self.messages = messages


class StashService:
    """Service for talking to the Stash GraphQL API."""

    def __init__(
        self,
        config_provider: Callable[[], Awaitable[StashConfig]],
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config_provider = config_provider
        self.transport = transport
        self.client: httpx.AsyncClient | None = None

    async def initialize(self):
        self.client = httpx.AsyncClient(
            timeout=settings.STASH_TIMEOUT_SECONDS,
            transport=self.transport,
        )
        logger.info("Stash client initialized")

    async def close(self):
        if self.client is not None:
            await self.client.aclose()
            self.client = None

    @property
    def is_available(self) -> bool:
        return self.client is not None

    def _headers(self, config: StashConfig) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Authorization": f"Bearer {config.api_key}",
        }

    def _is_transient_error(self, error: Exception, idempotent: bool) -> bool:
        if isinstance(error, (httpx.ConnectError, httpx.ConnectTimeout)):
            return True
        if not idempotent:
            return False
        if isinstance(error, (httpx.TimeoutException, httpx.TransportError)):
            return True
        if isinstance(error, StashNetworkError):
            return error.status_code in TRANSIENT_STATUS_CODES
        return False

    async def _run_with_retry(
        self,
        operation_name: str,
        operation: Callable[[], Awaitable[_T]],
        idempotent: bool = True,
    ) -> _T:
        max_retries = max(int(settings.STASH_MAX_RETRIES), 0)
        total_attempts = max_retries + 1
        base_delay = max(float(settings.STASH_RETRY_BASE_SECONDS), 0.0)
        max_delay = max(float(settings.STASH_RETRY_MAX_SECONDS), base_delay)

        attempt = 1
        while True:
            try:
                return await operation()
            except Exception as error:
                should_retry = attempt < total_attempts and self._is_transient_error(error, idempotent)
                if not should_retry:
                    raise

                delay = min(base_delay * (2 ** (attempt - 1)), max_delay)
                logger.warning(
                    "Stash %s failed (attempt %d/%d): %s. Retrying in %.2fs",
                    operation_name,
                    attempt,
                    total_attempts,
                    error,
                    delay,
                )
                if delay > 0:
                    await asyncio.sleep(delay)
                attempt += 1

    def _require_client(self) -> httpx.AsyncClient:
        if self.client is None:
            raise StashNetworkError("Stash client is not initialized")
        return self.client

    async def _post(self, config: StashConfig, payload: dict[str, Any]) -> dict[str, Any]:
        client = self._require_client()
        response = await client.post(config.graphql_url, json=payload, headers=self._headers(config))
        if response.status_code >= 400:
            raise StashNetworkError(
                f"HTTP {response.status_code}: {response.reason_phrase}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise StashNetworkError(f"Stash returned invalid JSON: {exc}") from exc

    async def execute(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
        operation_name: str = "query",
        idempotent: bool = True,
    ) -> dict[str, Any]:
        """
        Run a GraphQL document against the configured server.

        :param query: GraphQL query or mutation
        :type query: str
        :param variables: Variables for the document
        :type variables: dict[str, Any] | None
        :param operation_name: Name used in logs
        :type operation_name: str
        :param idempotent: Whether retrying after an ambiguous failure is safe
        :type idempotent: bool
        :return: The ``data`` member of the response
        :rtype: dict[str, Any]
        :raises StashConfigError: When the server is not configured
        :raises StashNetworkError: On transport failures or HTTP errors
        :raises StashGraphQLError: When the response carries errors
        """
        config = await self.config_provider()
        payload: dict[str, Any] = {"query": query, "variables": variables or {}}
        try:
            body = await self._run_with_retry(
                operation_name,
                lambda: self._post(config, payload),
                idempotent=idempotent,
            )
        except httpx.HTTPError as exc:
            logger.error(f"Stash {operation_name} failed: {exc}")
            raise StashNetworkError(f"Failed to reach Stash: {exc}") from exc

        errors = body.get("errors")
        if errors:
            messages = [str(e.get("message", e)) if isinstance(e, dict) else str(e) for e in errors]
            logger.error(f"Stash {operation_name} returned errors: {messages}")
            raise StashGraphQLError(messages)
        return body.get("data") or {}

    async def forward(self, body: bytes) -> httpx.Response:
        """Relay a raw GraphQL request body and return the upstream response."""
        config = await self.config_provider()
        client = self._require_client()
        try:
            return await client.post(
                config.graphql_url,
                content=body,
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {config.api_key}",
                },
            )
        except httpx.HTTPError as exc:
            logger.error(f"Stash GraphQL proxy error: {exc}")
            raise StashNetworkError(f"Failed to connect to Stash server: {exc}") from exc

    # ── Queries ──

    async def find_scene(self, scene_id: str) -> Scene | None:
        data = await self.execute(FIND_SCENE, {"id": scene_id}, "findScene")
        scene = data.get("findScene")
        return Scene.model_validate(scene) if scene else None

    async def find_tags(self) -> list[Tag]:
        data = await self.execute(FIND_TAGS, operation_name="findTags")
        tags = (data.get("findTags") or {}).get("tags") or []
        return [Tag.model_validate(t) for t in tags]

    async def find_performers(self, search: str | None = None) -> list[Performer]:
        find_filter: dict[str, Any] = {"per_page": -1, "sort": "name", "direction": "ASC"}
        if search:
            find_filter["q"] = search
        data = await self.execute(FIND_PERFORMERS, {"filter": find_filter}, "findPerformers")
        performers = (data.get("findPerformers") or {}).get("performers") or []
        return [Performer.model_validate(p) for p in performers]

    async def find_scene_markers(
        self,
        performer_id: str | None = None,
        tag_id: str | None = None,
    ) -> list[Marker]:
        marker_filter: dict[str, Any] = {}
        if performer_id:
            marker_filter["performers"] = {"value": [performer_id], "modifier": "INCLUDES"}
        if tag_id:
            marker_filter["tags"] = {"value": [tag_id], "modifier": "INCLUDES"}
        data = await self.execute(
            FIND_SCENE_MARKERS,
            {"scene_marker_filter": marker_filter, "filter": {"per_page": -1}},
            "findSceneMarkers",
        )
        markers = (data.get("findSceneMarkers") or {}).get("scene_markers") or []
        return [Marker.model_validate(m) for m in markers]

    # ── Mutations ──

    async def create_scene_marker(self, data: MarkerInput) -> Marker:
        payload = data.model_dump(exclude={"id"})
        result = await self.execute(
            CREATE_SCENE_MARKER, {"input": payload}, "sceneMarkerCreate", idempotent=False,
        )
        marker = result.get("sceneMarkerCreate")
        if not marker:
            raise StashGraphQLError(["sceneMarkerCreate returned no marker"])
        logger.info(f"Created marker {marker['id']} on scene {data.scene_id}")
        return Marker.model_validate(marker)

    async def update_scene_marker(self, data: MarkerInput) -> Marker:
        payload = data.model_dump(exclude={"scene_id"})
        result = await self.execute(
            UPDATE_SCENE_MARKER, {"input": payload}, "sceneMarkerUpdate", idempotent=False,
        )
        marker = result.get("sceneMarkerUpdate")
        if not marker:
            raise StashGraphQLError([f"sceneMarkerUpdate returned no marker for {data.id}"])
        return Marker.model_validate(marker)

    async def destroy_scene_marker(self, marker_id: str) -> bool:
        result = await self.execute(
            DESTROY_SCENE_MARKER, {"id": marker_id}, "sceneMarkerDestroy", idempotent=False,
        )
        destroyed = bool(result.get("sceneMarkerDestroy"))
        if destroyed:
            logger.info(f"Deleted marker {marker_id}")
        return destroyed

    async def update_scene_tags(self, scene_id: str, tag_ids: list[str]) -> list[Tag]:
        result = await self.execute(
            UPDATE_SCENE_TAGS,
            {"input": {"id": scene_id, "tag_ids": tag_ids}},
            "sceneUpdate",
        )
        scene = result.get("sceneUpdate") or {}
        return [Tag.model_validate(t) for t in scene.get("tags") or []]

    # ── Diagnostics ──

    async def test_connection(self) -> ConnectionTestResult:
        try:
            config = await self.config_provider()
        except StashConfigError as exc:
            return ConnectionTestResult(success=False, error=str(exc))

        try:
            data = await self.execute(VERSION, operation_name="version")
        except StashGraphQLError as exc:
            return ConnectionTestResult(
                success=False,
                error="GraphQL errors",
                details=str(exc),
                server_url=config.server_url,
                graphql_url=config.graphql_url,
            )
        except StashError as exc:
            return ConnectionTestResult(
                success=False,
                error=str(exc),
                server_url=config.server_url,
                graphql_url=config.graphql_url,
            )

        version = (data.get("version") or {}).get("version")
        return ConnectionTestResult(
            success=True,
            version=version,
            server_url=config.server_url,
            graphql_url=config.graphql_url,
        )
