import asyncio

import httpx

from stash_playlists.models import (
    ConnectionTestResult,
    Marker,
    MarkerInput,
    Performer,
    Scene,
    Tag,
)
from stash_playlists.services.stash import StashGraphQLError

TAGS = {
    "t1": "Intro",
    "t2": "Chorus",
    "t3": "Outro",
    "t9": "Markers Organised",
}


def build_scene(scene_id: str = "1") -> Scene:
    return Scene.model_validate({
        "id": scene_id,
        "title": "Live Set",
        "tags": [],
        "scene_markers": [
            {
                "id": "m1",
                "title": "Opening",
                "seconds": 10,
                "end_seconds": 20,
                "primary_tag": {"id": "t1", "name": "Intro"},
                "tags": [{"id": "t2", "name": "Chorus"}],
            },
            {
                "id": "m2",
                "title": "Bridge",
                "seconds": 30,
                "end_seconds": 45,
                "primary_tag": {"id": "t2", "name": "Chorus"},
                "tags": [],
            },
        ],
    })


class FakeStash:
    """In-memory stand-in for StashService."""

    def __init__(self, scenes: list[Scene] | None = None):
        self.scenes = {s.id: s for s in (scenes or [build_scene()])}
        self.calls: list[tuple[str, str]] = []
        self.fail_on: set[tuple[str, str]] = set()
        self.gate: asyncio.Event | None = None
        self.scene_gate: asyncio.Event | None = None
        self.scene_reads = 0
        self.destroy_result = True
        self.forward_error: Exception | None = None
        self._next_id = 100

    @property
    def is_available(self) -> bool:
        return True

    def _tag(self, tag_id: str) -> Tag:
        return Tag(id=tag_id, name=TAGS.get(tag_id, tag_id))

    def _marker(self, marker_id: str, data: MarkerInput) -> Marker:
        return Marker(
            id=marker_id,
            title=data.title,
            seconds=data.seconds,
            end_seconds=data.end_seconds,
            primary_tag=self._tag(data.primary_tag_id) if data.primary_tag_id else None,
            tags=[self._tag(t) for t in data.tag_ids],
        )

    def _scene_of(self, marker_id: str) -> Scene:
        for scene in self.scenes.values():
            if any(m.id == marker_id for m in scene.scene_markers):
                return scene
        raise StashGraphQLError([f"marker {marker_id} not found"])

    async def _call(self, name: str, key: str) -> None:
        self.calls.append((name, key))
        if self.gate is not None:
            await self.gate.wait()
        if (name, key) in self.fail_on:
            raise StashGraphQLError([f"{name} failed for {key}"])

    async def find_scene(self, scene_id: str) -> Scene | None:
        scene = self.scenes.get(scene_id)
        copy = scene.model_copy(deep=True) if scene else None
        self.scene_reads += 1
        # The copy is taken before waiting, like a response already in transit
        if self.scene_gate is not None:
            await self.scene_gate.wait()
        return copy

    async def find_tags(self) -> list[Tag]:
        return [Tag(id=k, name=v) for k, v in TAGS.items()]

    async def find_performers(self, search: str | None = None) -> list[Performer]:
        performers = [Performer(id="p1", name="Ada"), Performer(id="p2", name="Grace")]
        if search:
            performers = [p for p in performers if search.lower() in p.name.lower()]
        return performers

    async def find_scene_markers(self, performer_id=None, tag_id=None) -> list[Marker]:
        markers = [m for s in self.scenes.values() for m in s.scene_markers]
        if tag_id:
            markers = [
                m for m in markers
                if tag_id in {t.id for t in m.tags} or (m.primary_tag and m.primary_tag.id == tag_id)
            ]
        return markers

    async def create_scene_marker(self, data: MarkerInput) -> Marker:
        await self._call("create", data.title)
        marker = self._marker(str(self._next_id), data)
        self._next_id += 1
        self.scenes[data.scene_id].scene_markers.append(marker)
        return marker

    async def update_scene_marker(self, data: MarkerInput) -> Marker:
        await self._call("update", data.id)
        scene = self._scene_of(data.id)
        marker = self._marker(data.id, data)
        scene.scene_markers = [marker if m.id == data.id else m for m in scene.scene_markers]
        return marker

    async def destroy_scene_marker(self, marker_id: str) -> bool:
        await self._call("destroy", marker_id)
        if not self.destroy_result:
            return False
        scene = self._scene_of(marker_id)
        scene.scene_markers = [m for m in scene.scene_markers if m.id != marker_id]
        return True

    async def update_scene_tags(self, scene_id: str, tag_ids: list[str]) -> list[Tag]:
        await self._call("scene_tags", scene_id)
        tags = [self._tag(t) for t in tag_ids]
        self.scenes[scene_id].tags = tags
        return tags

    async def test_connection(self) -> ConnectionTestResult:
        return ConnectionTestResult(success=True, version="v0.27.0")

    async def forward(self, body: bytes) -> httpx.Response:
        self.calls.append(("forward", body.decode()))
        if self.forward_error is not None:
            raise self.forward_error
        return httpx.Response(200, json={"data": {"ok": True}})
