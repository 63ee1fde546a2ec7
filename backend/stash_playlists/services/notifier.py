"""Socket.IO notifications for clients viewing a scene."""

import socketio

from stash_playlists.logging import get_logger
from stash_playlists.models import EditSessionView

logger = get_logger('services.notifier')


def scene_room(scene_id: str) -> str:
    return f"scene:{scene_id}"


class SceneNotifier:
    """Pushes editing-session updates to the scene's room."""

    def __init__(self, sio: socketio.AsyncServer):
        self.sio = sio

    async def markers_refetched(self, view: EditSessionView) -> None:
        await self.sio.emit(
            "markers:refetched",
            view.model_dump(mode="json"),
            room=scene_room(view.scene_id),
        )
        logger.debug(f"Sent markers:refetched to scene {view.scene_id}")
