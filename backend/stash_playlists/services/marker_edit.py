"""Scene-marker editing sessions: one DraftStore per open scene."""

import asyncio

from stash_playlists.config import settings
from stash_playlists.logging import get_logger
from stash_playlists.services.drafts import DraftStore
from stash_playlists.services.notifier import SceneNotifier
from stash_playlists.services.stash import StashService

logger = get_logger('services.marker_edit')

MAX_RELOAD_ATTEMPTS = 3


class MarkerEditService:
    """
    Owns the draft stores of open scenes and reconciles them with Stash.

    Reconciliation after a save runs as a background task after
    ``refetch_delay`` seconds, never in the same tick as the save, so a
    player bound to the scene keeps playing through the save.
    """

    def __init__(
        self,
        stash: StashService,
        notifier: SceneNotifier | None = None,
        refetch_delay: float | None = None,
        organised_tag_name: str | None = None,
    ):
        self.stash = stash
        self.notifier = notifier
        self.refetch_delay = settings.REFETCH_DELAY_SECONDS if refetch_delay is None else refetch_delay
        self.organised_tag_name = (
            settings.MARKERS_ORGANISED_TAG if organised_tag_name is None else organised_tag_name
        )
        self._stores: dict[str, DraftStore] = {}
        self._tag_catalog: dict[str, str] | None = None
        self._refetch_tasks: dict[str, asyncio.Task] = {}
        self._refetch_sleeping: set[str] = set()
        self._refetch_again: set[str] = set()

    async def get_tag_catalog(self, refresh: bool = False) -> dict[str, str]:
        if self._tag_catalog is None or refresh:
            tags = await self.stash.find_tags()
            self._tag_catalog = {t.id: t.name for t in tags}
        return self._tag_catalog

    async def open_session(self, scene_id: str, refresh_tags: bool = False) -> DraftStore:
        """
        Load (or reload) a scene's markers into its draft store.

        A scene read that overlaps a confirmed save is stale, so it is
        thrown away and read again; after ``MAX_RELOAD_ATTEMPTS`` the store
        keeps its state and another refetch is scheduled.

        :param scene_id: Stash scene id
        :type scene_id: str
        :param refresh_tags: Re-read the tag catalogue from Stash
        :type refresh_tags: bool
        :return: The scene's draft store
        :rtype: DraftStore
        :raises LookupError: When Stash has no such scene
        """
        catalog = await self.get_tag_catalog(refresh=refresh_tags)

        for _ in range(MAX_RELOAD_ATTEMPTS):
            store = self._stores.get(scene_id)
            generation = store.generation if store is not None else None
            scene = await self.stash.find_scene(scene_id)
            if scene is None:
                raise LookupError(f"Scene {scene_id} not found")
            store = self._stores.get(scene_id)
            if store is None or store.generation == generation:
                break
        else:
            logger.warning(f"Scene {scene_id} changed during every reload; retrying later")
            store.tag_catalog = catalog
            self.schedule_refetch(scene_id)
            return store

        if store is None:
            store = DraftStore(
                scene_id=scene_id,
                stash=self.stash,
                schedule_refetch=lambda: self.schedule_refetch(scene_id),
                organised_tag_name=self.organised_tag_name,
            )
            self._stores[scene_id] = store
        store.tag_catalog = catalog
        store.load_scene(scene)
        logger.debug(f"Loaded {len(scene.scene_markers)} markers for scene {scene_id}")
        return store

    def get_store(self, scene_id: str) -> DraftStore:
        store = self._stores.get(scene_id)
        if store is None:
            raise LookupError(f"No editing session for scene {scene_id}")
        return store

    def close_session(self, scene_id: str) -> bool:
        task = self._refetch_tasks.pop(scene_id, None)
        if task and not task.done():
            task.cancel()
        self._refetch_sleeping.discard(scene_id)
        self._refetch_again.discard(scene_id)
        return self._stores.pop(scene_id, None) is not None

    def schedule_refetch(self, scene_id: str) -> None:
        """
        Ask for a reload of the scene after ``refetch_delay``.

        Requests arriving while the scene's task still sleeps are folded
        into it. Once the task has started reading, a request marks the
        scene for one more pass instead.
        """
        existing = self._refetch_tasks.get(scene_id)
        if existing and not existing.done():
            if scene_id not in self._refetch_sleeping:
                self._refetch_again.add(scene_id)
            return
        self._refetch_sleeping.add(scene_id)
        self._refetch_tasks[scene_id] = asyncio.create_task(self._run_delayed_refetch(scene_id))

    async def _run_delayed_refetch(self, scene_id: str) -> None:
        try:
            while True:
                self._refetch_sleeping.add(scene_id)
                try:
                    await asyncio.sleep(self.refetch_delay)
                finally:
                    self._refetch_sleeping.discard(scene_id)
                self._refetch_again.discard(scene_id)

                if scene_id not in self._stores:
                    return
                store = await self.open_session(scene_id)
                if self.notifier is not None:
                    await self.notifier.markers_refetched(store.view())
                if scene_id not in self._refetch_again:
                    return
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Delayed marker refetch failed scene_id=%s", scene_id)
        finally:
            if self._refetch_tasks.get(scene_id) is asyncio.current_task():
                self._refetch_tasks.pop(scene_id, None)
                self._refetch_again.discard(scene_id)

    async def wait_for_refetches(self) -> None:
        while True:
            tasks = [t for t in self._refetch_tasks.values() if not t.done()]
            if not tasks:
                return
            await asyncio.gather(*tasks, return_exceptions=True)

    async def shutdown(self) -> None:
        for task in self._refetch_tasks.values():
            if not task.done():
                task.cancel()
        await self.wait_for_refetches()
        self._refetch_tasks.clear()
        self._refetch_sleeping.clear()
        self._refetch_again.clear()
