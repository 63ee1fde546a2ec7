"""
Draft tracking for one scene's markers.

A DraftStore holds an editable Draft per marker (existing markers keyed by
their Stash id, markers not yet created keyed by a local PendingRef),
derives dirtiness against the last known server snapshot, and pushes
create/update/delete mutations back to Stash.
"""

from collections.abc import Callable, Iterable
from typing import Any

from stash_playlists.logging import get_logger
from stash_playlists.models import (
    BatchSaveResult,
    Draft,
    DraftEntry,
    DraftState,
    EditSessionView,
    ExistingRef,
    Marker,
    MarkerInput,
    PendingRef,
    Scene,
)
from stash_playlists.services.stash import StashError, StashService
from stash_playlists.services.validation import (
    normalized_tag_ids,
    tag_sets_equal,
    validate_batch,
    validate_draft,
)

logger = get_logger('services.drafts')

Ref = ExistingRef | PendingRef


class DraftBusyError(RuntimeError):
    """A save or delete is already in flight for the draft."""


class BatchSaveError(RuntimeError):
    """A batch save stopped part way; earlier saves were kept."""

    def __init__(
        self,
        message: str,
        saved: list[ExistingRef],
        failed: Ref,
        remaining: list[Ref],
    ):
        super().__init__(message)
        self.saved = saved
        self.failed = failed
        self.remaining = remaining

    def to_detail(self) -> dict[str, Any]:
        return {
            "message": str(self),
            "saved": [r.model_dump() for r in self.saved],
            "failed": self.failed.model_dump(),
            "remaining": [r.model_dump() for r in self.remaining],
        }


def draft_from_marker(marker: Marker) -> Draft:
    primary_tag_id = marker.primary_tag.id if marker.primary_tag else None
    draft = Draft(
        title=marker.title,
        seconds=marker.seconds,
        end_seconds=marker.end_seconds,
        primary_tag_id=primary_tag_id,
        tag_ids=[t.id for t in marker.tags],
    )
    draft.tag_ids = normalized_tag_ids(draft)
    return draft


class DraftStore:
    """Editable drafts for the markers of a single scene."""

    def __init__(
        self,
        scene_id: str,
        stash: StashService,
        tag_catalog: dict[str, str] | None = None,
        schedule_refetch: Callable[[], None] | None = None,
        organised_tag_name: str | None = None,
    ):
        self.scene_id = scene_id
        self.stash = stash
        self.tag_catalog = tag_catalog or {}
        self.schedule_refetch = schedule_refetch
        self.organised_tag_name = organised_tag_name
        self.scene_title = ""
        self.scene_tag_ids: list[str] = []

        self._drafts: dict[Ref, Draft] = {}
        self._snapshots: dict[str, Marker] = {}
        self._versions: dict[Ref, int] = {}
        self._saving: set[Ref] = set()
        self._saving_all = False
        self._pending_delete: ExistingRef | None = None
        self._generation = 0

    # ── Loading ──

    def load_scene(self, scene: Scene) -> None:
        self.scene_title = scene.title
        self.scene_tag_ids = [t.id for t in scene.tags]
        self.load(scene.scene_markers)

    def load(self, markers: Iterable[Marker]) -> None:
        """
        Rebuild existing-marker drafts from fresh server markers.

        Unsaved edits to existing markers are replaced; pending drafts are
        kept untouched. Drafts with a save or delete in flight keep their
        draft, version and snapshot, since the request's response settles
        them.
        """
        markers = list(markers)
        drafts: dict[Ref, Draft] = {}
        snapshots: dict[str, Marker] = {}
        for marker in markers:
            ref = ExistingRef(id=marker.id)
            if ref in self._saving and ref in self._drafts:
                drafts[ref] = self._drafts[ref]
                snapshots[marker.id] = self._snapshots.get(marker.id, marker)
                continue
            drafts[ref] = draft_from_marker(marker)
            snapshots[marker.id] = marker
            self._bump(ref)
        for ref, draft in self._drafts.items():
            if ref in drafts:
                continue
            if isinstance(ref, PendingRef):
                drafts[ref] = draft
            elif ref in self._saving and ref.id in self._snapshots:
                drafts[ref] = draft
                snapshots[ref.id] = self._snapshots[ref.id]

        for ref in list(self._versions):
            if ref not in drafts:
                del self._versions[ref]

        self._drafts = drafts
        self._snapshots = snapshots
        if self._pending_delete and self._pending_delete.id not in self._snapshots:
            self._pending_delete = None

    # ── Reading ──

    def _get(self, ref: Ref) -> Draft:
        draft = self._drafts.get(ref)
        if draft is None:
            raise LookupError(f"No draft for {ref.kind} marker {ref.id}")
        return draft

    def get_draft(self, ref: Ref) -> Draft:
        return self._get(ref).model_copy(deep=True)

    def __contains__(self, ref: Ref) -> bool:
        return ref in self._drafts

    def __len__(self) -> int:
        return len(self._drafts)

    def snapshot(self, ref: ExistingRef) -> Marker | None:
        return self._snapshots.get(ref.id)

    def is_dirty(self, ref: Ref) -> bool:
        draft = self._get(ref)
        if isinstance(ref, PendingRef):
            return True

        server = draft_from_marker(self._snapshots[ref.id])
        return (
            draft.title != server.title
            or draft.seconds != server.seconds
            or draft.end_seconds != server.end_seconds
            or draft.primary_tag_id != server.primary_tag_id
            or not tag_sets_equal(normalized_tag_ids(draft), server.tag_ids)
        )

    def state(self, ref: Ref) -> DraftState:
        self._get(ref)
        if ref in self._saving:
            return DraftState.SAVING
        if isinstance(ref, PendingRef):
            return DraftState.NEW
        return DraftState.DIRTY if self.is_dirty(ref) else DraftState.CLEAN

    def pending_refs(self) -> list[PendingRef]:
        return [ref for ref in self._drafts if isinstance(ref, PendingRef)]

    def dirty_existing_refs(self) -> list[ExistingRef]:
        return [
            ref for ref in self._drafts
            if isinstance(ref, ExistingRef) and self.is_dirty(ref)
        ]

    @property
    def dirty_count(self) -> int:
        return len(self.pending_refs()) + len(self.dirty_existing_refs())

    @property
    def pending_delete(self) -> ExistingRef | None:
        return self._pending_delete

    @property
    def generation(self) -> int:
        """Count of mutations Stash has confirmed for this scene."""
        return self._generation

    def _primary_tag_name(self, ref: Ref, draft: Draft) -> str | None:
        if not draft.primary_tag_id:
            return None
        name = self.tag_catalog.get(draft.primary_tag_id)
        if name:
            return name
        if isinstance(ref, ExistingRef):
            marker = self._snapshots.get(ref.id)
            if marker and marker.primary_tag and marker.primary_tag.id == draft.primary_tag_id:
                return marker.primary_tag.name
        return None

    def entry(self, ref: Ref) -> DraftEntry:
        draft = self._get(ref)
        return DraftEntry(
            ref=ref,
            draft=draft.model_copy(deep=True),
            dirty=self.is_dirty(ref),
            state=self.state(ref),
            primary_tag_name=self._primary_tag_name(ref, draft),
        )

    def entries(self) -> list[DraftEntry]:
        return [self.entry(ref) for ref in self._drafts]

    def view(self) -> EditSessionView:
        return EditSessionView(
            scene_id=self.scene_id,
            scene_title=self.scene_title,
            entries=self.entries(),
            dirty_count=self.dirty_count,
            pending_delete=self._pending_delete,
        )

    # ── Editing ──

    def _bump(self, ref: Ref) -> None:
        self._versions[ref] = self._versions.get(ref, 0) + 1

    def _ensure_idle(self, refs: Iterable[Ref]) -> None:
        busy = [ref for ref in refs if ref in self._saving]
        if busy:
            raise DraftBusyError(f"A save is already in progress for marker {busy[0].id}")

    def set_draft(self, ref: Ref, **fields: Any) -> Draft:
        """
        Merge fields into a draft without validating times or tags.

        :param ref: Draft to edit
        :type ref: ExistingRef | PendingRef
        :return: The merged draft
        :rtype: Draft
        :raises LookupError: When the draft does not exist
        :raises ValueError: For unknown fields or values of the wrong type
        """
        draft = self._get(ref)
        unknown = set(fields) - set(Draft.model_fields)
        if unknown:
            raise ValueError(f"Unknown draft fields: {', '.join(sorted(unknown))}")
        merged = Draft.model_validate({**draft.model_dump(), **fields})
        self._drafts[ref] = merged
        self._bump(ref)
        return merged.model_copy(deep=True)

    def add_new_draft(
        self,
        seconds: float = 0.0,
        title: str = "",
        end_seconds: float | None = None,
        primary_tag_id: str | None = None,
        tag_ids: Iterable[str] = (),
    ) -> PendingRef:
        ref = PendingRef()
        self._drafts[ref] = Draft(
            title=title,
            seconds=seconds,
            end_seconds=end_seconds,
            primary_tag_id=primary_tag_id,
            tag_ids=list(tag_ids),
        )
        self._bump(ref)
        return ref

    def discard_draft(self, ref: Ref) -> None:
        self._get(ref)
        self._ensure_idle([ref])
        if isinstance(ref, PendingRef):
            self.remove_draft(ref)
            return
        self._drafts[ref] = draft_from_marker(self._snapshots[ref.id])
        self._bump(ref)

    def remove_draft(self, ref: Ref) -> None:
        self._drafts.pop(ref, None)
        self._versions.pop(ref, None)
        if isinstance(ref, ExistingRef):
            self._snapshots.pop(ref.id, None)
            if self._pending_delete == ref:
                self._pending_delete = None

    def reset_all(self) -> None:
        self._ensure_idle(self._drafts)
        for ref in self.pending_refs():
            self.remove_draft(ref)
        for ref in list(self._drafts):
            self._drafts[ref] = draft_from_marker(self._snapshots[ref.id])
            self._bump(ref)

    # ── Saving ──

    def _to_input(self, ref: Ref, draft: Draft) -> MarkerInput:
        return MarkerInput(
            id=ref.id if isinstance(ref, ExistingRef) else None,
            scene_id=self.scene_id if isinstance(ref, PendingRef) else None,
            title=draft.title,
            seconds=draft.seconds,
            end_seconds=draft.end_seconds,
            primary_tag_id=draft.primary_tag_id,
            tag_ids=normalized_tag_ids(draft),
        )

    def _request_refetch(self) -> None:
        if self.schedule_refetch is not None:
            self.schedule_refetch()

    async def _create(self, ref: PendingRef, draft: Draft, version: int | None) -> Marker:
        try:
            marker = await self.stash.create_scene_marker(self._to_input(ref, draft))
        except Exception as exc:
            logger.error(f"Failed to create marker on scene {self.scene_id}: {exc}")
            raise

        self._generation += 1
        current = self._drafts.pop(ref, draft)
        edited = self._versions.pop(ref, None) != version
        new_ref = ExistingRef(id=marker.id)
        self._snapshots[marker.id] = marker
        self._drafts[new_ref] = current if edited else draft_from_marker(marker)
        self._bump(new_ref)
        return marker

    async def _update(self, ref: ExistingRef, draft: Draft, version: int | None) -> Marker:
        try:
            marker = await self.stash.update_scene_marker(self._to_input(ref, draft))
        except Exception as exc:
            logger.error(f"Failed to update marker {ref.id}: {exc}")
            raise

        self._generation += 1
        if ref not in self._drafts:
            return marker
        self._snapshots[ref.id] = marker
        # Edits made while the request was in flight stay dirty
        if self._versions.get(ref) == version:
            self._drafts[ref] = draft_from_marker(marker)
        return marker

    async def _ensure_organised_tag(self) -> None:
        if not self.organised_tag_name:
            return
        tag_id = next(
            (tid for tid, name in self.tag_catalog.items() if name == self.organised_tag_name),
            None,
        )
        if tag_id is None or tag_id in self.scene_tag_ids:
            return
        try:
            tags = await self.stash.update_scene_tags(self.scene_id, [*self.scene_tag_ids, tag_id])
        except StashError as exc:
            logger.warning(f"Failed to add '{self.organised_tag_name}' tag to scene {self.scene_id}: {exc}")
            return
        self.scene_tag_ids = [t.id for t in tags] or [*self.scene_tag_ids, tag_id]

    async def save_row(self, ref: Ref) -> Marker:
        """
        Validate and save one draft.

        A pending draft is created upstream and becomes an existing draft
        keyed by the new marker id; an existing draft is updated and its
        snapshot replaced by the saved marker.

        :param ref: Draft to save
        :type ref: ExistingRef | PendingRef
        :return: The marker as saved by Stash
        :rtype: Marker
        :raises DraftValidationError: Before any request when times are invalid
        :raises DraftBusyError: When a save for the same draft is in flight
        :raises StashError: When the mutation fails; the draft is left as it was
        """
        draft = self._get(ref).model_copy(deep=True)
        version = self._versions.get(ref)
        validate_draft(draft)
        self._ensure_idle([ref])

        self._saving.add(ref)
        try:
            if isinstance(ref, PendingRef):
                marker = await self._create(ref, draft, version)
            else:
                marker = await self._update(ref, draft, version)
        finally:
            self._saving.discard(ref)

        if isinstance(ref, PendingRef):
            await self._ensure_organised_tag()
            self._request_refetch()
        return marker

    async def save_all(self) -> BatchSaveResult:
        """
        Save every pending and dirty draft of the scene.

        The drafts are copied once and the whole batch is validated before
        any request; exactly those copies are sent, so a reload landing
        mid-batch cannot change what gets saved. Creates run before
        updates, one at a time. The first failure stops the batch: drafts
        already saved stay saved, the rest stay dirty.

        :return: Created and updated markers
        :rtype: BatchSaveResult
        :raises BatchValidationError: When any draft in the batch is invalid
        :raises DraftBusyError: When a batch or a draft save is in flight
        :raises BatchSaveError: When a mutation fails mid-batch
        """
        if self._saving_all:
            raise DraftBusyError(f"A batch save is already running for scene {self.scene_id}")

        refs: list[Ref] = [*self.pending_refs(), *self.dirty_existing_refs()]
        if not refs:
            return BatchSaveResult()

        batch = [
            (ref, self._drafts[ref].model_copy(deep=True), self._versions.get(ref))
            for ref in refs
        ]
        validate_batch(draft for _, draft, _ in batch)
        self._ensure_idle(refs)

        result = BatchSaveResult()
        saved: list[ExistingRef] = []
        self._saving.update(refs)
        self._saving_all = True
        try:
            for index, (ref, draft, version) in enumerate(batch):
                try:
                    if isinstance(ref, PendingRef):
                        marker = await self._create(ref, draft, version)
                        result.created.append(marker)
                    else:
                        marker = await self._update(ref, draft, version)
                        result.updated.append(marker)
                except Exception as exc:
                    remaining = refs[index + 1:]
                    logger.error(
                        "Batch save for scene %s stopped after %d of %d: %s",
                        self.scene_id,
                        len(saved),
                        len(refs),
                        exc,
                    )
                    raise BatchSaveError(
                        f"Batch incomplete: saved {len(saved)} of {len(refs)} marker(s); {exc}",
                        saved=saved,
                        failed=ref,
                        remaining=list(remaining),
                    ) from exc
                saved.append(ExistingRef(id=marker.id))
        finally:
            self._saving.difference_update(refs)
            self._saving_all = False

        logger.info(
            f"Saved scene {self.scene_id}: {len(result.created)} created, {len(result.updated)} updated"
        )
        await self._ensure_organised_tag()
        self._request_refetch()
        return result

    # ── Deleting ──

    def request_delete(self, ref: ExistingRef) -> None:
        self._get(ref)
        self._pending_delete = ref

    def cancel_delete(self) -> None:
        self._pending_delete = None

    def delete_row(self, ref: Ref) -> bool:
        """
        Delete a pending draft at once, or stage an existing one.

        :return: True when the delete awaits confirm_delete()
        :rtype: bool
        """
        self._get(ref)
        if isinstance(ref, PendingRef):
            self._ensure_idle([ref])
            self.remove_draft(ref)
            return False
        self.request_delete(ref)
        return True

    async def confirm_delete(self) -> ExistingRef:
        ref = self._pending_delete
        if ref is None:
            raise LookupError("No marker delete is awaiting confirmation")
        self._ensure_idle([ref])

        self._saving.add(ref)
        try:
            destroyed = await self.stash.destroy_scene_marker(ref.id)
        except Exception as exc:
            logger.error(f"Failed to delete marker {ref.id}: {exc}")
            raise
        finally:
            self._saving.discard(ref)

        if not destroyed:
            raise StashError(f"Stash did not delete marker {ref.id}")

        self._generation += 1
        self.remove_draft(ref)
        self._request_refetch()
        return ref
