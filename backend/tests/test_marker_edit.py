import asyncio

import pytest

from helpers import FakeStash
from stash_playlists.models import ExistingRef
from stash_playlists.services.marker_edit import MarkerEditService


class RecordingNotifier:
    def __init__(self):
        self.views = []

    async def markers_refetched(self, view):
        self.views.append(view)


def test_open_session_loads_scene_and_tag_catalog():
    service = MarkerEditService(FakeStash(), refetch_delay=0)
    store = asyncio.run(service.open_session("1"))
    assert store.scene_title == "Live Set"
    assert store.tag_catalog["t9"] == "Markers Organised"
    assert service.get_store("1") is store


def test_unknown_scene_raises_lookup():
    service = MarkerEditService(FakeStash(), refetch_delay=0)
    with pytest.raises(LookupError):
        asyncio.run(service.open_session("404"))
    with pytest.raises(LookupError):
        service.get_store("404")


def test_create_triggers_delayed_refetch_and_notification():
    stash = FakeStash()
    notifier = RecordingNotifier()
    service = MarkerEditService(stash, notifier=notifier, refetch_delay=0)

    async def scenario():
        store = await service.open_session("1")
        ref = store.add_new_draft(seconds=1, end_seconds=2, primary_tag_id="t3", title="Cue")
        marker = await store.save_row(ref)
        # Reconciliation is scheduled, not run inline
        assert notifier.views == []
        await service.wait_for_refetches()
        return store, marker

    store, marker = asyncio.run(scenario())

    assert len(notifier.views) == 1
    view = notifier.views[0]
    assert view.scene_id == "1"
    assert ExistingRef(id=marker.id) in {e.ref for e in view.entries}
    assert "t9" in store.scene_tag_ids


def test_refetches_are_coalesced_per_scene():
    stash = FakeStash()
    notifier = RecordingNotifier()
    service = MarkerEditService(stash, notifier=notifier, refetch_delay=0)

    async def scenario():
        await service.open_session("1")
        service.schedule_refetch("1")
        service.schedule_refetch("1")
        await service.wait_for_refetches()

    asyncio.run(scenario())
    assert len(notifier.views) == 1


def test_failed_refetch_is_logged_not_raised(caplog):
    stash = FakeStash()
    notifier = RecordingNotifier()
    service = MarkerEditService(stash, notifier=notifier, refetch_delay=0)

    async def scenario():
        await service.open_session("1")
        del stash.scenes["1"]
        service.schedule_refetch("1")
        await service.wait_for_refetches()

    asyncio.run(scenario())
    assert notifier.views == []
    assert "Delayed marker refetch failed" in caplog.text


def test_shutdown_cancels_pending_refetches():
    stash = FakeStash()
    notifier = RecordingNotifier()
    service = MarkerEditService(stash, notifier=notifier, refetch_delay=60)

    async def scenario():
        await service.open_session("1")
        service.schedule_refetch("1")
        await service.shutdown()

    asyncio.run(scenario())
    assert notifier.views == []


def test_close_session_forgets_store():
    service = MarkerEditService(FakeStash(), refetch_delay=0)
    asyncio.run(service.open_session("1"))
    assert service.close_session("1") is True
    assert service.close_session("1") is False


def test_marker_created_while_refetch_reads_scene_is_kept():
    stash = FakeStash()
    notifier = RecordingNotifier()
    service = MarkerEditService(stash, notifier=notifier, refetch_delay=0)

    async def scenario():
        store = await service.open_session("1")
        first = store.add_new_draft(seconds=1, end_seconds=2, primary_tag_id="t3", title="A")
        await store.save_row(first)

        # Hold the scheduled reload after it has read the scene
        stash.scene_gate = asyncio.Event()
        while stash.scene_reads < 2:
            await asyncio.sleep(0)

        second = store.add_new_draft(seconds=3, end_seconds=4, primary_tag_id="t3", title="B")
        marker = await store.save_row(second)
        stash.scene_gate.set()
        await service.wait_for_refetches()
        return store, marker

    store, marker = asyncio.run(scenario())

    assert marker.id == "101"
    assert ExistingRef(id="101") in store
    assert store.snapshot(ExistingRef(id="101")).title == "B"
    assert ExistingRef(id="101") in {e.ref for e in notifier.views[-1].entries}
    assert service._refetch_tasks == {}


def test_refetch_during_batch_save_keeps_the_validated_edits():
    stash = FakeStash()
    service = MarkerEditService(stash, refetch_delay=0)
    m1, m2 = ExistingRef(id="m1"), ExistingRef(id="m2")

    async def scenario():
        store = await service.open_session("1")
        ref = store.add_new_draft(seconds=50, end_seconds=60, primary_tag_id="t3", title="Encore")
        await store.save_row(ref)
        store.set_draft(m1, title="Opening v2")
        store.set_draft(m2, title="Bridge v2")

        stash.gate = asyncio.Event()
        batch = asyncio.create_task(store.save_all())
        await asyncio.sleep(0)
        # The reload scheduled by the create lands while the batch waits
        await service.wait_for_refetches()
        assert store.get_draft(m2).title == "Bridge v2"
        stash.gate.set()
        result = await batch
        await service.wait_for_refetches()
        return store, result

    store, result = asyncio.run(scenario())

    assert [m.title for m in result.updated] == ["Opening v2", "Bridge v2"]
    upstream = {m.id: m.title for m in stash.scenes["1"].scene_markers}
    assert upstream["m1"] == "Opening v2"
    assert upstream["m2"] == "Bridge v2"
    assert store.get_draft(m2).title == "Bridge v2"
    assert store.dirty_count == 0


def test_scene_read_overlapping_a_save_is_read_again():
    stash = FakeStash()
    service = MarkerEditService(stash, refetch_delay=0)

    async def scenario():
        store = await service.open_session("1")
        store.set_draft(ExistingRef(id="m1"), title="Opening v2")
        gate = asyncio.Event()
        stash.scene_gate = gate
        reload = asyncio.create_task(service.open_session("1"))
        while stash.scene_reads < 2:
            await asyncio.sleep(0)
        stash.scene_gate = None
        await store.save_row(ExistingRef(id="m1"))
        gate.set()
        await reload
        return store

    store = asyncio.run(scenario())

    assert stash.scene_reads == 3
    assert store.snapshot(ExistingRef(id="m1")).title == "Opening v2"
    assert not store.is_dirty(ExistingRef(id="m1"))
