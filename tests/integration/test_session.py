"""Tracker selection and channel switching."""

import asyncio

import pytest

from soullink_sync.domain import progression, roster
from soullink_sync.remote.memory_impl import MemoryDocumentStore
from soullink_sync.store.session import SessionSelector


class PathGatedStore(MemoryDocumentStore):
    """Reads of gated paths block until their gate is set."""

    def __init__(self, gated_paths):
        super().__init__()
        self.gates = {path: asyncio.Event() for path in gated_paths}

    async def fetch(self, path):
        gate = self.gates.get(path)
        if gate is not None:
            await gate.wait()
        return await super().fetch(path)


@pytest.mark.integration
@pytest.mark.asyncio
class TestSessionSelector:

    async def test_select_none_clears_store(self, local_store, memory_remote, two_player_doc):
        selector = SessionSelector(local_store, memory_remote, document_factory=lambda: two_player_doc)
        await selector.select("t1")
        assert local_store.ready is True

        assert await selector.select(None) is None
        assert local_store.document is None
        assert local_store.session_id is None
        assert selector.tracker_id is None
        assert memory_remote.subscriber_count("trackers/t1/state") == 0

    async def test_same_tracker_keeps_channel(self, local_store, memory_remote):
        selector = SessionSelector(local_store, memory_remote)
        first = await selector.select("t1")
        assert await selector.select("t1") is first
        assert memory_remote.subscriber_count(first.path) == 1

    async def test_switch_detaches_previous(self, local_store, memory_remote, two_player_doc, settle):
        other = roster.rename_player(two_player_doc, 0, "Red")
        await memory_remote.write("trackers/t2/state", other.to_payload())
        selector = SessionSelector(local_store, memory_remote, document_factory=lambda: two_player_doc)

        first = await selector.select("t1")
        second = await selector.select("t2")

        assert first.closed is True
        assert memory_remote.subscriber_count(first.path) == 0
        assert memory_remote.subscriber_count(second.path) == 1
        assert local_store.session_id == "t2"
        assert local_store.document.players == ["Red", "Misty"]

        # Edits now go to the new tracker only
        local_store.apply_mutation(lambda doc: progression.toggle_level_cap(doc, 0))
        await second.flush()
        await settle()
        assert await memory_remote.fetch(first.path) is None
        assert (await memory_remote.fetch(second.path))["levelCaps"][0]["done"] is True

    async def test_late_fetch_of_previous_tracker_ignored(self, local_store, two_player_doc, settle):
        remote = PathGatedStore(["trackers/t1/state"])
        stale = roster.rename_player(two_player_doc, 0, "Stale")
        await remote.write("trackers/t1/state", stale.to_payload())
        selector = SessionSelector(local_store, remote, document_factory=lambda: two_player_doc)

        loading = asyncio.ensure_future(selector.select("t1"))
        await settle()
        await selector.select("t2")

        remote.gates["trackers/t1/state"].set()
        await loading
        await settle()

        assert local_store.session_id == "t2"
        assert local_store.document == two_player_doc
        assert remote.subscriber_count("trackers/t1/state") == 0

    async def test_close_flushes_pending_edit(self, local_store, memory_remote, two_player_doc):
        selector = SessionSelector(local_store, memory_remote, document_factory=lambda: two_player_doc)
        channel = await selector.select("t1")
        local_store.apply_mutation(lambda doc: progression.toggle_level_cap(doc, 0))

        await selector.close()

        assert channel.closed is True
        assert memory_remote.write_count == 1
        assert local_store.document is None

    async def test_path_template_from_argument(self, local_store, memory_remote):
        selector = SessionSelector(local_store, memory_remote, path_template="runs/{tracker_id}/doc")
        channel = await selector.select("abc")
        assert channel.path == "runs/abc/doc"
