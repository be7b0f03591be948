import asyncio
import threading
import time

import pytest

from recording_service.store import TranscriptStore


class SlowStore(TranscriptStore):
    """Records how many session operations overlap."""

    def __init__(self, database_url):
        super().__init__(database_url)
        self._counter = threading.Lock()
        self.active = 0
        self.max_active = 0

    def _track(self, fn, *args):
        with self._counter:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            time.sleep(0.3)
            return fn(*args)
        finally:
            with self._counter:
                self.active -= 1

    def _add(self, *args):
        return self._track(super()._add, *args)

    def _list_all(self):
        return self._track(super()._list_all)


class TestTranscriptStore:
    @pytest.mark.asyncio
    async def test_add_then_list_newest_first(self, store):
        await store.add("+1111", "10", "first")
        await store.add("+2222", "20", "second")

        records = await store.list_all()
        assert [r.transcript for r in records] == ["second", "first"]
        assert records[0].from_number == "+2222"
        assert records[0].duration_seconds == "20"
        assert records[0].id > records[1].id
        assert records[0].created_at >= records[1].created_at

    @pytest.mark.asyncio
    async def test_empty_store_lists_nothing(self, store):
        assert await store.list_all() == []

    @pytest.mark.asyncio
    async def test_delete_removes_record(self, store):
        await store.add("+1111", "10", "keep")
        await store.add("+2222", "20", "drop")
        drop = (await store.list_all())[0]

        await store.delete(drop.id)

        assert [r.transcript for r in await store.list_all()] == ["keep"]

    @pytest.mark.asyncio
    async def test_delete_unknown_id_is_noop(self, store):
        await store.add("+1111", "10", "only")
        before = await store.list_all()

        await store.delete(9999)

        assert await store.list_all() == before

    @pytest.mark.asyncio
    async def test_concurrent_adds_are_not_lost(self, store):
        await asyncio.gather(*(store.add(f"+{i}", str(i), f"t{i}") for i in range(20)))

        records = await store.list_all()
        assert len(records) == 20
        ids = [r.id for r in records]
        assert len(set(ids)) == 20
        assert ids == sorted(ids, reverse=True)

    @pytest.mark.asyncio
    async def test_in_memory_database(self):
        store = TranscriptStore("sqlite://")
        store.create_schema()
        await store.add("+1", "1", "memory")
        assert [r.transcript for r in await store.list_all()] == ["memory"]
        store.dispose()

    @pytest.mark.asyncio
    async def test_cancelled_add_still_finishes_before_next_operation(self, tmp_path):
        store = SlowStore(f"sqlite:///{tmp_path / 'slow.db'}")
        store.create_schema()

        task = asyncio.create_task(store.add("+1", "1", "cancelled caller"))
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        records = await store.list_all()

        assert store.max_active == 1
        assert [r.transcript for r in records] == ["cancelled caller"]
        store.dispose()

    @pytest.mark.asyncio
    async def test_usable_after_dispose(self, store):
        await store.add("+1", "1", "before")
        store.dispose()
        await store.add("+2", "2", "after")
        assert [r.transcript for r in await store.list_all()] == ["after", "before"]
