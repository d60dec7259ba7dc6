# tests/test_memory_storage.py
import pytest

from welcomebot.core.engine.domain import StoredRecord
from welcomebot.core.engine.errors import StateConflictError
from welcomebot.infra.memory_storage import MemoryStorage
from welcomebot.infra.metrics import get_metrics_collector


class TestMemoryStorage:

    def setup_method(self):
        self.storage = MemoryStorage()
        get_metrics_collector().reset()

    @pytest.mark.asyncio
    async def test_read_missing_keys_are_absent(self):
        assert await self.storage.read(["nope"]) == {}

    @pytest.mark.asyncio
    async def test_create_then_read(self):
        etags = await self.storage.write({"k": StoredRecord(document='{"a":1}', etag=None)})
        items = await self.storage.read(["k", "other"])

        assert list(items) == ["k"]
        assert items["k"].document == '{"a":1}'
        assert items["k"].etag == etags["k"]

    @pytest.mark.asyncio
    async def test_create_only_conflicts_when_present(self):
        await self.storage.write({"k": StoredRecord(document="{}", etag=None)})
        with pytest.raises(StateConflictError):
            await self.storage.write({"k": StoredRecord(document="{}", etag=None)})

        counters = get_metrics_collector().get_metrics()["counters"]
        assert counters["user_state_conflicts_total{backend=memory}"] == 1

    @pytest.mark.asyncio
    async def test_matching_etag_updates_and_bumps_version(self):
        first = await self.storage.write({"k": StoredRecord(document="{}", etag=None)})
        second = await self.storage.write({"k": StoredRecord(document='{"b":2}', etag=first["k"])})

        assert second["k"] != first["k"]
        assert self.storage.raw("k") == '{"b":2}'

    @pytest.mark.asyncio
    async def test_stale_etag_conflicts(self):
        first = await self.storage.write({"k": StoredRecord(document="{}", etag=None)})
        await self.storage.write({"k": StoredRecord(document="{}", etag=first["k"])})

        with pytest.raises(StateConflictError):
            await self.storage.write({"k": StoredRecord(document='{"lost":true}', etag=first["k"])})
        assert self.storage.raw("k") == "{}"

    @pytest.mark.asyncio
    async def test_wildcard_overwrites(self):
        await self.storage.write({"k": StoredRecord(document="{}", etag=None)})
        await self.storage.write({"k": StoredRecord(document='{"w":1}', etag="*")})
        assert self.storage.raw("k") == '{"w":1}'

    @pytest.mark.asyncio
    async def test_batch_is_all_or_nothing(self):
        await self.storage.write({"taken": StoredRecord(document="{}", etag=None)})

        with pytest.raises(StateConflictError):
            await self.storage.write({
                "fresh": StoredRecord(document="{}", etag=None),
                "taken": StoredRecord(document="{}", etag=None),
            })
        assert self.storage.raw("fresh") is None

    @pytest.mark.asyncio
    async def test_read_returns_copies(self):
        await self.storage.write({"k": StoredRecord(document="{}", etag=None)})
        items = await self.storage.read(["k"])
        items["k"].document = "mutated"
        assert self.storage.raw("k") == "{}"

    @pytest.mark.asyncio
    async def test_delete(self):
        await self.storage.write({"k": StoredRecord(document="{}", etag=None)})
        await self.storage.delete(["k", "never-existed"])
        assert await self.storage.read(["k"]) == {}
