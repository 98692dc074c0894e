"""Tests for the in-memory side of the market-data cache."""

from types import SimpleNamespace

import pytest

from stock_tracker.core import cache as cache_module
from stock_tracker.core.cache import CacheClient, MemoryTTLCache


@pytest.fixture
def clock(monkeypatch):
    now = SimpleNamespace(value=1000.0)
    monkeypatch.setattr(cache_module, "time", SimpleNamespace(monotonic=lambda: now.value))
    return now


class TestMemoryTTLCache:
    @pytest.mark.asyncio
    async def test_entry_expires_after_ttl(self, clock):
        memory = MemoryTTLCache()
        await memory.set("chart:AAPL:2024-03-08", [1, 2], ttl_seconds=30)

        assert await memory.get("chart:AAPL:2024-03-08") == [1, 2]

        clock.value += 31
        assert await memory.get("chart:AAPL:2024-03-08") is None

    @pytest.mark.asyncio
    async def test_set_sweeps_expired_keys_never_read_again(self, clock):
        memory = MemoryTTLCache()
        await memory.set("chart:AAPL:2024-03-07", [1], ttl_seconds=30)
        await memory.set("chart:AAPL:2024-03-08", [2], ttl_seconds=30)
        assert len(memory) == 2

        clock.value += 60
        await memory.set("chart:AAPL:2024-03-09", [3], ttl_seconds=30)

        assert len(memory) == 1
        assert await memory.get("chart:AAPL:2024-03-09") == [3]


class TestCacheClientWithoutRedis:
    @pytest.mark.asyncio
    async def test_remember_calls_producer_once(self):
        client = CacheClient(redis_url=None)
        calls = []

        async def produce():
            calls.append(1)
            return {"success": True}

        assert await client.remember("indices:AAPL", produce) == {"success": True}
        assert await client.remember("indices:AAPL", produce) == {"success": True}
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_connect_without_url_stays_in_memory(self):
        client = CacheClient(redis_url=None)

        await client.connect()
        await client.set("k", ["v"])

        assert await client.get("k") == ["v"]
        await client.close()
