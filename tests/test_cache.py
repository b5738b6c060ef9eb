import asyncio
import logging

import pytest

from conftest import CountingSource
from env_resolver.sources import TTL, CachedSource, cached, secret_store_cache


class GatedSource:
    """Source whose load blocks until released, to keep a refresh in flight."""

    def __init__(self, values):
        self.name = "gated"
        self.values = values
        self.calls = 0
        self.gate = asyncio.Event()

    async def load(self):
        self.calls += 1
        if self.calls > 1:
            await self.gate.wait()
        return dict(self.values)


@pytest.mark.asyncio
async def test_cached_serves_fresh_entry_without_reloading(clock):
    inner = CountingSource("vault", {"A": "1"})
    src = cached(inner, ttl=60, max_age=600, clock=clock)
    assert src.name == "cached(vault)"

    assert await src.load() == {"A": "1"}
    assert src.metadata == {"cached": False}
    clock.advance(59)
    assert await src.load() == {"A": "1"}
    assert src.metadata == {"cached": True}
    assert inner.calls == 1
    assert src.stats()["hits"] == 1


@pytest.mark.asyncio
async def test_cached_reloads_past_max_age(clock):
    inner = CountingSource("vault", {"A": "1"})
    src = cached(inner, ttl=60, max_age=600, stale_while_revalidate=True, clock=clock)
    await src.load()
    inner.values["A"] = "2"
    clock.advance(601)
    assert await src.load() == {"A": "2"}
    assert inner.calls == 2
    assert src.metadata == {"cached": False}


@pytest.mark.asyncio
async def test_cached_stale_without_swr_reloads_synchronously(clock):
    inner = CountingSource("vault", {"A": "1"})
    src = cached(inner, ttl=60, max_age=600, clock=clock)
    await src.load()
    inner.values["A"] = "2"
    clock.advance(61)
    assert await src.load() == {"A": "2"}
    assert inner.calls == 2
    assert src.refreshing is False


@pytest.mark.asyncio
async def test_stale_while_revalidate_serves_stale_then_refreshes(clock):
    inner = CountingSource("vault", {"A": "1"})
    src = cached(inner, ttl=60, max_age=600, stale_while_revalidate=True, clock=clock)
    await src.load()
    inner.values["A"] = "2"
    clock.advance(120)

    assert await src.load() == {"A": "1"}
    assert src.metadata == {"cached": True, "stale": True}
    task = src._refresh_task
    assert task is not None
    await task

    assert src.refreshing is False
    assert inner.calls == 2
    assert src.entry.timestamp == clock.now
    assert await src.load() == {"A": "2"}
    assert src.metadata == {"cached": True}
    assert inner.calls == 2


@pytest.mark.asyncio
async def test_only_one_background_refresh_in_flight(clock):
    inner = GatedSource({"A": "1"})
    src = cached(inner, ttl=10, max_age=100, stale_while_revalidate=True, clock=clock)
    await src.load()
    clock.advance(20)

    first = await src.load()
    task = src._refresh_task
    await asyncio.sleep(0)
    second = await src.load()
    assert first == second == {"A": "1"}
    assert src._refresh_task is task
    assert inner.calls == 2

    inner.gate.set()
    await task
    assert inner.calls == 2
    assert src.refreshing is False


@pytest.mark.asyncio
async def test_failed_background_refresh_keeps_stale_data(clock, caplog):
    inner = CountingSource("vault", {"A": "1"})
    src = cached(inner, ttl=10, max_age=100, stale_while_revalidate=True, clock=clock)
    await src.load()
    inner.fail = True
    clock.advance(20)

    caplog.set_level(logging.WARNING, logger="env_resolver.cache")
    assert await src.load() == {"A": "1"}
    await src._refresh_task
    assert "Background refresh of vault failed" in caplog.text
    assert src.refreshing is False

    # still served, and a new refresh may start
    assert await src.load() == {"A": "1"}
    assert src._refresh_task is not None
    await src._refresh_task
    assert inner.calls == 3


@pytest.mark.asyncio
async def test_failed_foreground_load_propagates(clock):
    src = cached(CountingSource("vault", fail=True), clock=clock)
    with pytest.raises(RuntimeError):
        await src.load()
    assert src.entry is None


def test_load_sync_follows_ttl_and_reloads_when_stale(clock):
    inner = CountingSource("vault", {"A": "1"})
    src = cached(inner, ttl=10, max_age=100, stale_while_revalidate=True, clock=clock)
    assert src.load_sync() == {"A": "1"}
    clock.advance(5)
    src.load_sync()
    assert inner.calls == 1
    clock.advance(10)
    inner.values["A"] = "2"
    assert src.load_sync() == {"A": "2"}
    assert inner.calls == 2


def test_load_sync_requires_sync_source():
    class AsyncOnly:
        name = "remote"

        async def load(self):
            return {}

    with pytest.raises(TypeError):
        cached(AsyncOnly()).load_sync()


def test_invalidate_and_independent_wrappers(clock):
    inner = CountingSource("vault", {"A": "1"})
    a = cached(inner, clock=clock)
    b = cached(inner, clock=clock)
    a.load_sync()
    b.load_sync()
    assert inner.calls == 2
    a.invalidate()
    assert a.entry is None and b.entry is not None
    a.load_sync()
    assert inner.calls == 3


def test_cache_options_validation_and_presets():
    with pytest.raises(ValueError):
        CachedSource(CountingSource("x"), ttl=100, max_age=10)
    assert TTL.MINUTES_5 == 300 and TTL.HOUR == 3600 and TTL.DAY == 86400
    opts = secret_store_cache()
    assert opts["stale_while_revalidate"] is True
    src = cached(CountingSource("ssm"), **opts)
    assert src.ttl == 300 and src.max_age == 3600 and src.key == "secret-store"
