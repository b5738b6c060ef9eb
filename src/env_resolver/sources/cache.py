from __future__ import annotations

import asyncio
import logging
import threading
import time
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional

from .base import Source

logger = logging.getLogger("env_resolver.cache")
logger.addHandler(logging.NullHandler())

__all__ = ["TTL", "CacheEntry", "CachedSource", "cached", "secret_store_cache"]


class TTL:
    """Common cache durations, in seconds."""

    SHORT = 30
    MINUTE = 60
    MINUTES_5 = 5 * 60
    MINUTES_15 = 15 * 60
    HOUR = 60 * 60
    HOURS_6 = 6 * 60 * 60
    DAY = 24 * 60 * 60


@dataclass
class CacheEntry:
    data: Mapping[str, str]
    timestamp: float


class CachedSource:
    """
    Wrap a source with a time-based cache.

    Within ``ttl`` seconds of the last load the cached data is served without
    touching the wrapped source. Past ``max_age`` (or with no entry yet) the
    caller waits for a fresh load. In between, the entry is stale: with
    ``stale_while_revalidate`` the stale data is served immediately and a single
    background refresh is started, otherwise the caller waits for a reload.

    A failed background refresh is logged and dropped; the stale entry keeps
    being served until it ages past ``max_age``.
    """

    def __init__(
        self,
        source: Source,
        ttl: float = TTL.MINUTES_5,
        max_age: float = TTL.HOUR,
        stale_while_revalidate: bool = False,
        key: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl < 0 or max_age < 0:
            raise ValueError("ttl and max_age must be non-negative")
        if ttl > max_age:
            raise ValueError(f"ttl ({ttl}) cannot be greater than max_age ({max_age})")
        self.source = source
        self.name = f"cached({source.name})"
        self.key = key or source.name
        self.ttl = ttl
        self.max_age = max_age
        self.stale_while_revalidate = stale_while_revalidate
        self.metadata: Dict[str, Any] = {}
        self._clock = clock
        self._entry: Optional[CacheEntry] = None
        self._refresh_task: Optional["asyncio.Task[None]"] = None
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0
        self._refreshes = 0

    @property
    def entry(self) -> Optional[CacheEntry]:
        return self._entry

    @property
    def refreshing(self) -> bool:
        return self._refresh_task is not None

    def stats(self) -> Mapping[str, int]:
        with self._lock:
            return MappingProxyType(
                {"hits": self._hits, "misses": self._misses, "refreshes": self._refreshes}
            )

    def invalidate(self) -> None:
        with self._lock:
            self._entry = None
        logger.debug("Cache %s invalidated", self.key)

    def _age(self, now: float) -> Optional[float]:
        entry = self._entry
        return None if entry is None else now - entry.timestamp

    def _store(self, data: Mapping[str, str], timestamp: float) -> Mapping[str, str]:
        with self._lock:
            self._entry = CacheEntry(data=dict(data), timestamp=timestamp)
            self.metadata = {"cached": False}
            self._misses += 1
        return self._entry.data

    def _serve(self, *, stale: bool) -> Mapping[str, str]:
        assert self._entry is not None
        with self._lock:
            self.metadata = {"cached": True, "stale": True} if stale else {"cached": True}
            self._hits += 1
            return self._entry.data

    async def load(self) -> Mapping[str, str]:
        now = self._clock()
        age = self._age(now)

        if age is None or age > self.max_age:
            logger.debug("Cache %s miss (age=%s), loading", self.key, age)
            return self._store(await self.source.load(), now)

        if age <= self.ttl:
            return self._serve(stale=False)

        if self.stale_while_revalidate:
            if self._refresh_task is None:
                logger.debug("Cache %s stale (age=%.1fs), refreshing in background", self.key, age)
                self._refresh_task = asyncio.get_running_loop().create_task(self._refresh())
            return self._serve(stale=True)

        logger.debug("Cache %s stale (age=%.1fs), reloading", self.key, age)
        return self._store(await self.source.load(), now)

    async def _refresh(self) -> None:
        try:
            data = await self.source.load()
        except Exception as exc:
            logger.warning("Background refresh of %s failed, serving stale data: %s", self.key, exc)
        else:
            with self._lock:
                self._entry = CacheEntry(data=dict(data), timestamp=self._clock())
                self._refreshes += 1
            logger.debug("Cache %s refreshed in background", self.key)
        finally:
            self._refresh_task = None

    def load_sync(self) -> Mapping[str, str]:
        loader = getattr(self.source, "load_sync", None)
        if loader is None:
            raise TypeError(f"Source {self.source.name} does not support synchronous loading")
        now = self._clock()
        age = self._age(now)
        if age is not None and age <= self.ttl:
            return self._serve(stale=False)
        logger.debug("Cache %s miss (age=%s), loading synchronously", self.key, age)
        return self._store(loader(), now)

    def __repr__(self) -> str:
        return f"<CachedSource {self.name} ttl={self.ttl} max_age={self.max_age}>"


def cached(
    source: Source,
    ttl: float = TTL.MINUTES_5,
    max_age: float = TTL.HOUR,
    stale_while_revalidate: bool = False,
    key: Optional[str] = None,
    *,
    clock: Callable[[], float] = time.monotonic,
) -> CachedSource:
    """Wrap ``source`` in its own cache. Wrapping the same source twice gives two independent caches."""
    return CachedSource(
        source,
        ttl=ttl,
        max_age=max_age,
        stale_while_revalidate=stale_while_revalidate,
        key=key,
        clock=clock,
    )


def secret_store_cache(
    ttl: float = TTL.MINUTES_5,
    max_age: float = TTL.HOUR,
    stale_while_revalidate: bool = True,
) -> Dict[str, Any]:
    """Recommended ``cached()`` options for remote secret stores: ``cached(src, **secret_store_cache())``."""
    return {
        "ttl": ttl,
        "max_age": max_age,
        "stale_while_revalidate": stale_while_revalidate,
        "key": "secret-store",
    }
