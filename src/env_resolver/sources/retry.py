from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, Mapping, Optional

from .base import Source

logger = logging.getLogger("env_resolver.retry")
logger.addHandler(logging.NullHandler())

__all__ = ["RetrySource", "retry"]


class RetrySource:
    """
    Retry a failing source with exponential backoff.

    Attempt ``n`` (0-based) that fails is followed by a sleep of
    ``delay * 2**n`` seconds, for at most ``max_retries`` extra attempts. The
    last error is re-raised once attempts are exhausted.
    """

    def __init__(self, source: Source, max_retries: int = 3, delay: float = 1.0) -> None:
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if delay < 0:
            raise ValueError("delay must be >= 0")
        self.source = source
        self.name = f"retry({source.name})"
        self.max_retries = max_retries
        self.delay = delay

    @property
    def metadata(self) -> Dict[str, Any]:
        meta = getattr(self.source, "metadata", None)
        return dict(meta) if isinstance(meta, Mapping) else {}

    def _backoff(self, attempt: int) -> float:
        return self.delay * 2**attempt

    async def load(self) -> Mapping[str, str]:
        last_exc: Optional[Exception] = None
        for attempt in range(self.max_retries + 1):
            try:
                return await self.source.load()
            except Exception as exc:
                last_exc = exc
                if attempt < self.max_retries:
                    wait = self._backoff(attempt)
                    logger.debug(
                        "Source %s failed (attempt %d/%d), retrying in %.2fs: %s",
                        self.source.name, attempt + 1, self.max_retries + 1, wait, exc,
                    )
                    await asyncio.sleep(wait)
        logger.warning("Source %s failed after %d attempts", self.source.name, self.max_retries + 1)
        assert last_exc is not None
        raise last_exc

    def load_sync(self) -> Mapping[str, str]:
        loader = getattr(self.source, "load_sync", None)
        if loader is None:
            raise TypeError(f"Source {self.source.name} does not support synchronous loading")
        last_exc: Optional[Exception] = None
        for attempt in range(self.max_retries + 1):
            try:
                return loader()
            except Exception as exc:
                last_exc = exc
                if attempt < self.max_retries:
                    wait = self._backoff(attempt)
                    logger.debug(
                        "Source %s failed (attempt %d/%d), retrying in %.2fs: %s",
                        self.source.name, attempt + 1, self.max_retries + 1, wait, exc,
                    )
                    time.sleep(wait)
        logger.warning("Source %s failed after %d attempts", self.source.name, self.max_retries + 1)
        assert last_exc is not None
        raise last_exc

    def __repr__(self) -> str:
        return f"<RetrySource {self.name} max_retries={self.max_retries}>"


def retry(source: Source, max_retries: int = 3, delay: float = 1.0) -> RetrySource:
    return RetrySource(source, max_retries=max_retries, delay=delay)
