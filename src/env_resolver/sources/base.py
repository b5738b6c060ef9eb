from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Protocol

from typing_extensions import runtime_checkable

__all__ = ["Source", "SyncSource", "Provenance", "source_metadata"]


@runtime_checkable
class Source(Protocol):
    name: str

    async def load(self) -> Mapping[str, str]: ...


@runtime_checkable
class SyncSource(Source, Protocol):
    def load_sync(self) -> Mapping[str, str]: ...


@dataclass(frozen=True)
class Provenance:
    source: str
    timestamp: float = field(default_factory=time.time)
    cached: Optional[bool] = None


def source_metadata(source: Any) -> Dict[str, Any]:
    meta = getattr(source, "metadata", None)
    return dict(meta) if isinstance(meta, Mapping) else {}
