from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from env_resolver.audit import clear_audit_log, get_audit_log
from env_resolver.exceptions import ResolverError
from env_resolver.resolver import ResolvedConfig, ResolveOptions, Resolver
from env_resolver.sources.base import Source
from env_resolver.sources.builtin import process_env

logger = logging.getLogger("env_resolver.api")
logger.addHandler(logging.NullHandler())

__all__ = [
    "SafeResolveResult",
    "resolve",
    "resolve_async",
    "safe_resolve",
    "safe_resolve_async",
    "get_audit_log",
    "clear_audit_log",
]

SourceEntry = Union[Source, Tuple[Source, Mapping[str, Any]]]


@dataclass(frozen=True)
class SafeResolveResult:
    success: bool
    data: Optional[ResolvedConfig] = None
    error: Optional[str] = None
    errors: Mapping[str, str] = field(default_factory=dict)


def _build(
    schema: Optional[Mapping[str, Any]],
    sources: Optional[Sequence[SourceEntry]],
    options: Dict[str, Any],
) -> Resolver:
    """
    Split ``sources`` into plain sources and a merged schema.

    Each entry is either a source or a ``(source, schema)`` pair. The explicit
    ``schema`` comes first and each pair's schema is laid over it in order, so
    later definitions of the same key win. ``None`` means the process
    environment only; an empty sequence means no sources at all.
    """
    merged: Dict[str, Any] = dict(schema or {})
    plain: List[Source] = []
    if sources is None:
        sources = [process_env()]
    for entry in sources:
        if isinstance(entry, tuple):
            source, subset = entry
            merged.update(subset)
        else:
            source = entry
        plain.append(source)
    return Resolver(merged, plain, ResolveOptions(**options))


def resolve(
    schema: Optional[Mapping[str, Any]] = None,
    sources: Optional[Sequence[SourceEntry]] = None,
    **options: Any,
) -> ResolvedConfig:
    """
    Resolve ``schema`` synchronously and return the typed values.

    Sources are read through their ``load_sync()``. Keyword options are those
    of ``ResolveOptions``. Raises a ``ResolverError`` subclass on any failure.
    """
    return _build(schema, sources, options).resolve()


async def resolve_async(
    schema: Optional[Mapping[str, Any]] = None,
    sources: Optional[Sequence[SourceEntry]] = None,
    **options: Any,
) -> ResolvedConfig:
    return await _build(schema, sources, options).resolve_async()


def _failure(exc: ResolverError) -> SafeResolveResult:
    errors = getattr(exc, "errors", None)
    if errors is None:
        key = getattr(exc, "key", None) or getattr(exc, "source", None)
        errors = {key: str(exc)} if key else {}
    logger.debug("Safe resolution failed: %s", exc)
    return SafeResolveResult(success=False, error=str(exc), errors=dict(errors))


def safe_resolve(
    schema: Optional[Mapping[str, Any]] = None,
    sources: Optional[Sequence[SourceEntry]] = None,
    **options: Any,
) -> SafeResolveResult:
    """Like ``resolve`` but returns a ``SafeResolveResult`` instead of raising resolution errors."""
    try:
        data = resolve(schema, sources, **options)
    except ResolverError as exc:
        return _failure(exc)
    return SafeResolveResult(success=True, data=data)


async def safe_resolve_async(
    schema: Optional[Mapping[str, Any]] = None,
    sources: Optional[Sequence[SourceEntry]] = None,
    **options: Any,
) -> SafeResolveResult:
    try:
        data = await resolve_async(schema, sources, **options)
    except ResolverError as exc:
        return _failure(exc)
    return SafeResolveResult(success=True, data=data)
