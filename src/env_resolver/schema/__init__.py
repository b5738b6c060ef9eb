from __future__ import annotations

from .definition import BASIC_TYPES, MISSING, Definition
from .normalize import normalize_entry, normalize_schema, parse_shorthand

__all__ = [
    "BASIC_TYPES",
    "MISSING",
    "Definition",
    "normalize_entry",
    "normalize_schema",
    "parse_shorthand",
]
