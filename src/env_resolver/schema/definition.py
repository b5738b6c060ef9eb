from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Tuple

__all__ = ["MISSING", "BASIC_TYPES", "Definition"]


class _Missing:
    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()

# Validated inline; every other type name goes to the advanced validator registry.
BASIC_TYPES = frozenset({"string", "number", "boolean", "custom", "array"})


@dataclass(frozen=True)
class Definition:
    type: str = "string"
    default: Any = MISSING
    optional: bool = False
    enum: Optional[Tuple[str, ...]] = None
    pattern: Optional[str] = None
    min: Optional[float] = None
    max: Optional[float] = None
    secret: bool = False
    validator: Optional[Callable[[str], Any]] = field(default=None, compare=False)
    separator: Optional[str] = None
    allow_empty: bool = False
    description: Optional[str] = None

    def __post_init__(self) -> None:
        if self.enum is not None and not isinstance(self.enum, tuple):
            object.__setattr__(self, "enum", tuple(self.enum))
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError(f"min ({self.min}) cannot be greater than max ({self.max})")
        if self.pattern is not None:
            try:
                re.compile(self.pattern)
            except re.error as exc:
                raise ValueError(f"invalid pattern {self.pattern!r}: {exc}") from exc

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING

    @property
    def required(self) -> bool:
        return not self.optional and not self.has_default

    @property
    def is_basic(self) -> bool:
        return self.type in BASIC_TYPES

