from __future__ import annotations

import os
import re
from typing import Any

__all__ = [
    "RUNTIME_MODE_ENV",
    "_is_production",
    "_redact_for_log",
    "_unwrap_source_name",
]

RUNTIME_MODE_ENV = "APP_ENV"

_SECRET_HINTS = ("secret", "password", "token", "key", "passwd", "api_key", "credential")
_WRAPPER_RE = re.compile(r"^(?:cached|retry)\((.*)\)$")


def _is_production() -> bool:
    return os.getenv(RUNTIME_MODE_ENV, "").strip().lower() == "production"


def _redact_for_log(name: str, value: Any, *, secret: bool = False) -> str:
    """
    Redact likely secrets in logs.
    """
    lowered = name.lower()
    if secret or any(s in lowered for s in _SECRET_HINTS):
        return "***"
    try:
        return repr(value)
    except Exception:
        return "<unreprable>"


def _unwrap_source_name(name: str) -> str:
    # cached(retry(dotenv(.env))) -> dotenv(.env)
    while True:
        match = _WRAPPER_RE.match(name)
        if match is None:
            return name
        name = match.group(1)
