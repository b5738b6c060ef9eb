"""
Validators for the advanced type names (connection strings, URLs, email,
port, JSON, dates, durations, file contents).

Imported lazily by the registry on first dispatch; nothing here is needed on
the common string/number/boolean path.
"""

from __future__ import annotations

import datetime
import json
import math
import re
from pathlib import Path
from typing import Callable, Dict, Tuple
from urllib.parse import urlsplit

from .protocol import ValidationResult

__all__ = ["BUILTIN_VALIDATORS", "BUILTIN_ALIASES"]

_ALLOWED_URL_SCHEMES = frozenset(
    {
        "http",
        "https",
        "ws",
        "wss",
        "ftp",
        "ftps",
        "file",
        "postgres",
        "postgresql",
        "mysql",
        "mongodb",
        "redis",
        "rediss",
    }
)
_EMAIL_RE = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)
_MONGO_RE = re.compile(r"^mongodb(\+srv)?://([^@]+@)?[^/]+(/[^?]*)?(\?.*)?$")
_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}(T\d{2}:\d{2}:\d{2}(\.\d{1,6})?(Z|[+-]\d{2}:\d{2})?)?$")
_DURATION_SIMPLE_RE = re.compile(r"^(\d+(?:\.\d+)?)(ms|s|m|h|d)$")
_DURATION_COMBINED_RE = re.compile(
    r"^(?:(\d+(?:\.\d+)?)h)?(?:(\d+(?:\.\d+)?)m)?(?:(\d+(?:\.\d+)?)s)?(?:(\d+(?:\.\d+)?)ms)?$"
)
_DURATION_MS = {"ms": 1, "s": 1000, "m": 60_000, "h": 3_600_000, "d": 86_400_000}
_MAX_TIMESTAMP = 253402300799  # 9999-12-31T23:59:59Z


def _has_host(value: str) -> bool:
    try:
        parts = urlsplit(value)
        # accessing .port raises ValueError for out-of-range or non-numeric ports
        parts.port
    except ValueError:
        return False
    return bool(parts.netloc)


def _connection_url(schemes: Tuple[str, ...], label: str) -> Callable[[str], ValidationResult]:
    def validate(value: str) -> ValidationResult:
        scheme = value.split("://", 1)[0] if "://" in value else ""
        if scheme not in schemes or not value.split("://", 1)[1] or not _has_host(value):
            return ValidationResult.fail(f"Invalid {label} URL")
        return ValidationResult.ok(value)

    return validate


def validate_mongodb(value: str) -> ValidationResult:
    # replica-set URLs list several hosts, so urlsplit cannot be used here
    if not _MONGO_RE.match(value):
        return ValidationResult.fail("Invalid MongoDB URL")
    return ValidationResult.ok(value)


def validate_url(value: str) -> ValidationResult:
    parts = urlsplit(value)
    if not parts.scheme:
        return ValidationResult.fail("Invalid URL")
    if parts.scheme.lower() not in _ALLOWED_URL_SCHEMES:
        return ValidationResult.fail(f"URL protocol '{parts.scheme}:' is not allowed")
    if parts.scheme != "file" and not _has_host(value):
        return ValidationResult.fail("Invalid URL")
    return ValidationResult.ok(value)


def validate_http(value: str) -> ValidationResult:
    if not re.match(r"^https?://", value) or not _has_host(value):
        return ValidationResult.fail("Invalid HTTP URL")
    return ValidationResult.ok(value)


def validate_https(value: str) -> ValidationResult:
    if not value.startswith("https://") or not _has_host(value):
        return ValidationResult.fail("Invalid HTTPS URL")
    return ValidationResult.ok(value)


def validate_email(value: str) -> ValidationResult:
    if len(value) > 254 or not _EMAIL_RE.match(value):
        return ValidationResult.fail("Invalid email")
    return ValidationResult.ok(value)


def validate_port(value: str) -> ValidationResult:
    try:
        port = int(value)
    except ValueError:
        return ValidationResult.fail("Invalid port")
    if not 1 <= port <= 65535:
        return ValidationResult.fail("Invalid port")
    return ValidationResult.ok(port)


def validate_json(value: str) -> ValidationResult:
    try:
        return ValidationResult.ok(json.loads(value))
    except ValueError:
        return ValidationResult.fail("Invalid JSON")


def validate_date(value: str) -> ValidationResult:
    if not _ISO_DATE_RE.match(value):
        return ValidationResult.fail(
            "Date must be in ISO 8601 format (YYYY-MM-DD or YYYY-MM-DDTHH:mm:ss.sssZ)"
        )
    try:
        if "T" in value:
            datetime.datetime.fromisoformat(value.replace("Z", "+00:00"))
        else:
            datetime.date.fromisoformat(value)
    except ValueError:
        return ValidationResult.fail("Invalid date value")
    return ValidationResult.ok(value)


def validate_timestamp(value: str) -> ValidationResult:
    if not value.isdigit():
        return ValidationResult.fail("Invalid timestamp")
    ts = int(value)
    if ts > _MAX_TIMESTAMP:
        return ValidationResult.fail("Timestamp too large")
    return ValidationResult.ok(ts)


def validate_duration(value: str) -> ValidationResult:
    """Parse ``5s``, ``250ms``, ``1.5h`` or ``2h30m`` into milliseconds."""
    simple = _DURATION_SIMPLE_RE.match(value)
    if simple:
        amount, unit = simple.groups()
        return ValidationResult.ok(math.floor(float(amount) * _DURATION_MS[unit]))
    combined = _DURATION_COMBINED_RE.match(value)
    if combined and combined.group(0):
        hours, minutes, seconds, millis = (float(g) if g else 0.0 for g in combined.groups())
        total = hours * 3_600_000 + minutes * 60_000 + seconds * 1000 + millis
        if total > 0:
            return ValidationResult.ok(math.floor(total))
    return ValidationResult.fail("Duration must be in format: 5s, 2h, 30m, 1h30m, etc.")


def validate_file(value: str) -> ValidationResult:
    try:
        return ValidationResult.ok(Path(value).expanduser().resolve().read_text("utf-8").strip())
    except OSError as exc:
        return ValidationResult.fail(f"Failed to read file: {exc}")


BUILTIN_VALIDATORS: Dict[str, Callable[[str], ValidationResult]] = {
    "postgres": _connection_url(("postgres", "postgresql"), "PostgreSQL"),
    "mysql": _connection_url(("mysql",), "MySQL"),
    "mongodb": validate_mongodb,
    "redis": _connection_url(("redis", "rediss"), "Redis"),
    "http": validate_http,
    "https": validate_https,
    "url": validate_url,
    "email": validate_email,
    "port": validate_port,
    "json": validate_json,
    "date": validate_date,
    "timestamp": validate_timestamp,
    "duration": validate_duration,
    "file": validate_file,
}

BUILTIN_ALIASES: Dict[str, Tuple[str, ...]] = {
    "postgres": ("postgresql",),
}
