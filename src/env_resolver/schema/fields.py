"""
Definition builders for schemas that need more than the string shorthand.

Each helper returns a frozen Definition, so they can be mixed freely with
shorthand entries::

    schema = {
        "PORT": port(default=8080),
        "DATABASE_URL": postgres(),
        "API_KEY": secret(),
        "ALLOWED_HOSTS": string_array(separator=";"),
    }
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Sequence

from .definition import MISSING, Definition

__all__ = [
    "string",
    "number",
    "boolean",
    "port",
    "url",
    "http_url",
    "https_url",
    "email",
    "postgres",
    "mysql",
    "mongodb",
    "redis",
    "json_value",
    "date",
    "timestamp",
    "duration",
    "file",
    "secret",
    "one_of",
    "string_array",
    "custom",
]


def _typed(type_name: str) -> Callable[..., Definition]:
    def build(
        *,
        default: Any = MISSING,
        optional: bool = False,
        description: Optional[str] = None,
        **extra: Any,
    ) -> Definition:
        return Definition(
            type=type_name,
            default=default,
            optional=optional,
            description=description,
            **extra,
        )

    build.__name__ = type_name
    build.__doc__ = f"Definition for a '{type_name}' value."
    return build


def string(
    *,
    default: Any = MISSING,
    optional: bool = False,
    min: Optional[int] = None,
    max: Optional[int] = None,
    pattern: Optional[str] = None,
    allow_empty: bool = False,
    description: Optional[str] = None,
) -> Definition:
    return Definition(
        type="string",
        default=default,
        optional=optional,
        min=min,
        max=max,
        pattern=pattern,
        allow_empty=allow_empty,
        description=description,
    )


def number(
    *,
    default: Any = MISSING,
    optional: bool = False,
    min: Optional[float] = None,
    max: Optional[float] = None,
    description: Optional[str] = None,
) -> Definition:
    return Definition(
        type="number", default=default, optional=optional, min=min, max=max, description=description
    )


boolean = _typed("boolean")
port = _typed("port")
url = _typed("url")
http_url = _typed("http")
https_url = _typed("https")
email = _typed("email")
postgres = _typed("postgres")
mysql = _typed("mysql")
mongodb = _typed("mongodb")
redis = _typed("redis")
json_value = _typed("json")
date = _typed("date")
timestamp = _typed("timestamp")
duration = _typed("duration")
file = _typed("file")


def secret(
    *, default: Any = MISSING, optional: bool = False, description: Optional[str] = None
) -> Definition:
    """A string that is redacted in logs and flagged in audit events."""
    return Definition(
        type="string", default=default, optional=optional, secret=True, description=description
    )


def one_of(
    choices: Sequence[str],
    *,
    default: Any = MISSING,
    optional: bool = False,
    description: Optional[str] = None,
) -> Definition:
    return Definition(
        type="string",
        enum=tuple(choices),
        default=default,
        optional=optional,
        description=description,
    )


def string_array(
    *,
    separator: str = ",",
    default: Any = MISSING,
    optional: bool = False,
    min: Optional[int] = None,
    max: Optional[int] = None,
    description: Optional[str] = None,
) -> Definition:
    return Definition(
        type="array",
        separator=separator,
        default=default,
        optional=optional,
        min=min,
        max=max,
        description=description,
    )


def custom(
    validator: Callable[[str], Any],
    *,
    default: Any = MISSING,
    optional: bool = False,
    description: Optional[str] = None,
) -> Definition:
    """Wrap ``validator``; it receives the raw string and returns the typed value or raises."""
    return Definition(
        type="custom", validator=validator, default=default, optional=optional, description=description
    )
