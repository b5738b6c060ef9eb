from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable, Dict, List, Mapping, Tuple

from env_resolver.exceptions import SchemaDefinitionError

from .definition import Definition

logger = logging.getLogger("env_resolver.schema")
logger.addHandler(logging.NullHandler())

__all__ = ["normalize_schema", "normalize_entry", "parse_shorthand"]

_PATTERN_SHORTHAND = re.compile(r"^(\w+)(\??):(/.*/)$")
_NUMERIC_TYPES = ("number", "port", "timestamp")


def _coerce_number(key: str, literal: str) -> Any:
    try:
        return int(literal)
    except ValueError:
        pass
    try:
        return float(literal)
    except ValueError as exc:
        raise SchemaDefinitionError(key, f"default {literal!r} is not a number") from exc


def _coerce_default(key: str, type_name: str, literal: str) -> Any:
    if type_name in _NUMERIC_TYPES:
        return _coerce_number(key, literal)
    if type_name == "boolean":
        return literal == "true"
    if type_name == "json":
        try:
            return json.loads(literal)
        except ValueError as exc:
            raise SchemaDefinitionError(key, f"default {literal!r} is not valid JSON") from exc
    if type_name == "array":
        return [item.strip() for item in literal.split(",") if item.strip()]
    return literal


def parse_shorthand(key: str, value: str) -> Definition:
    """
    Parse a string shorthand such as ``"number?"``, ``"port:8080"`` or
    ``"string:/^[a-z]+$/"`` into a Definition.

    Pattern shorthand is tried first so a colon inside the regex literal is
    never read as a default separator.
    """
    match = _PATTERN_SHORTHAND.match(value)
    if match:
        type_name, optional, pattern = match.groups()
        try:
            return Definition(type=type_name, pattern=pattern[1:-1], optional=bool(optional))
        except ValueError as exc:
            raise SchemaDefinitionError(key, str(exc)) from exc

    type_part, sep, literal = value.partition(":")
    if sep and type_part and literal:
        optional = "?" in type_part
        type_name = type_part.replace("?", "") or "string"
        return Definition(
            type=type_name,
            default=_coerce_default(key, type_name, literal),
            optional=optional,
        )

    optional = value.endswith("?")
    type_name = value.replace("?", "").rstrip(":") or "string"
    return Definition(type=type_name, optional=optional)


def _from_mapping(key: str, value: Mapping[str, Any]) -> Definition:
    try:
        return Definition(**dict(value))
    except TypeError as exc:
        raise SchemaDefinitionError(key, f"invalid definition mapping: {exc}") from exc


def _from_sequence(key: str, value: Any) -> Definition:
    choices = tuple(value)
    if not choices:
        raise SchemaDefinitionError(key, "enum must contain at least one value")
    if not all(isinstance(c, str) for c in choices):
        raise SchemaDefinitionError(key, "enum values must be strings")
    return Definition(type="string", enum=choices, default=choices[0])


def _from_callable(key: str, value: Callable[[str], Any]) -> Definition:
    return Definition(type="custom", validator=value)


# Order matters: bool is a subclass of int.
_PARSERS: List[Tuple[Callable[[Any], bool], Callable[[str, Any], Definition]]] = [
    (lambda v: isinstance(v, Definition), lambda k, v: v),
    (lambda v: isinstance(v, str), parse_shorthand),
    (lambda v: isinstance(v, bool), lambda k, v: Definition(type="boolean", default=v)),
    (
        lambda v: isinstance(v, (int, float)),
        lambda k, v: Definition(type="number", default=v),
    ),
    (lambda v: isinstance(v, Mapping), _from_mapping),
    (lambda v: isinstance(v, (list, tuple)), _from_sequence),
    (callable, _from_callable),
]


def normalize_entry(key: str, value: Any) -> Definition:
    for matches, parse in _PARSERS:
        if matches(value):
            try:
                definition = parse(key, value)
            except ValueError as exc:
                raise SchemaDefinitionError(key, str(exc)) from exc
            logger.debug("Normalized %r -> %r", key, definition)
            return definition
    raise SchemaDefinitionError(key, f"unsupported schema entry of type {type(value).__name__}")


def normalize_schema(schema: Mapping[str, Any]) -> Dict[str, Definition]:
    """Convert a shorthand schema into one canonical Definition per key."""
    return {key: normalize_entry(key, value) for key, value in schema.items()}
