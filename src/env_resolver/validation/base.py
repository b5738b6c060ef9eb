from __future__ import annotations

import json
import logging
import math
import re
from copy import deepcopy
from typing import Any, Dict, Mapping, Optional

from env_resolver.exceptions import MissingValidatorError, ResolverValidationError
from env_resolver.schema.definition import Definition

from .protocol import AdvancedValidatorProtocol
from .registry import REGISTRY

logger = logging.getLogger("env_resolver.validation")
logger.addHandler(logging.NullHandler())

__all__ = ["FieldValidator", "render_default", "validate_field"]

_TRUE = frozenset({"true", "1", "yes", "on"})
_FALSE = frozenset({"false", "0", "no", "off"})
_NUMBER_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)


def render_default(definition: Definition) -> str:
    """Turn a literal default back into the raw string a source would have provided."""
    value = definition.default
    if isinstance(value, bool):
        return "true" if value else "false"
    if definition.type == "json":
        return json.dumps(value)
    if isinstance(value, (list, tuple)):
        return (definition.separator or ",").join(str(v) for v in value)
    return str(value)


class FieldValidator:
    """
    Type-check and coerce one raw string against its Definition.

    Basic types are handled inline; other type names are delegated to the
    advanced validator registry.
    """

    def __init__(
        self,
        validators: Optional[AdvancedValidatorProtocol] = None,
        *,
        validate_defaults: bool = False,
    ) -> None:
        self._validators = validators if validators is not None else REGISTRY
        self._validate_defaults = validate_defaults

    def check_definition(self, key: str, definition: Definition) -> None:
        """Raise MissingValidatorError if ``definition`` can never be validated."""
        if definition.type == "custom":
            if definition.validator is None:
                raise MissingValidatorError(key, "custom")
        elif not definition.is_basic and not self._validators.has(definition.type):
            raise MissingValidatorError(key, definition.type)

    def validate_value(self, key: str, definition: Definition, raw: Optional[str]) -> Any:
        missing = raw is None or (raw == "" and not definition.allow_empty)
        if missing:
            if definition.has_default:
                if not self._validate_defaults or definition.default is None:
                    return deepcopy(definition.default)
                raw = render_default(definition)
                logger.debug("Validating default for %r", key)
            elif definition.optional:
                return None
            elif raw == "":
                raise ResolverValidationError({key: f"{key} cannot be empty"})
            else:
                raise ResolverValidationError(
                    {key: f"Missing required environment variable: {key}"}
                )

        assert raw is not None
        if definition.enum is not None and raw not in definition.enum:
            raise ResolverValidationError(
                {key: f"{key} must be one of: {', '.join(definition.enum)}"}
            )
        if definition.pattern is not None and not re.search(definition.pattern, raw):
            raise ResolverValidationError(
                {key: f"{key} does not match required pattern: {definition.pattern}"}
            )
        return self._coerce(key, definition, raw)

    def validate_mapping(
        self, definitions: Mapping[str, Definition], raw_values: Mapping[str, str]
    ) -> Dict[str, Any]:
        errors: Dict[str, str] = {}
        result: Dict[str, Any] = {}
        for key, definition in definitions.items():
            try:
                result[key] = self.validate_value(key, definition, raw_values.get(key))
            except ResolverValidationError as exc:
                errors.update(exc.errors)
        if errors:
            raise ResolverValidationError(errors)
        return result

    def _coerce(self, key: str, definition: Definition, raw: str) -> Any:
        type_name = definition.type
        if type_name == "string":
            self._check_bounds(key, definition, len(raw), "characters")
            return raw
        if type_name == "number":
            value = _parse_number(raw)
            if value is None:
                raise ResolverValidationError({key: f"{key}: Invalid number"})
            self._check_bounds(key, definition, value)
            return value
        if type_name == "boolean":
            lowered = raw.strip().lower()
            if lowered in _TRUE:
                return True
            if lowered in _FALSE:
                return False
            raise ResolverValidationError({key: f"{key}: Invalid boolean"})
        if type_name == "array":
            items = [s.strip() for s in raw.split(definition.separator or ",")]
            items = [s for s in items if s]
            self._check_bounds(key, definition, len(items), "items")
            return items
        if type_name == "custom":
            return self._run_custom(key, definition, raw)
        return self._run_advanced(key, definition, raw)

    def _run_custom(self, key: str, definition: Definition, raw: str) -> Any:
        if definition.validator is None:
            raise MissingValidatorError(key, "custom")
        try:
            return definition.validator(raw)
        except ResolverValidationError:
            raise
        except Exception as exc:
            raise ResolverValidationError({key: f"{key}: {exc}"}) from exc

    def _run_advanced(self, key: str, definition: Definition, raw: str) -> Any:
        if not self._validators.has(definition.type):
            raise MissingValidatorError(key, definition.type)
        result = self._validators.validate(definition.type, raw)
        if not result.valid:
            raise ResolverValidationError({key: f"{key}: {result.error or 'Invalid value'}"})
        value = raw if result.value is None and definition.type != "json" else result.value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            self._check_bounds(key, definition, value)
        return value

    @staticmethod
    def _check_bounds(key: str, definition: Definition, measure: float, unit: str = "") -> None:
        suffix = f" {unit}" if unit else ""
        if definition.min is not None and measure < definition.min:
            raise ResolverValidationError(
                {key: f"{key} must be at least {_fmt(definition.min)}{suffix}"}
            )
        if definition.max is not None and measure > definition.max:
            raise ResolverValidationError(
                {key: f"{key} must be at most {_fmt(definition.max)}{suffix}"}
            )


def _fmt(bound: float) -> str:
    return str(int(bound)) if float(bound).is_integer() else str(bound)


def _parse_number(raw: str) -> Optional[float]:
    # plain ASCII decimal literals only; no "1_000", no non-ASCII digits
    text = raw.strip()
    if not _NUMBER_RE.fullmatch(text):
        return None
    if text.lstrip("+-").isdigit():
        return int(text)
    value = float(text)
    return value if math.isfinite(value) else None


def validate_field(
    key: str,
    definition: Definition,
    raw: Optional[str],
    *,
    validate_defaults: bool = False,
    validators: Optional[AdvancedValidatorProtocol] = None,
) -> Any:
    return FieldValidator(validators, validate_defaults=validate_defaults).validate_value(
        key, definition, raw
    )
