from __future__ import annotations

import asyncio
import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Mapping, Optional, Sequence

from env_resolver.audit import AUDIT, AuditEventType, AuditLog
from env_resolver.exceptions import ResolverValidationError, SchemaNameError, SourceError
from env_resolver.policy import PolicyOptions, check_policy
from env_resolver.schema.definition import Definition
from env_resolver.schema.normalize import normalize_schema
from env_resolver.sources.base import Provenance, Source, source_metadata
from env_resolver.utils import _is_production, _redact_for_log
from env_resolver.validation.base import FieldValidator
from env_resolver.validation.protocol import AdvancedValidatorProtocol

logger = logging.getLogger("env_resolver.resolver")
logger.addHandler(logging.NullHandler())

__all__ = [
    "ResolveOptions",
    "ResolvedConfig",
    "Resolver",
    "check_key_names",
    "interpolate_values",
    "nest",
]

_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_REF_RE = re.compile(r"\$\{([^}]+)\}")


class ResolvedConfig(dict):
    """Typed resolution result. A plain dict that can carry an audit session."""


@dataclass(frozen=True)
class ResolveOptions:
    interpolate: bool = True
    strict: bool = True
    priority: Literal["last", "first"] = "last"
    policies: Optional[PolicyOptions] = None
    enable_audit: Optional[bool] = None
    validate_defaults: bool = False
    nested_delimiter: Optional[str] = None
    validators: Optional[AdvancedValidatorProtocol] = None

    def __post_init__(self) -> None:
        if self.priority not in ("last", "first"):
            raise ValueError(f"priority must be 'last' or 'first', got {self.priority!r}")
        if self.nested_delimiter == "":
            raise ValueError("nested_delimiter cannot be empty")

    @property
    def audit_enabled(self) -> bool:
        # auditing defaults to on in production
        return _is_production() if self.enable_audit is None else self.enable_audit


def check_key_names(keys: Sequence[str]) -> None:
    errors = {
        key: (
            f'Invalid environment variable name: "{key}". Names must contain only '
            f"letters, digits and underscores, and cannot start with a digit."
        )
        for key in keys
        if not isinstance(key, str) or not _KEY_RE.match(key)
    }
    if errors:
        raise SchemaNameError(errors)


def interpolate_values(values: Mapping[str, str]) -> Dict[str, str]:
    """
    Substitute ``${NAME}`` references in every value.

    References are looked up in a snapshot of ``values`` taken before any
    substitution, in a single non-recursive pass. References to missing or
    empty keys are left as written.
    """
    snapshot = dict(values)

    def _sub(match: "re.Match[str]") -> str:
        return snapshot.get(match.group(1)) or match.group(0)

    return {key: _REF_RE.sub(_sub, value) for key, value in snapshot.items()}


def nest(values: Mapping[str, Any], delimiter: str) -> ResolvedConfig:
    """Turn ``DATABASE__HOST`` style keys into ``{"database": {"host": ...}}``."""
    out = ResolvedConfig()
    for key, value in values.items():
        parts = key.split(delimiter)
        if len(parts) < 2 or not all(parts):
            out[key] = value
            continue
        node: Dict[str, Any] = out
        for part in parts[:-1]:
            child = node.get(part.lower())
            if not isinstance(child, dict):
                child = {}
                node[part.lower()] = child
            node = child
        node[parts[-1].lower()] = value
    return out


class _Merge:
    def __init__(self, priority: str, definitions: Mapping[str, Definition]) -> None:
        self.priority = priority
        self.definitions = definitions
        self.values: Dict[str, str] = {}
        self.provenance: Dict[str, Provenance] = {}

    def _is_set(self, key: str, value: str) -> bool:
        if value != "":
            return True
        definition = self.definitions.get(key)
        return definition is not None and definition.allow_empty

    def apply(self, source: Any, data: Mapping[str, Any]) -> None:
        cached = source_metadata(source).get("cached")
        now = time.time()
        for key, value in data.items():
            if value is None:
                continue
            value = str(value)
            if self.priority == "first" and key in self.values:
                # an unset empty value may still be replaced by a later set one
                if self._is_set(key, self.values[key]) or not self._is_set(key, value):
                    continue
            self.values[key] = value
            self.provenance[key] = Provenance(source=source.name, timestamp=now, cached=cached)

    def satisfies(self, required: Sequence[str]) -> bool:
        return all(
            key in self.values and self._is_set(key, self.values[key]) for key in required
        )


class Resolver:
    """
    One resolution: load every source, merge, interpolate, police and validate.

    The schema is normalized and checked on construction, so a bad key name
    or a definition without a usable validator fails before any source is
    touched.
    """

    def __init__(
        self,
        schema: Mapping[str, Any],
        sources: Sequence[Source],
        options: Optional[ResolveOptions] = None,
        audit_log: Optional[AuditLog] = None,
    ) -> None:
        self.options = options or ResolveOptions()
        check_key_names(list(schema))
        self.definitions: Dict[str, Definition] = normalize_schema(schema)
        self._validator = FieldValidator(
            self.options.validators, validate_defaults=self.options.validate_defaults
        )
        for key, definition in self.definitions.items():
            self._validator.check_definition(key, definition)
        self.sources: List[Source] = list(sources)
        self._audit_log = audit_log or AUDIT
        self._audit_on = self.options.audit_enabled
        self._session_id = self._audit_log.new_session_id() if self._audit_on else None

    @property
    def required_keys(self) -> List[str]:
        return [key for key, d in self.definitions.items() if d.required]

    def _audit(self, type: AuditEventType, *, always: bool = False, **fields: Any) -> None:
        if self._audit_on or always:
            self._audit_log.record(type, session_id=self._session_id, **fields)

    def _source_failed(self, source: Source, exc: BaseException) -> None:
        self._audit(AuditEventType.SOURCE_ERROR, always=True, source=source.name, error=str(exc))
        if self.options.strict:
            logger.error("Source %s failed: %s", source.name, exc)
            raise SourceError(source.name, exc) from exc
        logger.warning("Skipping source %s after failure: %s", source.name, exc)

    def _stop_early(self, merge: _Merge, index: int) -> bool:
        if self.options.priority != "first" or not merge.satisfies(self.required_keys):
            return False
        skipped = len(self.sources) - index - 1
        if skipped:
            logger.debug("All required keys satisfied, skipping %d remaining source(s)", skipped)
        return True

    async def _load_merged_async(self) -> _Merge:
        merge = _Merge(self.options.priority, self.definitions)
        if self.options.priority == "last":
            results = await asyncio.gather(
                *(self._load_one(source) for source in self.sources), return_exceptions=True
            )
            for source, result in zip(self.sources, results):
                if isinstance(result, BaseException):
                    if not isinstance(result, Exception):
                        raise result
                    self._source_failed(source, result)
                    continue
                merge.apply(source, result)
            return merge

        for index, source in enumerate(self.sources):
            try:
                data = await source.load()
            except Exception as exc:
                self._source_failed(source, exc)
                continue
            merge.apply(source, data)
            if self._stop_early(merge, index):
                break
        return merge

    @staticmethod
    async def _load_one(source: Source) -> Mapping[str, str]:
        return await source.load()

    def _load_merged_sync(self) -> _Merge:
        merge = _Merge(self.options.priority, self.definitions)
        for index, source in enumerate(self.sources):
            loader = getattr(source, "load_sync", None)
            try:
                if loader is None:
                    raise TypeError(f"Source {source.name} does not support synchronous loading")
                data = loader()
            except Exception as exc:
                self._source_failed(source, exc)
                continue
            merge.apply(source, data)
            if self._stop_early(merge, index):
                break
        return merge

    async def resolve_async(self) -> ResolvedConfig:
        return self._finish(await self._load_merged_async())

    def resolve(self) -> ResolvedConfig:
        return self._finish(self._load_merged_sync())

    def _finish(self, merge: _Merge) -> ResolvedConfig:
        values = interpolate_values(merge.values) if self.options.interpolate else merge.values
        errors: Dict[str, str] = {}
        result = ResolvedConfig()

        for key, definition in self.definitions.items():
            provenance = merge.provenance.get(key)
            violation = check_policy(key, definition, provenance, self.options.policies)
            if violation is not None:
                errors[key] = violation
                self._audit(
                    AuditEventType.POLICY_VIOLATION,
                    key=key,
                    source=provenance.source if provenance else "unknown",
                    error=violation,
                )
                continue
            try:
                value = self._validator.validate_value(key, definition, values.get(key))
            except ResolverValidationError as exc:
                errors.update(exc.errors)
                self._audit(
                    AuditEventType.VALIDATION_FAILURE,
                    key=key,
                    source=provenance.source if provenance else None,
                    error=exc.errors.get(key, str(exc)),
                )
                continue
            result[key] = value
            source_name = provenance.source if provenance else "default"
            logger.debug(
                "Resolved %s=%s from %s",
                key, _redact_for_log(key, value, secret=definition.secret), source_name,
            )
            self._audit(
                AuditEventType.VALUE_LOADED,
                key=key,
                source=source_name,
                metadata={"cached": bool(provenance and provenance.cached)},
            )

        if errors:
            self._audit(
                AuditEventType.VALIDATION_FAILURE,
                error=f"{len(errors)} validation error(s)",
                metadata={"error_count": len(errors)},
            )
            logger.error("Configuration resolution failed with %d error(s)", len(errors))
            raise ResolverValidationError(errors)

        self._audit(
            AuditEventType.VALIDATION_SUCCESS,
            metadata={"variable_count": len(result)},
        )
        logger.info(
            "Resolved %d key(s) from %d source(s)", len(result), len(self.sources)
        )

        if self.options.nested_delimiter:
            result = nest(result, self.options.nested_delimiter)
        if self._session_id is not None:
            self._audit_log.attach(result, self._session_id)
        return result
