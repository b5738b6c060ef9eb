"""
env_resolver: typed configuration resolved from untyped string sources.

- Declares each key once, as a shorthand or a full definition.
- Merges any number of sources (process environment, dotenv files, secret stores)
  under explicit precedence, with optional caching and retries around slow ones.
- Validates and coerces every value, reporting all failures in one error.
- Enforces provenance policies and keeps an optional audit trail per resolution.
"""

from __future__ import annotations

from env_resolver.api import (
    SafeResolveResult,
    clear_audit_log,
    get_audit_log,
    resolve,
    resolve_async,
    safe_resolve,
    safe_resolve_async,
)
from env_resolver.audit import AUDIT, AuditEvent, AuditEventType, AuditLog
from env_resolver.computed import ComputedConfig, with_computed
from env_resolver.exceptions import (
    MissingValidatorError,
    ResolverError,
    ResolverValidationError,
    SchemaDefinitionError,
    SchemaNameError,
    SourceError,
)
from env_resolver.policy import PolicyOptions
from env_resolver.resolver import ResolvedConfig, ResolveOptions, nest
from env_resolver.schema import MISSING, Definition, normalize_schema
from env_resolver.sources import (
    TTL,
    Source,
    cached,
    dotenv,
    json_file,
    process_env,
    retry,
    secret_store_cache,
    secrets_dir,
    static,
)
from env_resolver.validation import ValidationResult, ValidatorProtocol, register_validator

__all__ = [
    "resolve",
    "resolve_async",
    "safe_resolve",
    "safe_resolve_async",
    "SafeResolveResult",
    "ResolvedConfig",
    "ResolveOptions",
    "PolicyOptions",
    "Definition",
    "MISSING",
    "normalize_schema",
    "nest",
    "with_computed",
    "ComputedConfig",
    "Source",
    "process_env",
    "dotenv",
    "static",
    "json_file",
    "secrets_dir",
    "cached",
    "retry",
    "secret_store_cache",
    "TTL",
    "ValidationResult",
    "ValidatorProtocol",
    "register_validator",
    "AUDIT",
    "AuditEvent",
    "AuditEventType",
    "AuditLog",
    "get_audit_log",
    "clear_audit_log",
    "ResolverError",
    "SchemaDefinitionError",
    "SchemaNameError",
    "MissingValidatorError",
    "SourceError",
    "ResolverValidationError",
]
