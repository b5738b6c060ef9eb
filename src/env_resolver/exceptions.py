from __future__ import annotations

from typing import Dict, Mapping, Optional


def _format_errors(errors: Mapping[str, str]) -> str:
    lines = "\n".join(f"  - {msg}" for msg in errors.values())
    return f"Environment validation failed:\n{lines}"


class ResolverError(Exception):
    """Base resolver exception."""


class SchemaDefinitionError(ResolverError):
    """Raised when a schema entry cannot be normalized into a Definition."""

    def __init__(self, key: str, message: str) -> None:
        self.key = key
        super().__init__(f"{key}: {message}")


class MissingValidatorError(ResolverError):
    """Raised when a definition needs a validator that is not available."""

    def __init__(self, key: str, type_name: str) -> None:
        self.key = key
        self.type_name = type_name
        if type_name == "custom":
            msg = f"{key}: custom validator function is required for type 'custom'"
        else:
            msg = f"{key}: no validator registered for type '{type_name}'"
        super().__init__(msg)


class SourceError(ResolverError):
    """Raised when a source fails to load while strict mode is on."""

    def __init__(self, source: str, cause: Optional[BaseException] = None) -> None:
        self.source = source
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Source {source} failed{detail}")


class ResolverValidationError(ResolverError):
    """Raised when one or more keys fail policy or value validation.

    ``errors`` maps each failing key to its message; ``str(exc)`` lists every
    message, one per line.
    """

    def __init__(self, errors: Dict[str, str]) -> None:
        self.errors = dict(errors)
        super().__init__(_format_errors(self.errors))


class SchemaNameError(ResolverValidationError):
    """Raised before any source is loaded when schema keys are not valid names."""
