from dataclasses import dataclass
from typing import Any, Optional, Protocol, runtime_checkable


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    error: Optional[str] = None
    value: Any = None

    @classmethod
    def ok(cls, value: Any) -> "ValidationResult":
        return cls(True, None, value)

    @classmethod
    def fail(cls, error: str) -> "ValidationResult":
        return cls(False, error)


@runtime_checkable
class ValidatorProtocol(Protocol):
    def __call__(self, value: str) -> ValidationResult:  # never raises for bad input
        ...


@runtime_checkable
class AdvancedValidatorProtocol(Protocol):
    def has(self, type_name: str) -> bool: ...

    def validate(self, type_name: str, value: str) -> ValidationResult: ...
