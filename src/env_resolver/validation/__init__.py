from __future__ import annotations

from .base import FieldValidator, render_default, validate_field
from .protocol import AdvancedValidatorProtocol, ValidationResult, ValidatorProtocol
from .registry import REGISTRY, ValidatorRegistry, register_validator

__all__ = [
    "AdvancedValidatorProtocol",
    "FieldValidator",
    "REGISTRY",
    "ValidationResult",
    "ValidatorProtocol",
    "ValidatorRegistry",
    "register_validator",
    "render_default",
    "validate_field",
]
