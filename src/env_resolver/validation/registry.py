from __future__ import annotations

import importlib
import logging
import threading
from typing import Callable, Dict, Iterable, Optional, Tuple

from .protocol import ValidationResult

logger = logging.getLogger("env_resolver.validation")
logger.addHandler(logging.NullHandler())

__all__ = ["ValidatorRegistry", "REGISTRY", "register_validator"]

Validator = Callable[[str], ValidationResult]

_BUILTIN_MODULE = "env_resolver.validation.builtin"


class ValidatorRegistry:
    """
    Type name -> validator lookup for everything outside the basic types.

    The built-in validators are imported on first lookup, so resolutions that
    only use string/number/boolean never load them.
    """

    def __init__(self, *, load_builtins: bool = True) -> None:
        self._validators: Dict[str, Validator] = {}
        self._aliases: Dict[str, str] = {}
        self._load_builtins = load_builtins
        self._builtins_loaded = False
        self._lock = threading.RLock()

    @staticmethod
    def _canon(name: str) -> str:
        return name.strip().lower()

    def _ensure_builtins(self) -> None:
        if self._builtins_loaded or not self._load_builtins:
            return
        with self._lock:
            if self._builtins_loaded:
                return
            module = importlib.import_module(_BUILTIN_MODULE)
            for name, func in module.BUILTIN_VALIDATORS.items():
                key = self._canon(name)
                self._validators.setdefault(key, func)
                for alias in module.BUILTIN_ALIASES.get(name, ()):
                    self._aliases.setdefault(self._canon(alias), key)
            self._builtins_loaded = True
            logger.debug("Loaded %d built-in validators", len(module.BUILTIN_VALIDATORS))

    def register(
        self,
        name: str,
        validator: Validator,
        aliases: Iterable[str] = (),
        override: bool = False,
    ) -> None:
        if not callable(validator):
            raise TypeError("Validator must be callable")
        key = self._canon(name)
        aliases = tuple(aliases)
        with self._lock:
            self._ensure_builtins()
            if not override and (key in self._validators or key in self._aliases):
                logger.error("Register failed: validator %r already registered", key)
                raise ValueError(f"Validator for type '{key}' already registered")
            self._validators[key] = validator
            for alias in aliases:
                ak = self._canon(alias)
                if not override and ak in self._aliases and self._aliases[ak] != key:
                    raise ValueError(f"Alias '{ak}' already used for '{self._aliases[ak]}'")
                self._aliases[ak] = key
        logger.debug("Registered validator %r aliases=%r override=%s", key, aliases, override)

    def _resolve(self, type_name: str) -> Optional[str]:
        self._ensure_builtins()
        key = self._canon(type_name)
        if key in self._validators:
            return key
        return self._aliases.get(key)

    def has(self, type_name: str) -> bool:
        return self._resolve(type_name) is not None

    def get(self, type_name: str) -> Validator:
        key = self._resolve(type_name)
        if key is None:
            raise KeyError(type_name)
        return self._validators[key]

    def validate(self, type_name: str, value: str) -> ValidationResult:
        return self.get(type_name)(value)

    def names(self) -> Tuple[str, ...]:
        self._ensure_builtins()
        return tuple(sorted(set(self._validators) | set(self._aliases)))

    def clear(self) -> None:
        with self._lock:
            self._validators.clear()
            self._aliases.clear()
            self._builtins_loaded = False


REGISTRY = ValidatorRegistry()


def register_validator(
    name: str,
    validator: Validator,
    *,
    aliases: Tuple[str, ...] = (),
    override: bool = False,
) -> None:
    """Register ``validator`` for ``type=name`` definitions on the process-wide registry."""
    REGISTRY.register(name, validator, aliases=aliases, override=override)
