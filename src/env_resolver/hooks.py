from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, List, Literal

if TYPE_CHECKING:
    from .audit import AuditEvent

logger = logging.getLogger("env_resolver.hooks")
logger.addHandler(logging.NullHandler())

AuditHook = Callable[["AuditEvent"], None]


class AuditHookBus:
    def __init__(self, failure_mode: Literal["ignore", "log", "raise"] = "log") -> None:
        self._hooks: List[AuditHook] = []

        if failure_mode not in ("ignore", "log", "raise"):
            raise ValueError("failure_mode must be one of 'ignore', 'log', 'raise'")
        self._failure_mode = failure_mode

    def register(self, func: AuditHook) -> None:
        if not callable(func):
            raise TypeError("Hook must be callable")
        self._hooks.append(func)

    def unregister(self, func: AuditHook) -> None:
        try:
            self._hooks.remove(func)
        except ValueError:
            logger.debug("Hook %r was not registered", func)

    def run(self, event: "AuditEvent") -> None:
        for hook in tuple(self._hooks):
            try:
                hook(event)
            except Exception as exc:
                if self._failure_mode == "raise":
                    raise
                elif self._failure_mode == "log":
                    logger.error("Audit hook %r failed for %s: %s", hook, event.type.value, exc)
                else:
                    logger.debug("Audit hook %r failed but ignored: %s", hook, exc)

    def clear(self) -> None:
        self._hooks.clear()

    def __len__(self) -> int:
        return len(self._hooks)
