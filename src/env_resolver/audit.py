from __future__ import annotations

import enum
import threading
import time
import uuid
import weakref
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Literal, Mapping, Optional

from .hooks import AuditHook, AuditHookBus

__all__ = [
    "AuditEventType",
    "AuditEvent",
    "AuditLog",
    "AUDIT",
    "MAX_AUDIT_EVENTS",
    "log_audit_event",
    "get_audit_log",
    "clear_audit_log",
]

MAX_AUDIT_EVENTS = 1000


class AuditEventType(str, enum.Enum):
    VALIDATION_SUCCESS = "validation_success"
    VALIDATION_FAILURE = "validation_failure"
    POLICY_VIOLATION = "policy_violation"
    VALUE_LOADED = "value_loaded"
    SOURCE_ERROR = "source_error"


@dataclass(frozen=True)
class AuditEvent:
    type: AuditEventType
    timestamp: float = field(default_factory=time.time)
    key: Optional[str] = None
    source: Optional[str] = None
    error: Optional[str] = None
    metadata: Mapping[str, Any] = field(default_factory=dict)
    session_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "timestamp": self.timestamp,
            "key": self.key,
            "source": self.source,
            "error": self.error,
            "metadata": dict(self.metadata),
            "session_id": self.session_id,
        }


class AuditLog:
    """Thread-safe, bounded, in-memory audit trail for resolutions.

    Events are kept in a ring of ``max_entries``; the oldest are dropped once
    it is full. A session id can be attached to a result object without
    keeping that object alive: the association is keyed by identity and is
    removed when the object is garbage collected.
    """

    def __init__(
        self,
        max_entries: int = MAX_AUDIT_EVENTS,
        hook_failure_mode: Literal["ignore", "log", "raise"] = "log",
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._lock = threading.RLock()
        self._entries: Deque[AuditEvent] = deque(maxlen=max_entries)
        self._sessions: Dict[int, str] = {}
        self._hooks = AuditHookBus(hook_failure_mode)

    @property
    def max_entries(self) -> int:
        return self._entries.maxlen or 0

    @staticmethod
    def new_session_id() -> str:
        return uuid.uuid4().hex

    def add_entry(self, event: AuditEvent) -> None:
        with self._lock:
            self._entries.append(event)
        self._hooks.run(event)

    def record(
        self,
        type: AuditEventType,
        *,
        key: Optional[str] = None,
        source: Optional[str] = None,
        error: Optional[str] = None,
        metadata: Optional[Mapping[str, Any]] = None,
        session_id: Optional[str] = None,
    ) -> AuditEvent:
        event = AuditEvent(
            type=type,
            key=key,
            source=source,
            error=error,
            metadata=dict(metadata or {}),
            session_id=session_id,
        )
        self.add_entry(event)
        return event

    def attach(self, obj: object, session_id: str) -> None:
        """Associate ``session_id`` with ``obj`` for as long as ``obj`` lives."""
        ident = id(obj)
        with self._lock:
            self._sessions[ident] = session_id
        weakref.finalize(obj, self._detach, ident, session_id)

    def _detach(self, ident: int, session_id: str) -> None:
        with self._lock:
            # the id may have been reused by a newer object already
            if self._sessions.get(ident) == session_id:
                del self._sessions[ident]

    def session_for(self, obj: object) -> Optional[str]:
        with self._lock:
            return self._sessions.get(id(obj))

    def all_entries(self, obj: Optional[object] = None) -> List[AuditEvent]:
        with self._lock:
            if obj is None:
                return list(self._entries)
            session_id = self._sessions.get(id(obj))
            if session_id is None:
                return []
            return [e for e in self._entries if e.session_id == session_id]

    def subscribe(self, func: AuditHook) -> None:
        self._hooks.register(func)

    def unsubscribe(self, func: AuditHook) -> None:
        self._hooks.unregister(func)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


# Process-wide audit trail shared by every resolution call
AUDIT = AuditLog()


def log_audit_event(event: AuditEvent) -> None:
    AUDIT.add_entry(event)


def get_audit_log(result: Optional[object] = None) -> List[AuditEvent]:
    """
    Return audit events.

    Without an argument, every event in the process-wide log. With a result
    object returned by a resolution call, only that call's events, or an empty
    list if auditing was disabled for it.
    """
    return AUDIT.all_entries(result)


def clear_audit_log() -> None:
    AUDIT.clear()
