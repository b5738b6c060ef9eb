import gc
import logging

import pytest

from env_resolver.audit import (
    AUDIT,
    AuditEvent,
    AuditEventType,
    AuditLog,
    clear_audit_log,
    get_audit_log,
    log_audit_event,
)
from env_resolver.resolver import ResolvedConfig


def test_ring_evicts_oldest():
    log = AuditLog(max_entries=3)
    for i in range(5):
        log.record(AuditEventType.VALUE_LOADED, key=f"K{i}")
    assert len(log) == 3
    assert [e.key for e in log.all_entries()] == ["K2", "K3", "K4"]


def test_default_capacity():
    assert AUDIT.max_entries == 1000
    with pytest.raises(ValueError):
        AuditLog(max_entries=0)


def test_module_helpers_use_process_wide_log():
    log_audit_event(AuditEvent(type=AuditEventType.SOURCE_ERROR, source="vault", error="down"))
    events = get_audit_log()
    assert len(events) == 1 and events[0].source == "vault"
    assert events[0].to_dict()["type"] == "source_error"
    clear_audit_log()
    assert get_audit_log() == []


def test_session_attachment_is_weak():
    log = AuditLog()
    result = ResolvedConfig(A=1)
    sid = log.new_session_id()
    log.record(AuditEventType.VALUE_LOADED, key="A", session_id=sid)
    log.record(AuditEventType.VALUE_LOADED, key="B", session_id="other")
    log.attach(result, sid)

    assert log.session_for(result) == sid
    assert [e.key for e in log.all_entries(result)] == ["A"]

    del result
    gc.collect()
    assert log._sessions == {}
    # events themselves stay in the ring
    assert len(log) == 2


def test_unattached_object_has_no_events():
    log = AuditLog()
    log.record(AuditEventType.VALUE_LOADED, key="A", session_id="s")
    assert log.all_entries(ResolvedConfig()) == []


def test_subscribers_see_every_event():
    log = AuditLog()
    seen = []
    log.subscribe(seen.append)
    event = log.record(AuditEventType.POLICY_VIOLATION, key="K", error="nope")
    assert seen == [event]
    log.unsubscribe(seen.append)
    log.record(AuditEventType.VALUE_LOADED, key="K")
    assert len(seen) == 1


def test_failing_subscriber_does_not_break_logging(caplog):
    log = AuditLog()

    def bad(_):
        raise RuntimeError("sink down")

    log.subscribe(bad)
    caplog.set_level(logging.ERROR, logger="env_resolver.hooks")
    log.record(AuditEventType.VALUE_LOADED, key="K")
    assert len(log) == 1
    assert "sink down" in caplog.text

