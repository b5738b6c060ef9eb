import logging

import pytest

from env_resolver.audit import AuditEvent, AuditEventType
from env_resolver.hooks import AuditHookBus

EVENT = AuditEvent(type=AuditEventType.VALUE_LOADED, key="A")


def test_hookbus_register_and_run_success():
    bus = AuditHookBus()
    called = []
    bus.register(called.append)
    bus.run(EVENT)
    assert called == [EVENT]
    assert len(bus) == 1


def test_hookbus_register_non_callable_raises():
    bus = AuditHookBus()
    with pytest.raises(TypeError):
        bus.register(123)  # type: ignore[arg-type]


def test_hookbus_invalid_failure_mode():
    with pytest.raises(ValueError):
        AuditHookBus("boom")  # type: ignore[arg-type]


def test_hookbus_run_failure_modes(caplog):
    def bad(_):
        raise RuntimeError("fail")

    # ignore: only a debug record
    caplog.set_level(logging.DEBUG, logger="env_resolver.hooks")
    bus_ignore = AuditHookBus("ignore")
    bus_ignore.register(bad)
    bus_ignore.run(EVENT)

    bus_log = AuditHookBus("log")
    bus_log.register(bad)
    bus_log.run(EVENT)
    assert any(r.levelno == logging.ERROR for r in caplog.records)

    bus_raise = AuditHookBus("raise")
    bus_raise.register(bad)
    with pytest.raises(RuntimeError):
        bus_raise.run(EVENT)


def test_hookbus_unregister_and_clear():
    bus = AuditHookBus()
    called = []
    bus.register(called.append)
    bus.unregister(called.append)
    bus.unregister(called.append)
    bus.run(EVENT)
    assert called == []

    bus.register(lambda e: None)
    bus.clear()
    assert len(bus) == 0
