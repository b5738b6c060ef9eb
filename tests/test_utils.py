import pytest

from env_resolver.utils import (
    RUNTIME_MODE_ENV,
    _is_production,
    _redact_for_log,
    _unwrap_source_name,
)


class BadRepr:
    def __repr__(self):
        raise RuntimeError("nope")


@pytest.mark.parametrize("mode, expected", [("production", True), ("PRODUCTION", True), ("prod", False), ("", False)])
def test_is_production(monkeypatch, mode, expected):
    monkeypatch.setenv(RUNTIME_MODE_ENV, mode)
    assert _is_production() is expected


def test_is_production_unset():
    assert _is_production() is False


def test_redact_for_log():
    assert _redact_for_log("DB_PASSWORD", "x") == "***"
    assert _redact_for_log("API_TOKEN", "x") == "***"
    assert _redact_for_log("HOST", "x", secret=True) == "***"
    assert _redact_for_log("HOST", "x") == "'x'"
    assert _redact_for_log("HOST", BadRepr()) == "<unreprable>"


def test_unwrap_source_name():
    assert _unwrap_source_name("cached(retry(dotenv(.env)))") == "dotenv(.env)"
    assert _unwrap_source_name("process.env") == "process.env"
    assert _unwrap_source_name("secrets(/run/secrets)") == "secrets(/run/secrets)"
