import pytest

from env_resolver import ComputedConfig, get_audit_log, resolve, static, with_computed


def test_computed_values_sit_beside_config_values():
    config = {"HOST": "localhost", "PORT": 3000, "NODE_ENV": "development"}
    result = with_computed(
        config,
        url=lambda c: f"http://{c['HOST']}:{c['PORT']}",
        is_dev=lambda c: c["NODE_ENV"] == "development",
        is_prod=lambda c: c["NODE_ENV"] == "production",
    )
    assert isinstance(result, ComputedConfig)
    assert result["url"] == "http://localhost:3000"
    assert result["is_dev"] is True and result["is_prod"] is False
    assert result["HOST"] == "localhost" and result["PORT"] == 3000
    assert list(result) == ["HOST", "PORT", "NODE_ENV", "url", "is_dev", "is_prod"]
    assert len(result) == 6
    assert result.config is config


def test_computed_values_are_recomputed_on_every_access():
    calls = []

    def doubled(c):
        calls.append(1)
        return c["VALUE"] * 2

    result = with_computed({"VALUE": 10}, doubled=doubled)
    assert calls == []
    assert result["doubled"] == 20
    assert result["doubled"] == 20
    assert len(calls) == 2


def test_computed_value_shadows_config_key():
    result = with_computed({"PORT": 80}, PORT=lambda c: c["PORT"] + 1)
    assert result["PORT"] == 81
    assert list(result) == ["PORT"] and len(result) == 1


def test_missing_key_and_non_callable_getter():
    result = with_computed({"A": 1})
    assert "B" not in result
    with pytest.raises(KeyError):
        result["B"]
    with pytest.raises(TypeError, match="must be callable"):
        with_computed({"A": 1}, b="not callable")


def test_works_with_resolved_config_and_keeps_audit_session():
    src = static("env", {"HOST": "api.example.com", "PORT": "443"})
    config = resolve({"HOST": "string", "PORT": "port", "BASE_PATH": "string?"}, [src], enable_audit=True)
    result = with_computed(
        config,
        url=lambda c: f"https://{c['HOST']}:{c['PORT']}{c['BASE_PATH'] or ''}",
    )
    assert result["url"] == "https://api.example.com:443"
    assert get_audit_log(result) == get_audit_log(config)
    assert len(get_audit_log(result)) == 4


def test_no_audit_session_without_auditing():
    config = resolve({"A": "string:x"}, [])
    assert get_audit_log(with_computed(config, b=lambda c: c["A"])) == []
