import pytest

from env_resolver.policy import PolicyOptions, check_policy, is_file_source
from env_resolver.schema import Definition
from env_resolver.sources.base import Provenance

D = Definition()


def test_is_file_source_peels_wrappers():
    assert is_file_source("dotenv(.env)")
    assert is_file_source("dotenv-expand(.env)")
    assert is_file_source("cached(retry(dotenv(.env)))")
    assert is_file_source("json(config.json)")
    assert is_file_source("cached(json(config.json))")
    assert not is_file_source("process.env")
    assert not is_file_source("cached(secrets(/run/secrets))")


def test_file_source_allowed_outside_production():
    assert check_policy("KEY", D, Provenance("dotenv(.env)")) is None


def test_file_source_rejected_in_production(production):
    msg = check_policy("KEY", D, Provenance("dotenv(.env)"))
    assert msg is not None
    assert msg.startswith("KEY cannot be sourced from local config files in production")
    assert check_policy("KEY", D, Provenance("cached(dotenv(.env))")) is not None
    assert check_policy("KEY", D, Provenance("process.env")) is None


@pytest.mark.parametrize("allowed", [True, ["KEY"], ("KEY", "OTHER"), frozenset({"KEY"})])
def test_file_source_allow_list_in_production(production, allowed):
    policies = PolicyOptions(allow_file_source_in_production=allowed)
    assert check_policy("KEY", D, Provenance("dotenv(.env)"), policies) is None


def test_file_source_allow_list_excludes_other_keys(production):
    policies = PolicyOptions(allow_file_source_in_production=["OTHER"])
    msg = check_policy("KEY", D, Provenance("dotenv(.env)"), policies)
    assert "allow_file_source_in_production=['KEY']" in msg


def test_enforce_allowed_sources_in_any_mode():
    policies = PolicyOptions(enforce_allowed_sources={"DB_PASSWORD": ["secrets(/run/secrets)"]})
    assert check_policy("DB_PASSWORD", D, Provenance("secrets(/run/secrets)"), policies) is None
    assert check_policy("DB_PASSWORD", D, Provenance("cached(secrets(/run/secrets))"), policies) is None
    msg = check_policy("DB_PASSWORD", D, Provenance("process.env"), policies)
    assert msg == (
        "DB_PASSWORD must be sourced from one of: secrets(/run/secrets) (actual: process.env)"
    )
    # other keys are unrestricted
    assert check_policy("PORT", D, Provenance("process.env"), policies) is None


def test_keys_without_provenance_are_never_rejected(production):
    policies = PolicyOptions(enforce_allowed_sources={"KEY": ["vault"]})
    assert check_policy("KEY", D, None, policies) is None


def test_json_file_rejected_in_production(production):
    msg = check_policy("API_KEY", D, Provenance("json(config.json)"))
    assert msg is not None and msg.startswith("API_KEY cannot be sourced from local config files")
    policies = PolicyOptions(allow_file_source_in_production=True)
    assert check_policy("API_KEY", D, Provenance("json(config.json)"), policies) is None
