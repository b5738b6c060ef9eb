from env_resolver.exceptions import (
    MissingValidatorError,
    ResolverError,
    ResolverValidationError,
    SchemaDefinitionError,
    SchemaNameError,
    SourceError,
)


def test_validation_error_message_and_attrs():
    err = ResolverValidationError({"A": "A is bad", "B": "B is worse"})
    assert str(err) == "Environment validation failed:\n  - A is bad\n  - B is worse"
    assert err.errors == {"A": "A is bad", "B": "B is worse"}


def test_errors_are_copied():
    errors = {"A": "bad"}
    err = ResolverValidationError(errors)
    errors["B"] = "later"
    assert "B" not in err.errors


def test_source_error_keeps_cause():
    cause = TimeoutError("timed out")
    err = SourceError("vault", cause)
    assert err.source == "vault" and err.cause is cause
    assert str(err) == "Source vault failed: timed out"
    assert str(SourceError("vault")) == "Source vault failed"


def test_missing_validator_messages():
    assert "custom validator function is required" in str(MissingValidatorError("X", "custom"))
    err = MissingValidatorError("Y", "ipv6")
    assert err.key == "Y" and err.type_name == "ipv6"


def test_hierarchy():
    assert issubclass(SchemaNameError, ResolverValidationError)
    for exc_type in (SchemaDefinitionError, MissingValidatorError, SourceError, ResolverValidationError):
        assert issubclass(exc_type, ResolverError)
    assert SchemaDefinitionError("K", "bad").key == "K"
