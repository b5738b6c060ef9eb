from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Collection, Mapping, Optional, Sequence, Union

from env_resolver.schema.definition import Definition
from env_resolver.sources.base import Provenance
from env_resolver.utils import _is_production, _unwrap_source_name

logger = logging.getLogger("env_resolver.policy")
logger.addHandler(logging.NullHandler())

__all__ = ["PolicyOptions", "FILE_SOURCE_PREFIXES", "is_file_source", "check_policy"]

FILE_SOURCE_PREFIXES = ("dotenv(", "dotenv-expand(", "json(")


@dataclass(frozen=True)
class PolicyOptions:
    """
    Provenance rules applied to every key before it is validated.

    ``allow_file_source_in_production``: ``True`` allows every key to come from
    a local config file (dotenv or JSON) in production; a collection allows
    only the listed keys.
    ``enforce_allowed_sources``: key -> source names the key may come from, in
    any runtime mode.
    """

    allow_file_source_in_production: Union[bool, Collection[str]] = False
    enforce_allowed_sources: Mapping[str, Sequence[str]] = field(default_factory=dict)


def is_file_source(source_name: str) -> bool:
    return _unwrap_source_name(source_name).startswith(FILE_SOURCE_PREFIXES)


def _file_rule(key: str, source_name: str, policies: PolicyOptions) -> Optional[str]:
    if not _is_production() or not is_file_source(source_name):
        return None
    allowed = policies.allow_file_source_in_production
    if allowed is True:
        return None
    if allowed and not isinstance(allowed, bool):
        if key in allowed:
            return None
        return (
            f"{key} cannot be sourced from local config files in production. Use the process "
            f"environment or a secret store. To allow: "
            f"allow_file_source_in_production=['{key}'] or True for all keys."
        )
    return (
        f"{key} cannot be sourced from local config files in production (secure default). "
        f"To allow local config files in production: allow_file_source_in_production=True"
    )


def _allowed_sources_rule(key: str, source_name: str, policies: PolicyOptions) -> Optional[str]:
    allowed = policies.enforce_allowed_sources.get(key)
    if not allowed:
        return None
    if source_name in allowed or _unwrap_source_name(source_name) in allowed:
        return None
    return f"{key} must be sourced from one of: {', '.join(allowed)} (actual: {source_name})"


def check_policy(
    key: str,
    definition: Definition,
    provenance: Optional[Provenance],
    policies: Optional[PolicyOptions] = None,
) -> Optional[str]:
    """Return a violation message for ``key``, or None when its provenance is acceptable."""
    if provenance is None:
        return None
    policies = policies or PolicyOptions()
    violation = _file_rule(key, provenance.source, policies) or _allowed_sources_rule(
        key, provenance.source, policies
    )
    if violation is not None:
        logger.debug("Policy rejected %r from %s", key, provenance.source)
    return violation
