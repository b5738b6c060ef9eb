from __future__ import annotations

from typing import Any, Callable, Dict, Iterator, Mapping

from env_resolver.audit import AUDIT

__all__ = ["ComputedConfig", "with_computed"]

Getter = Callable[[Mapping[str, Any]], Any]


class ComputedConfig(Mapping[str, Any]):
    """
    Read-only view of a resolved config plus derived values.

    Each derived value is produced by calling its getter with the underlying
    config on every lookup; nothing is cached, so a getter always sees the
    config as it is now. A derived name shadows a config key of the same name.
    """

    def __init__(self, config: Mapping[str, Any], getters: Mapping[str, Getter]) -> None:
        self._config = config
        self._getters: Dict[str, Getter] = dict(getters)

    @property
    def config(self) -> Mapping[str, Any]:
        return self._config

    def __getitem__(self, key: str) -> Any:
        getter = self._getters.get(key)
        if getter is not None:
            return getter(self._config)
        return self._config[key]

    def __iter__(self) -> Iterator[str]:
        for key in self._config:
            if key not in self._getters:
                yield key
        yield from self._getters

    def __len__(self) -> int:
        return len(self._config) + sum(1 for key in self._getters if key not in self._config)

    def __repr__(self) -> str:
        return f"ComputedConfig({dict(self._config)!r}, computed={sorted(self._getters)!r})"


def with_computed(config: Mapping[str, Any], **getters: Getter) -> ComputedConfig:
    """
    Wrap ``config`` with derived values, e.g.
    ``with_computed(config, url=lambda c: f"http://{c['HOST']}:{c['PORT']}")``.

    The wrapper keeps the audit session of ``config``, so
    ``get_audit_log(wrapped)`` returns the same events.
    """
    for name, getter in getters.items():
        if not callable(getter):
            raise TypeError(f"computed value {name!r} must be callable, got {type(getter).__name__}")
    result = ComputedConfig(config, getters)
    session_id = AUDIT.session_for(config)
    if session_id is not None:
        AUDIT.attach(result, session_id)
    return result
