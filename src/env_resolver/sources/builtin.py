from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping

from dotenv import dotenv_values

from env_resolver.utils import RUNTIME_MODE_ENV

logger = logging.getLogger("env_resolver.sources")
logger.addHandler(logging.NullHandler())

__all__ = [
    "ProcessEnvSource",
    "DotenvSource",
    "StaticSource",
    "JsonFileSource",
    "SecretsDirSource",
    "process_env",
    "dotenv",
    "static",
    "json_file",
    "secrets_dir",
]


class _SyncBacked:
    """Sources whose async load is just their synchronous load."""

    name: str

    def load_sync(self) -> Dict[str, str]:
        raise NotImplementedError

    async def load(self) -> Dict[str, str]:
        return self.load_sync()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class ProcessEnvSource(_SyncBacked):
    name = "process.env"

    def load_sync(self) -> Dict[str, str]:
        return dict(os.environ)


class DotenvSource(_SyncBacked):
    """
    Read ``KEY=value`` pairs from a dotenv file.

    With ``expand`` the file is layered: ``<path>.defaults``, ``<path>``,
    ``<path>.local``, ``<path>.<mode>``, ``<path>.<mode>.local``, later files
    overriding earlier ones. ``<mode>`` is the runtime mode (``APP_ENV``,
    ``development`` when unset). Missing files contribute nothing.
    """

    def __init__(self, path: str = ".env", expand: bool = False) -> None:
        self.path = path
        self.expand = expand
        self.name = f"dotenv-expand({path})" if expand else f"dotenv({path})"

    def files(self) -> List[Path]:
        if not self.expand:
            return [Path(self.path)]
        mode = os.getenv(RUNTIME_MODE_ENV) or "development"
        base = self.path
        return [
            Path(f"{base}.defaults"),
            Path(base),
            Path(f"{base}.local"),
            Path(f"{base}.{mode}"),
            Path(f"{base}.{mode}.local"),
        ]

    def load_sync(self) -> Dict[str, str]:
        merged: Dict[str, str] = {}
        for path in self.files():
            if not path.is_file():
                continue
            # ${VAR} references are left for the resolver to expand
            values = dotenv_values(path, interpolate=False)
            merged.update({k: v for k, v in values.items() if v is not None})
            logger.debug("Read %d entries from %s", len(values), path)
        return merged


class StaticSource(_SyncBacked):
    def __init__(self, name: str, values: Mapping[str, Any]) -> None:
        self.name = name
        self._values = {str(k): str(v) for k, v in values.items()}

    def load_sync(self) -> Dict[str, str]:
        return dict(self._values)


class JsonFileSource(_SyncBacked):
    """Flatten a JSON object file into upper-cased ``PARENT_CHILD`` keys."""

    def __init__(self, path: str = "config.json") -> None:
        self.path = path
        self.name = f"json({path})"

    def load_sync(self) -> Dict[str, str]:
        path = Path(self.path)
        if not path.is_file():
            return {}
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except ValueError as exc:
            raise ValueError(f"Failed to parse JSON file {self.path}: {exc}") from exc
        flat: Dict[str, str] = {}
        _flatten(data, "", flat)
        return flat


def _flatten(obj: Any, prefix: str, out: Dict[str, str]) -> None:
    if not isinstance(obj, dict):
        return
    for key, value in obj.items():
        name = f"{prefix}_{key}" if prefix else str(key)
        if isinstance(value, dict):
            _flatten(value, name, out)
        elif isinstance(value, bool):
            out[name.upper()] = "true" if value else "false"
        elif isinstance(value, list):
            out[name.upper()] = json.dumps(value)
        else:
            out[name.upper()] = str(value)


class SecretsDirSource(_SyncBacked):
    """One key per regular file in a mounted secrets directory (``db-password`` -> ``DB_PASSWORD``)."""

    def __init__(self, path: str = "/run/secrets") -> None:
        self.path = path
        self.name = f"secrets({path})"

    def load_sync(self) -> Dict[str, str]:
        root = Path(self.path)
        if not root.is_dir():
            return {}
        values: Dict[str, str] = {}
        for entry in sorted(root.iterdir()):
            if entry.is_symlink() or not entry.is_file():
                continue
            key = entry.name.upper().replace(".", "_").replace("-", "_")
            values[key] = entry.read_text(encoding="utf-8").strip()
        return values


def process_env() -> ProcessEnvSource:
    return ProcessEnvSource()


def dotenv(path: str = ".env", expand: bool = False) -> DotenvSource:
    return DotenvSource(path, expand=expand)


def static(name: str, values: Mapping[str, Any]) -> StaticSource:
    return StaticSource(name, values)


def json_file(path: str = "config.json") -> JsonFileSource:
    return JsonFileSource(path)


def secrets_dir(path: str = "/run/secrets") -> SecretsDirSource:
    return SecretsDirSource(path)
