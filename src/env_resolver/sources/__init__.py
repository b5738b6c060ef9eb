from __future__ import annotations

from .base import Provenance, Source, SyncSource, source_metadata
from .builtin import (
    DotenvSource,
    JsonFileSource,
    ProcessEnvSource,
    SecretsDirSource,
    StaticSource,
    dotenv,
    json_file,
    process_env,
    secrets_dir,
    static,
)
from .cache import TTL, CachedSource, cached, secret_store_cache
from .retry import RetrySource, retry

__all__ = [
    "Source",
    "SyncSource",
    "Provenance",
    "source_metadata",
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
    "TTL",
    "CachedSource",
    "cached",
    "secret_store_cache",
    "RetrySource",
    "retry",
]
