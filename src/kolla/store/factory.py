"""Build the configured store backend."""

from __future__ import annotations

from kolla.config import KollaConfig
from kolla.store.http import HttpStore
from kolla.store.interface import AssetStore
from kolla.store.memory import MemoryStore


def store_from_config(config: KollaConfig) -> AssetStore:
    if config.store_backend == "memory":
        return MemoryStore()
    if config.store_backend == "http":
        if not config.store_url:
            raise ValueError("store_backend 'http' requires store_url")
        return HttpStore(config.store_url, timeout=config.store_timeout)
    raise ValueError(f"Unknown store backend: {config.store_backend!r}")
