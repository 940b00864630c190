"""Factory for durable store instantiation."""

from __future__ import annotations

from roster.common.config_loader import StoreConfig
from roster.common.errors import ConfigError
from roster.store.base_store import BaseStore


def create_store(store_config: StoreConfig | None = None) -> BaseStore:
    """Instantiate the configured store backend.

    Args:
        store_config: Store section of the roster config. Defaults to a
            file store under ``data/cache``.
    """
    cfg = store_config or StoreConfig()

    if cfg.backend == "file":
        from roster.store.file_store import FileStore

        return FileStore(cfg.root)

    if cfg.backend == "memory":
        from roster.store.memory_store import MemoryStore

        return MemoryStore()

    raise ConfigError(f"Unsupported store backend: {cfg.backend!r}")
