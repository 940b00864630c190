"""Abstract durable store interface.

Stores hold opaque string blobs under string keys and survive process
restarts (except MemoryStore). Implementations never raise on I/O trouble:
reads degrade to ``None`` and writes report ``False``, with the failure
logged under the PERSISTENCE_FAILURE error code.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class BaseStore(ABC):
    """Unified interface for durable key-value backends."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the blob stored under key, or None."""

    @abstractmethod
    async def set(self, key: str, blob: str) -> bool:
        """Store blob under key; True when the write landed."""

    @abstractmethod
    async def remove(self, key: str) -> bool:
        """Remove key; True when the key is gone afterwards."""
