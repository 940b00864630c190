"""In-process store used for ephemeral runs and tests."""

from __future__ import annotations

import logging

from roster.common.errors import PersistenceFailure
from roster.common.logging import log_event
from roster.store.base_store import BaseStore

logger = logging.getLogger(__name__)


class MemoryStore(BaseStore):
    """Dictionary-backed store.

    ``fail_keys`` makes reads and writes for the listed keys fail the way a
    broken disk would, so callers' degrade paths can be exercised.
    """

    def __init__(self, initial: dict[str, str] | None = None, *, fail_keys: set[str] | None = None) -> None:
        self.blobs: dict[str, str] = dict(initial or {})
        self.fail_keys: set[str] = set(fail_keys or ())

    async def get(self, key: str) -> str | None:
        if key in self.fail_keys:
            self._log_failure("read", key)
            return None
        return self.blobs.get(key)

    async def set(self, key: str, blob: str) -> bool:
        if key in self.fail_keys:
            self._log_failure("write", key)
            return False
        self.blobs[key] = blob
        return True

    async def remove(self, key: str) -> bool:
        if key in self.fail_keys:
            self._log_failure("remove", key)
            return False
        self.blobs.pop(key, None)
        return True

    def _log_failure(self, operation: str, key: str) -> None:
        log_event(
            logger,
            f"store {operation} failed for {key}",
            level=logging.WARNING,
            component="store",
            event=f"STORE_{operation.upper()}",
            status="error",
            error_code=PersistenceFailure.error_code,
        )
