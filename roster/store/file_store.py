"""File-based durable store: one UTF-8 file per key under a root directory."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from roster.common.errors import PersistenceFailure
from roster.common.fs import ensure_dir, read_text, write_text_atomic
from roster.common.logging import log_event
from roster.store.base_store import BaseStore

logger = logging.getLogger(__name__)


class FileStore(BaseStore):
    def __init__(self, root: Path) -> None:
        self._root = Path(root).expanduser()

    @property
    def root(self) -> Path:
        return self._root

    async def get(self, key: str) -> str | None:
        path = self._entry_path(key)
        try:
            return await asyncio.to_thread(self._read, path)
        except OSError as exc:
            self._log_failure("read", key, exc)
            return None

    async def set(self, key: str, blob: str) -> bool:
        path = self._entry_path(key)
        try:
            await asyncio.to_thread(self._write, path, blob)
        except OSError as exc:
            self._log_failure("write", key, exc)
            return False
        return True

    async def remove(self, key: str) -> bool:
        path = self._entry_path(key)
        try:
            await asyncio.to_thread(path.unlink, missing_ok=True)
        except OSError as exc:
            self._log_failure("remove", key, exc)
            return False
        return True

    def _read(self, path: Path) -> str | None:
        if not path.exists():
            return None
        return read_text(path)

    def _write(self, path: Path, blob: str) -> None:
        ensure_dir(self._root)
        write_text_atomic(path, blob)

    def _entry_path(self, key: str) -> Path:
        safe_key = key.replace("/", "_").replace("\\", "_")
        return self._root / f"{safe_key}.json"

    def _log_failure(self, operation: str, key: str, exc: OSError) -> None:
        log_event(
            logger,
            f"store {operation} failed for {key}: {exc}",
            level=logging.WARNING,
            component="store",
            event=f"STORE_{operation.upper()}",
            status="error",
            error_code=PersistenceFailure.error_code,
        )
