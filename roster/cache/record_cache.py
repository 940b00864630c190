"""In-memory record cache backed by a durable store.

The cache holds exactly one generation at a time. ``replace_all`` builds the
next generation off to the side and swaps it in with a single assignment, so
readers see either the previous complete generation or the new one.
"""

from __future__ import annotations

import logging
from typing import Iterable

from roster.common.codec import decode_records, encode_records
from roster.common.constants import ALL_REGIONS, DEFAULT_RECORDS_KEY
from roster.common.errors import ContractError, ParseFailure
from roster.common.logging import log_event
from roster.common.models import Record, RoleFilter
from roster.store.base_store import BaseStore

logger = logging.getLogger(__name__)


class RecordCache:
    def __init__(self, store: BaseStore, *, records_key: str = DEFAULT_RECORDS_KEY) -> None:
        self._store = store
        self._records_key = records_key
        self._records: dict[str, Record] = {}
        self._loaded = False

    def __len__(self) -> int:
        return len(self._records)

    @property
    def is_empty(self) -> bool:
        return not self._records

    @property
    def loaded(self) -> bool:
        return self._loaded

    def records(self) -> list[Record]:
        return list(self._records.values())

    def replace_all(self, records: Iterable[Record]) -> None:
        generation: dict[str, Record] = {}
        for record in records:
            if not record.id:
                raise ContractError("Cache generation contains a record without an id")
            if record.id in generation:
                raise ContractError(f"Cache generation contains duplicate id: {record.id}")
            generation[record.id] = record
        self._records = generation

    def lookup(self, record_id: str) -> Record | None:
        return self._records.get(record_id)

    def query(
        self,
        text: str = "",
        *,
        region: str | None = None,
        category: str | None = None,
        group: str | None = None,
        role: RoleFilter | None = None,
    ) -> list[Record]:
        needle = (text or "").lower()
        region_filter = None if region in (None, "", ALL_REGIONS) else region

        matches: list[Record] = []
        for record in self._records.values():
            if region_filter is not None and record.region != region_filter:
                continue
            if category and record.category != category:
                continue
            if group and record.group != group:
                continue
            if role is not None and not record.role_flags.matches(role):
                continue
            if needle and not any(needle in value for value in record.search_fields()):
                continue
            matches.append(record)
        return matches

    def by_region(self, region: str) -> list[Record]:
        return self.query(region=region)

    def categories(self) -> list[str]:
        return sorted({record.category for record in self._records.values()})

    def groups(self) -> list[str]:
        return sorted({record.group for record in self._records.values() if record.group})

    async def load_from_store(self) -> None:
        """Read the persisted generation once; a missing or bad blob leaves the cache empty."""
        if self._loaded:
            return

        blob = await self._store.get(self._records_key)
        self._loaded = True
        if blob is None:
            log_event(logger, "no cached records found", component="cache", event="CACHE_LOAD", status="empty")
            return

        try:
            records = decode_records(blob)
            self.replace_all(records)
        except (ParseFailure, ContractError) as exc:
            log_event(
                logger,
                f"cached records ignored: {exc}",
                level=logging.WARNING,
                component="cache",
                event="CACHE_LOAD",
                status="error",
                error_code=exc.error_code,
            )
            return

        log_event(
            logger,
            f"loaded {len(self._records)} records from cache",
            component="cache",
            event="CACHE_LOAD",
            status="ok",
            records_out=len(self._records),
        )

    async def persist(self) -> bool:
        return await self._store.set(self._records_key, encode_records(self._records.values()))

    async def remove_persisted(self) -> bool:
        return await self._store.remove(self._records_key)

    def invalidate(self) -> None:
        """Drop the in-memory generation and allow the next load to re-read the store."""
        self._records = {}
        self._loaded = False
