"""Composition root: one explicit context object per process.

Consumers (the presentation layer, the CLI, the scheduled trigger) receive a
``RosterContext`` instead of reaching for module-level singletons, so tests
can build a fresh one with in-memory collaborators.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from roster.cache.record_cache import RecordCache
from roster.common.config_loader import RosterConfig
from roster.common.models import FreshnessMetadata, Record, RoleFilter
from roster.common.time_utils import utc_now
from roster.refresh.coordinator import RefreshCoordinator, RefreshResult
from roster.refresh.freshness import FreshnessPolicy
from roster.refresh.trigger import ScheduledTrigger
from roster.sources.aph_source import AphRosterSource
from roster.sources.base_source import RosterSource
from roster.store.base_store import BaseStore
from roster.store.store_factory import create_store


@dataclass
class RosterContext:
    config: RosterConfig
    store: BaseStore
    cache: RecordCache
    coordinator: RefreshCoordinator
    trigger: ScheduledTrigger

    async def start(self) -> None:
        await self.coordinator.load()

    async def refresh(self) -> RefreshResult:
        return await self.coordinator.check_and_update()

    async def force_refresh(self) -> RefreshResult:
        return await self.coordinator.force_update()

    def search(
        self,
        text: str = "",
        region: str | None = None,
        category: str | None = None,
        chamber: str | None = None,
        role: RoleFilter | None = None,
    ) -> list[Record]:
        return self.cache.query(text, region=region, category=category, group=chamber, role=role)

    def get_by_id(self, record_id: str) -> Record | None:
        return self.cache.lookup(record_id)

    def get_update_status(self) -> FreshnessMetadata:
        return self.coordinator.get_update_status()

    def categories(self) -> list[str]:
        return self.cache.categories()

    def chambers(self) -> list[str]:
        return self.cache.groups()


def build_context(
    config: RosterConfig,
    *,
    store: BaseStore | None = None,
    source: RosterSource | None = None,
    clock: Callable[[], datetime] = utc_now,
) -> RosterContext:
    store = store or create_store(config.store)
    cache = RecordCache(store, records_key=config.store.records_key)
    coordinator = RefreshCoordinator(
        cache,
        store,
        source or AphRosterSource(config.source, clock=clock),
        policy=FreshnessPolicy(config.refresh.interval),
        clock=clock,
        fetch_timeout=config.refresh.fetch_timeout_seconds,
        metadata_key=config.store.metadata_key,
        metadata_write_attempts=config.refresh.metadata_write_attempts,
    )
    trigger = ScheduledTrigger(
        coordinator,
        interval=config.refresh.interval,
        task_name=config.refresh.task_name,
    )
    return RosterContext(config=config, store=store, cache=cache, coordinator=coordinator, trigger=trigger)
