"""Refresh orchestration with an in-flight guard and tiered fallback.

One refresh attempt walks these states::

    IDLE -> CHECKING -> IDLE                                  (not due)
    IDLE -> CHECKING -> FETCHING_LIVE -> COMMITTING -> IDLE   (tier 1)
    FETCHING_LIVE -> FALLBACK_DECISION -> SERVE_STALE_CACHE -> IDLE        (tier 2)
    FETCHING_LIVE -> FALLBACK_DECISION -> SERVE_BUILT_IN_DEFAULTS -> IDLE  (tier 3)

The guard is a plain boolean: the coordinator runs on a single event loop and
only yields at store I/O, the availability probe and the live fetch, so the
check-and-set of the flag can never interleave with another caller.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Callable

from tenacity import AsyncRetrying, retry_if_result, stop_after_attempt, wait_exponential

from roster.cache.record_cache import RecordCache
from roster.common.codec import decode_metadata, encode_metadata
from roster.common.constants import DEFAULT_METADATA_KEY
from roster.common.errors import (
    FetchEmpty,
    FetchError,
    FetchUnavailable,
    ParseFailure,
    PersistenceFailure,
    RecordValidationError,
)
from roster.common.logging import log_event
from roster.common.models import DataSource, FreshnessMetadata, Record
from roster.common.time_utils import utc_now
from roster.refresh.freshness import FreshnessPolicy
from roster.sources.base_source import RosterSource
from roster.sources.defaults import default_records
from roster.store.base_store import BaseStore

logger = logging.getLogger(__name__)


class RefreshState(str, Enum):
    IDLE = "idle"
    CHECKING = "checking"
    FETCHING_LIVE = "fetching-live"
    COMMITTING = "committing"
    FALLBACK_DECISION = "fallback-decision"
    SERVE_STALE_CACHE = "serve-stale-cache"
    SERVE_BUILT_IN_DEFAULTS = "serve-built-in-defaults"


class RefreshOutcome(str, Enum):
    LIVE = "live"
    STALE_CACHE = "stale-cache"
    DEFAULTS = "defaults"
    NOT_DUE = "not-due"
    IN_FLIGHT = "in-flight"


@dataclass(frozen=True)
class RefreshResult:
    updated: bool
    success: bool
    outcome: RefreshOutcome
    last_updated_at: datetime | None = None
    next_update_at: datetime | None = None
    error: str | None = None
    record_count: int = 0


class RefreshCoordinator:
    def __init__(
        self,
        cache: RecordCache,
        store: BaseStore,
        source: RosterSource,
        *,
        policy: FreshnessPolicy | None = None,
        defaults: Callable[[datetime], list[Record]] = default_records,
        clock: Callable[[], datetime] = utc_now,
        fetch_timeout: float = 60.0,
        metadata_key: str = DEFAULT_METADATA_KEY,
        metadata_write_attempts: int = 3,
    ) -> None:
        self._cache = cache
        self._store = store
        self._source = source
        self._policy = policy or FreshnessPolicy()
        self._defaults = defaults
        self._clock = clock
        self._fetch_timeout = fetch_timeout
        self._metadata_key = metadata_key
        self._metadata_write_attempts = max(1, metadata_write_attempts)
        self._metadata = FreshnessMetadata()
        self._state = RefreshState.IDLE
        self._in_flight = False
        self._load_task: asyncio.Future | None = None

    @property
    def state(self) -> RefreshState:
        return self._state

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def policy(self) -> FreshnessPolicy:
        return self._policy

    def get_update_status(self) -> FreshnessMetadata:
        return self._metadata

    async def load(self) -> None:
        """Read the persisted generation and metadata once per process."""
        if self._load_task is None:
            self._load_task = asyncio.ensure_future(self._load())
        task = self._load_task
        try:
            await task
        except BaseException:
            if self._load_task is task:
                self._load_task = None
            raise

    async def _load(self) -> None:
        await self._cache.load_from_store()
        blob = await self._store.get(self._metadata_key)
        if blob is None:
            return
        try:
            metadata = decode_metadata(blob)
        except ParseFailure as exc:
            log_event(
                logger,
                f"cached metadata ignored: {exc}",
                level=logging.WARNING,
                component="refresh",
                event="METADATA_LOAD",
                status="error",
                error_code=exc.error_code,
            )
            return
        # A persisted in-progress flag can only come from a process that died mid-refresh.
        self._metadata = replace(
            metadata,
            update_in_progress=False,
            next_update_at=self._policy.next_due_at(metadata.last_updated_at),
        )

    async def check_and_update(self) -> RefreshResult:
        await self.load()
        if self._in_flight:
            return self._declined(success=True)

        self._state = RefreshState.CHECKING
        now = self._clock()
        if self._policy.is_due(self._metadata.last_updated_at, now):
            return await self._run_refresh()

        if self._cache.is_empty:
            return await self._serve_defaults_when_not_due()

        self._state = RefreshState.IDLE
        log_event(logger, "roster is fresh, skipping refresh", component="refresh", event="REFRESH_SKIP", status="ok", outcome=RefreshOutcome.NOT_DUE.value)
        return self._result(updated=False, success=True, outcome=RefreshOutcome.NOT_DUE)

    async def force_update(self) -> RefreshResult:
        await self.load()
        if self._in_flight:
            return self._declined(success=False)
        return await self._run_refresh()

    async def clear(self) -> bool:
        """Forget the persisted roster and metadata; declined while a refresh runs."""
        if self._in_flight:
            return False
        self._in_flight = True
        try:
            records_removed = await self._cache.remove_persisted()
            metadata_removed = await self._store.remove(self._metadata_key)
            self._cache.invalidate()
            self._metadata = FreshnessMetadata()
            self._load_task = None
        finally:
            self._in_flight = False
        log_event(logger, "roster cache cleared", component="refresh", event="CACHE_CLEAR", status="ok" if records_removed and metadata_removed else "partial")
        return records_removed and metadata_removed

    async def _run_refresh(self) -> RefreshResult:
        self._in_flight = True
        started = time.monotonic()
        try:
            self._metadata = replace(self._metadata, update_in_progress=True)
            await self._persist_metadata()
            try:
                records = await self._fetch_live()
            except FetchError as exc:
                result = await self._fall_back(exc)
            else:
                result = await self._commit(records)
        finally:
            self._in_flight = False
            self._state = RefreshState.IDLE
            if self._metadata.update_in_progress:
                self._metadata = replace(self._metadata, update_in_progress=False)

        log_event(
            logger,
            f"refresh finished with outcome {result.outcome.value}",
            level=logging.INFO if result.success else logging.WARNING,
            component="refresh",
            event="REFRESH_END",
            status="ok" if result.success else "error",
            outcome=result.outcome.value,
            duration_ms=int((time.monotonic() - started) * 1000),
            records_out=result.record_count,
        )
        return result

    async def _fetch_live(self) -> list[Record]:
        self._state = RefreshState.FETCHING_LIVE
        probe = getattr(self._source, "check_availability", None)
        if probe is not None:
            try:
                available = await probe()
            except Exception as exc:
                logger.warning("availability probe raised: %s", exc)
                available = False
            if not available:
                raise FetchUnavailable("Roster source is not available")

        try:
            fetched = await asyncio.wait_for(self._source.fetch_all(), timeout=self._fetch_timeout)
        except asyncio.TimeoutError as exc:
            raise FetchUnavailable(f"Roster fetch timed out after {self._fetch_timeout:g}s") from exc
        except FetchError:
            raise
        except Exception as exc:
            raise FetchUnavailable(f"Roster fetch failed: {exc}") from exc

        records = self._dedupe(self._validate(fetched or []))
        if not records:
            raise FetchEmpty("No records received from roster source")
        return records

    def _validate(self, records: list[Record]) -> list[Record]:
        """Keep only records that survive the same checks the persisted cache applies on load."""
        valid: list[Record] = []
        for record in records:
            try:
                valid.append(Record.from_dict(record.to_dict()))
            except (RecordValidationError, TypeError, ValueError, AttributeError) as exc:
                logger.debug("dropping fetched record %r: %s", getattr(record, "id", None), exc)
        if len(valid) != len(records):
            log_event(
                logger,
                f"dropped {len(records) - len(valid)} invalid records",
                level=logging.WARNING,
                component="refresh",
                event="REFRESH_VALIDATE",
                status="partial",
                records_in=len(records),
                records_out=len(valid),
                error_code=RecordValidationError.error_code,
            )
        return valid

    def _dedupe(self, records: list[Record]) -> list[Record]:
        seen: set[str] = set()
        unique: list[Record] = []
        for record in records:
            if record.id in seen:
                continue
            seen.add(record.id)
            unique.append(record)
        if len(unique) != len(records):
            log_event(
                logger,
                f"dropped {len(records) - len(unique)} duplicate records",
                level=logging.WARNING,
                component="refresh",
                event="REFRESH_DEDUPE",
                status="partial",
                records_in=len(records),
                records_out=len(unique),
            )
        return unique

    async def _commit(self, records: list[Record]) -> RefreshResult:
        self._state = RefreshState.COMMITTING
        now = self._clock()
        self._cache.replace_all(records)
        self._metadata = FreshnessMetadata(
            last_updated_at=now,
            next_update_at=self._policy.next_due_at(now),
            update_in_progress=False,
            last_update_succeeded=True,
            last_error=None,
            last_attempt_at=now,
            source=DataSource.LIVE,
        )
        await self._persist_records()
        await self._persist_metadata()
        return self._result(updated=True, success=True, outcome=RefreshOutcome.LIVE)

    async def _fall_back(self, exc: FetchError) -> RefreshResult:
        self._state = RefreshState.FALLBACK_DECISION
        now = self._clock()
        error = str(exc) or exc.__class__.__name__
        log_event(
            logger,
            f"live refresh failed: {error}",
            level=logging.WARNING,
            component="refresh",
            event="REFRESH_FALLBACK",
            status="error",
            error_code=exc.error_code,
        )

        if self._cache.is_empty:
            self._state = RefreshState.SERVE_BUILT_IN_DEFAULTS
            self._cache.replace_all(self._defaults(now))
            outcome, source = RefreshOutcome.DEFAULTS, DataSource.DEFAULTS
            await self._persist_records()
        else:
            self._state = RefreshState.SERVE_STALE_CACHE
            outcome, source = RefreshOutcome.STALE_CACHE, self._metadata.source or DataSource.CACHE

        self._metadata = replace(
            self._metadata,
            next_update_at=self._policy.next_due_at(self._metadata.last_updated_at),
            update_in_progress=False,
            last_update_succeeded=False,
            last_error=error,
            last_attempt_at=now,
            source=source,
        )
        await self._persist_metadata()
        return self._result(updated=True, success=False, outcome=outcome, error=error)

    async def _serve_defaults_when_not_due(self) -> RefreshResult:
        self._in_flight = True
        try:
            self._state = RefreshState.SERVE_BUILT_IN_DEFAULTS
            self._cache.replace_all(self._defaults(self._clock()))
            self._metadata = replace(self._metadata, source=DataSource.DEFAULTS)
            await self._persist_records()
            await self._persist_metadata()
        finally:
            self._in_flight = False
            self._state = RefreshState.IDLE
        log_event(
            logger,
            "cache empty while roster is fresh, serving built-in defaults",
            level=logging.WARNING,
            component="refresh",
            event="REFRESH_SKIP",
            status="partial",
            outcome=RefreshOutcome.NOT_DUE.value,
            records_out=len(self._cache),
        )
        return self._result(updated=False, success=True, outcome=RefreshOutcome.NOT_DUE)

    async def _persist_records(self) -> bool:
        ok = await self._cache.persist()
        if not ok:
            log_event(
                logger,
                "records not persisted this cycle",
                level=logging.WARNING,
                component="refresh",
                event="PERSIST_RECORDS",
                status="error",
                error_code=PersistenceFailure.error_code,
            )
        return ok

    async def _persist_metadata(self) -> bool:
        blob = encode_metadata(self._metadata)
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._metadata_write_attempts),
            wait=wait_exponential(multiplier=0.05, max=1.0),
            retry=retry_if_result(lambda ok: not ok),
            retry_error_callback=lambda _state: False,
        )
        ok = await retrying(self._store.set, self._metadata_key, blob)
        if not ok:
            log_event(
                logger,
                "metadata not persisted this cycle",
                level=logging.WARNING,
                component="refresh",
                event="PERSIST_METADATA",
                status="error",
                attempt=self._metadata_write_attempts,
                error_code=PersistenceFailure.error_code,
            )
        return ok

    def _declined(self, *, success: bool) -> RefreshResult:
        log_event(logger, "refresh already in flight, declining", component="refresh", event="REFRESH_DECLINED", status="skipped", outcome=RefreshOutcome.IN_FLIGHT.value)
        return self._result(
            updated=False,
            success=success,
            outcome=RefreshOutcome.IN_FLIGHT,
            error=None if success else "A refresh is already in progress",
        )

    def _result(self, *, updated: bool, success: bool, outcome: RefreshOutcome, error: str | None = None) -> RefreshResult:
        return RefreshResult(
            updated=updated,
            success=success,
            outcome=outcome,
            last_updated_at=self._metadata.last_updated_at,
            next_update_at=self._metadata.next_update_at,
            error=error,
            record_count=len(self._cache),
        )
