from __future__ import annotations

from datetime import timedelta

import pytest

from roster.cache.record_cache import RecordCache
from roster.common.codec import encode_metadata, encode_records
from roster.common.constants import DEFAULT_METADATA_KEY, DEFAULT_RECORDS_KEY
from roster.common.models import DataSource, FreshnessMetadata
from roster.refresh.coordinator import RefreshCoordinator, RefreshOutcome
from roster.store.memory_store import MemoryStore


@pytest.mark.regression
@pytest.mark.asyncio
async def test_stale_in_progress_flag_does_not_block_refresh(clock, make_records, scripted_source):
    store = MemoryStore()
    store.blobs[DEFAULT_RECORDS_KEY] = encode_records(make_records(2))
    store.blobs[DEFAULT_METADATA_KEY] = encode_metadata(
        FreshnessMetadata(
            last_updated_at=clock.now - timedelta(hours=30),
            update_in_progress=True,
            last_update_succeeded=True,
            source=DataSource.LIVE,
        )
    )
    source = scripted_source(make_records(3))
    coordinator = RefreshCoordinator(RecordCache(store), store, source, clock=clock, metadata_write_attempts=1)

    await coordinator.load()
    assert coordinator.get_update_status().update_in_progress is False

    result = await coordinator.check_and_update()
    assert result.outcome is RefreshOutcome.LIVE
    assert source.fetch_calls == 1


@pytest.mark.regression
@pytest.mark.asyncio
async def test_corrupt_metadata_blob_counts_as_never_refreshed(clock, make_records, scripted_source):
    store = MemoryStore()
    store.blobs[DEFAULT_RECORDS_KEY] = encode_records(make_records(2))
    store.blobs[DEFAULT_METADATA_KEY] = "{not json"
    source = scripted_source(make_records(3))
    coordinator = RefreshCoordinator(RecordCache(store), store, source, clock=clock, metadata_write_attempts=1)

    result = await coordinator.check_and_update()

    assert result.outcome is RefreshOutcome.LIVE
    assert source.fetch_calls == 1
