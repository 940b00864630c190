from __future__ import annotations

import json

import pytest

from roster.cache.record_cache import RecordCache
from roster.common.codec import encode_records
from roster.common.constants import DEFAULT_RECORDS_KEY
from roster.common.errors import ContractError
from roster.common.models import RoleFilter, RoleFlags
from roster.sources.defaults import default_records
from roster.store.memory_store import MemoryStore


@pytest.fixture
def roster_cache() -> RecordCache:
    cache = RecordCache(MemoryStore())
    cache.replace_all(default_records())
    return cache


def _ids(records):
    return [record.id for record in records]


def test_empty_query_returns_all_in_generation_order(roster_cache):
    assert _ids(roster_cache.query("")) == [f"fallback_{i}" for i in range(1, 9)]


def test_query_is_case_insensitive_across_text_fields(roster_cache):
    assert _ids(roster_cache.query("WONG")) == ["fallback_3"]
    assert _ids(roster_cache.query("greens")) == ["fallback_4"]
    assert _ids(roster_cache.query("marrickville")) == ["fallback_1"]
    assert _ids(roster_cache.query("warringah")) == ["fallback_8"]
    assert _ids(roster_cache.query("climate action")) == ["fallback_7", "fallback_8"]


def test_query_intersects_structural_filters(roster_cache):
    assert _ids(roster_cache.query("", region="SA")) == ["fallback_3", "fallback_6"]
    assert _ids(roster_cache.query("", region="All")) == _ids(roster_cache.records())
    assert _ids(roster_cache.query("adelaide", group="Senate", category="Liberal Party of Australia")) == ["fallback_6"]
    assert roster_cache.query("albanese", region="VIC") == []


def test_query_role_filter(roster_cache):
    assert _ids(roster_cache.query(role=RoleFilter.MINISTER)) == ["fallback_1", "fallback_3", "fallback_5"]
    assert _ids(roster_cache.query(role=RoleFilter.SHADOW_MINISTER)) == ["fallback_2", "fallback_6"]
    assert _ids(roster_cache.query(role=RoleFilter.NEITHER)) == ["fallback_4", "fallback_7", "fallback_8"]


def test_query_text_is_matched_verbatim(roster_cache):
    assert roster_cache.query("   ") == []
    assert _ids(roster_cache.query(" ")) == _ids(roster_cache.records())
    assert _ids(roster_cache.query(" wong")) == ["fallback_3"]

def test_lookup_and_helpers(roster_cache):
    assert roster_cache.lookup("fallback_2").display_name == "Peter Dutton"
    assert roster_cache.lookup("missing") is None
    assert roster_cache.groups() == ["House of Representatives", "Senate"]
    assert "Independent" in roster_cache.categories()
    assert _ids(roster_cache.by_region("ACT")) == ["fallback_7"]


def test_replace_all_rejects_duplicate_ids_and_keeps_previous_generation(roster_cache, make_record):
    before = roster_cache.records()
    with pytest.raises(ContractError):
        roster_cache.replace_all([make_record(1), make_record(1)])
    assert roster_cache.records() == before


def test_replace_all_swaps_whole_generation(roster_cache, make_records):
    fresh = make_records(3)
    roster_cache.replace_all(fresh)
    assert roster_cache.records() == fresh
    assert roster_cache.lookup("fallback_1") is None


@pytest.mark.asyncio
async def test_persist_then_load_on_fresh_instance_round_trips(make_records, make_record):
    store = MemoryStore()
    original = make_records(5) + [
        make_record(
            6,
            locality=None,
            sub_region=None,
            group="Senate",
            image_ref="https://example.test/p.jpg",
            tags=("Finance", "Trade"),
            role_flags=RoleFlags(is_minister=True),
        )
    ]
    writer = RecordCache(store)
    writer.replace_all(original)
    assert await writer.persist() is True

    reader = RecordCache(store)
    await reader.load_from_store()

    assert reader.records() == original


@pytest.mark.asyncio
async def test_load_from_store_is_idempotent_until_invalidated(make_records):
    store = MemoryStore()
    writer = RecordCache(store)
    writer.replace_all(make_records(2))
    await writer.persist()

    reader = RecordCache(store)
    await reader.load_from_store()
    writer.replace_all(make_records(4))
    await writer.persist()
    await reader.load_from_store()
    assert len(reader) == 2

    reader.invalidate()
    assert reader.is_empty
    await reader.load_from_store()
    assert len(reader) == 4


@pytest.mark.asyncio
async def test_malformed_blob_leaves_cache_empty():
    cache = RecordCache(MemoryStore({DEFAULT_RECORDS_KEY: "{not json"}))
    await cache.load_from_store()
    assert cache.is_empty
    assert cache.loaded is True



@pytest.mark.asyncio
async def test_numeric_timestamp_in_records_blob_leaves_cache_empty(make_record):
    payload = json.loads(encode_records([make_record(1)]))
    payload["records"][0]["last_updated"] = 1700000000
    cache = RecordCache(MemoryStore({DEFAULT_RECORDS_KEY: json.dumps(payload)}))

    await cache.load_from_store()

    assert cache.is_empty
    assert cache.loaded is True

@pytest.mark.asyncio
async def test_absent_blob_and_failed_read_leave_cache_empty():
    missing = RecordCache(MemoryStore())
    await missing.load_from_store()
    broken = RecordCache(MemoryStore({DEFAULT_RECORDS_KEY: "[]"}, fail_keys={DEFAULT_RECORDS_KEY}))
    await broken.load_from_store()
    assert missing.is_empty and broken.is_empty
