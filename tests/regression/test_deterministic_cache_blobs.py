from __future__ import annotations

import json

import pytest

from roster.common.codec import encode_records
from roster.sources.defaults import default_records


@pytest.mark.regression
def test_records_blob_is_byte_stable_for_same_inputs(make_records):
    first = encode_records(make_records(5))
    second = encode_records(make_records(5))

    assert first == second
    assert json.loads(first)["version"] == 1


@pytest.mark.regression
def test_default_roster_snapshot(clock):
    records = default_records(clock.now)

    assert [record.id for record in records] == [f"fallback_{i}" for i in range(1, 9)]
    assert {record.region for record in records} == {"NSW", "QLD", "SA", "VIC", "ACT"}
    assert sum(record.role_flags.is_minister for record in records) == 3
    assert sum(record.role_flags.is_shadow_minister for record in records) == 2
    assert all(record.last_updated == clock.now for record in records)
