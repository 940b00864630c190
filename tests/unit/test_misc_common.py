from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from roster.common.fs import read_text, write_text_atomic
from roster.common.time_utils import parse_iso, to_iso, utc_now


def test_parse_iso_handles_zulu_and_naive_values():
    assert parse_iso("2026-02-17T09:00:00Z") == datetime(2026, 2, 17, 9, 0, tzinfo=timezone.utc)
    assert parse_iso("2026-02-17T09:00:00").tzinfo == timezone.utc
    assert parse_iso("2026-02-17T19:00:00+10:00") == datetime(2026, 2, 17, 9, 0, tzinfo=timezone.utc)


def test_parse_iso_empty_values():
    assert parse_iso(None) is None
    assert parse_iso("") is None


def test_parse_iso_rejects_garbage():
    with pytest.raises(ValueError):
        parse_iso("yesterday")


def test_to_iso_roundtrips_through_parse():
    stamp = datetime(2026, 2, 17, 9, 0, tzinfo=timezone(timedelta(hours=10)))
    assert parse_iso(to_iso(stamp)) == stamp
    assert to_iso(None) is None


def test_utc_now_is_timezone_aware():
    assert utc_now().utcoffset() == timedelta(0)


def test_write_text_atomic_creates_parents_and_leaves_no_temp(tmp_path: Path):
    target = tmp_path / "nested" / "blob.json"

    write_text_atomic(target, "first")
    write_text_atomic(target, "second")

    assert read_text(target) == "second"
    assert [p.name for p in target.parent.iterdir()] == ["blob.json"]


@pytest.mark.parametrize("value", [1700000000, 17.5, ["2026-02-17"], {"at": "2026-02-17"}])
def test_parse_iso_rejects_non_string_values(value):
    with pytest.raises(TypeError):
        parse_iso(value)


def test_parse_iso_treats_blank_as_missing():
    assert parse_iso("   ") is None
