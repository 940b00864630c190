"""Shared fixtures: deterministic clock, record factory, scripted roster source."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from roster.common.models import Contact, Record, RoleFlags

NOW = datetime(2026, 2, 17, 9, 0, tzinfo=timezone.utc)


class FixedClock:
    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


class ScriptedSource:
    """Roster source whose answers are set by the test."""

    def __init__(self, records=None, *, error: Exception | None = None, available=True, probe=True) -> None:
        self.records = list(records or [])
        self.error = error
        self.available = available
        self.fetch_calls = 0
        self.probe_calls = 0
        self.release = asyncio.Event()
        self.release.set()
        if not probe:
            self.check_availability = None

    async def check_availability(self) -> bool:
        self.probe_calls += 1
        if isinstance(self.available, Exception):
            raise self.available
        return self.available

    async def fetch_all(self) -> list[Record]:
        self.fetch_calls += 1
        await asyncio.sleep(0)
        await self.release.wait()
        if self.error is not None:
            raise self.error
        return list(self.records)


def build_record(index: int, **overrides) -> Record:
    fields = {
        "id": f"rec-{index}",
        "display_name": f"Member {index}",
        "category": "Australian Labor Party" if index % 2 else "Liberal Party of Australia",
        "region": ("NSW", "VIC", "QLD", "SA")[index % 4],
        "locality": f"Suburb {index}",
        "sub_region": f"Electorate {index}",
        "group": "House of Representatives",
        "contact": Contact(email=f"member{index}@aph.gov.au", phone="(02) 6277 0000"),
        "image_ref": None,
        "tags": (f"Portfolio {index}",),
        "role_flags": RoleFlags(),
        "last_updated": NOW,
    }
    fields.update(overrides)
    return Record(**fields)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def make_record():
    return build_record


@pytest.fixture
def make_records():
    def _make(count: int) -> list[Record]:
        return [build_record(i) for i in range(1, count + 1)]

    return _make


@pytest.fixture
def scripted_source():
    return ScriptedSource
