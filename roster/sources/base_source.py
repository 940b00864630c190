"""Contract for roster sources consumed by the refresh coordinator."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from roster.common.models import Record


@runtime_checkable
class RosterSource(Protocol):
    async def fetch_all(self) -> list[Record]:
        """Return every record, or raise a FetchError subclass."""


@runtime_checkable
class ProbingSource(RosterSource, Protocol):
    async def check_availability(self) -> bool:
        """Best-effort reachability check run before a full fetch."""
