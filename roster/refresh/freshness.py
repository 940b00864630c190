"""Refresh due-time computation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

ZERO = timedelta(0)


def elapsed_since(last_updated_at: datetime, now: datetime) -> timedelta:
    # A clock set backwards must never make the roster look older.
    return max(now - last_updated_at, ZERO)


def is_due(last_updated_at: datetime | None, now: datetime, interval: timedelta) -> bool:
    if last_updated_at is None:
        return True
    if now < last_updated_at:
        return False
    return elapsed_since(last_updated_at, now) >= interval


def next_due_at(last_updated_at: datetime | None, interval: timedelta) -> datetime | None:
    if last_updated_at is None:
        return None
    return last_updated_at + interval


@dataclass(frozen=True)
class FreshnessPolicy:
    interval: timedelta = timedelta(hours=24)

    def __post_init__(self) -> None:
        if self.interval <= ZERO:
            raise ValueError("Refresh interval must be positive")

    def is_due(self, last_updated_at: datetime | None, now: datetime) -> bool:
        return is_due(last_updated_at, now, self.interval)

    def next_due_at(self, last_updated_at: datetime | None) -> datetime | None:
        return next_due_at(last_updated_at, self.interval)

    def time_until_due(self, last_updated_at: datetime | None, now: datetime) -> timedelta:
        if last_updated_at is None:
            return ZERO
        return max(self.interval - elapsed_since(last_updated_at, now), ZERO)
