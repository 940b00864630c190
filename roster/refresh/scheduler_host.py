"""APScheduler-backed periodic host used by the long-running ``watch`` command."""

from __future__ import annotations

from datetime import timedelta

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from roster.refresh.trigger import TriggerCallback


class AsyncIOSchedulerHost:
    def __init__(self, scheduler: AsyncIOScheduler | None = None) -> None:
        self.scheduler = scheduler or AsyncIOScheduler()

    def is_registered(self, name: str) -> bool:
        return self.scheduler.get_job(name) is not None

    def register_periodic(self, name: str, callback: TriggerCallback, min_interval: timedelta) -> None:
        self.scheduler.add_job(
            callback,
            IntervalTrigger(seconds=min_interval.total_seconds()),
            id=name,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

    def start(self) -> None:
        if not self.scheduler.running:
            self.scheduler.start()

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
