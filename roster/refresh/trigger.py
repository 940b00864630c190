"""Binding between a periodic wake facility and the refresh coordinator."""

from __future__ import annotations

import logging
from datetime import timedelta
from enum import Enum
from typing import Awaitable, Callable, Protocol

from roster.common.logging import log_event
from roster.refresh.coordinator import RefreshCoordinator, RefreshResult

logger = logging.getLogger(__name__)

TriggerCallback = Callable[[], Awaitable["TriggerStatus"]]


class TriggerStatus(str, Enum):
    NEW_DATA = "new-data"
    NO_DATA = "no-data"
    FAILED = "failed"


class PeriodicHost(Protocol):
    def is_registered(self, name: str) -> bool: ...

    def register_periodic(self, name: str, callback: TriggerCallback, min_interval: timedelta) -> None: ...


def outcome_to_status(result: RefreshResult) -> TriggerStatus:
    if not result.success:
        return TriggerStatus.FAILED
    if result.updated:
        return TriggerStatus.NEW_DATA
    return TriggerStatus.NO_DATA


class ScheduledTrigger:
    def __init__(self, coordinator: RefreshCoordinator, *, interval: timedelta, task_name: str = "roster-refresh") -> None:
        self.coordinator = coordinator
        self.interval = interval
        self.task_name = task_name
        self._registered = False

    @property
    def registered(self) -> bool:
        return self._registered

    async def run(self) -> TriggerStatus:
        try:
            result = await self.coordinator.check_and_update()
        except Exception:
            logger.exception("scheduled refresh raised")
            return TriggerStatus.FAILED
        status = outcome_to_status(result)
        log_event(
            logger,
            f"scheduled refresh reported {status.value}",
            component="trigger",
            event="TRIGGER_RUN",
            status=status.value,
            outcome=result.outcome.value,
        )
        return status

    def register(self, host: PeriodicHost) -> bool:
        """Register ``run`` with the host once; later calls are no-ops."""
        if self._registered or host.is_registered(self.task_name):
            self._registered = True
            return False
        host.register_periodic(self.task_name, self.run, self.interval)
        self._registered = True
        log_event(logger, f"registered periodic task {self.task_name}", component="trigger", event="TRIGGER_REGISTER", status="ok")
        return True
