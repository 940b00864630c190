"""Live roster source backed by the APH parliamentarian search pages."""

from __future__ import annotations

import asyncio
import logging
import threading
from datetime import datetime
from typing import Callable

from roster.common.config_loader import SourceConfig
from roster.common.constants import HOUSE, SENATE
from roster.common.errors import FetchUnavailable, RecordValidationError
from roster.common.http import HttpClient, RetryConfig, TimeoutConfig
from roster.common.logging import log_event
from roster.common.models import Record
from roster.common.time_utils import utc_now
from roster.sources.aph_parser import parse_search_results, to_record_mapping

logger = logging.getLogger(__name__)


class AphRosterSource:
    """Fetch senators and members concurrently, tolerating one chamber failing."""

    def __init__(
        self,
        config: SourceConfig,
        *,
        http_client: HttpClient | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.config = config
        self._http_client = http_client
        self._clock = clock

    def _build_client(self) -> HttpClient:
        return HttpClient(
            timeout=TimeoutConfig(
                connect=self.config.connect_timeout_seconds,
                read=self.config.read_timeout_seconds,
            ),
            retry=RetryConfig(max_attempts=self.config.max_attempts),
        )

    def _lease_client(self, users: int) -> tuple[HttpClient, Callable[[], None]]:
        """Return a client plus a release callback; an owned client closes after the last worker releases it."""
        if self._http_client is not None:
            return self._http_client, lambda: None

        client = self._build_client()
        remaining = [users]
        lock = threading.Lock()

        def release() -> None:
            with lock:
                remaining[0] -= 1
                done = remaining[0] == 0
            if done:
                client.close()

        return client, release

    async def check_availability(self) -> bool:
        if not self.config.probe_enabled:
            return True
        client, release = self._lease_client(1)
        probe_timeout = TimeoutConfig(
            connect=self.config.probe_timeout_seconds,
            read=self.config.probe_timeout_seconds,
        )

        def probe() -> bool:
            try:
                return client.head_ok(self.config.senators_url, timeout=probe_timeout)
            finally:
                release()

        try:
            return await asyncio.to_thread(probe)
        except Exception as exc:
            log_event(
                logger,
                f"availability probe failed: {exc}",
                level=logging.WARNING,
                component="source",
                event="SOURCE_PROBE",
                status="error",
                error_code=FetchUnavailable.error_code,
            )
            return False

    async def fetch_all(self) -> list[Record]:
        urls = (self.config.senators_url, self.config.members_url)
        client, release = self._lease_client(len(urls))

        def fetch(url: str) -> str:
            try:
                return client.get_text(url)
            finally:
                release()

        pages = await asyncio.gather(*(asyncio.to_thread(fetch, url) for url in urls), return_exceptions=True)

        fetched_at = self._clock()
        failures: list[str] = []
        records: list[Record] = []
        for chamber, url, page in ((SENATE, self.config.senators_url, pages[0]), (HOUSE, self.config.members_url, pages[1])):
            if isinstance(page, BaseException):
                failures.append(f"{chamber}: {page}")
                log_event(
                    logger,
                    f"failed to fetch {chamber} page from {url}: {page}",
                    level=logging.WARNING,
                    component="source",
                    event="SOURCE_FETCH",
                    status="error",
                    error_code=getattr(page, "error_code", "UNEXPECTED_ERROR"),
                )
                continue
            records.extend(self._convert(page, chamber=chamber, base_url=url, fetched_at=fetched_at))

        if len(failures) == 2:
            raise FetchUnavailable("All roster pages failed: " + "; ".join(failures))

        log_event(
            logger,
            f"fetched {len(records)} records from APH",
            component="source",
            event="SOURCE_FETCH",
            status="partial" if failures else "ok",
            records_out=len(records),
        )
        return records

    def _convert(self, html: str, *, chamber: str, base_url: str, fetched_at: datetime) -> list[Record]:
        scraped_entries = parse_search_results(html, base_url=base_url)
        records: list[Record] = []
        invalid = 0
        for index, scraped in enumerate(scraped_entries, start=1):
            mapping = to_record_mapping(scraped, chamber=chamber, index=index, fetched_at=fetched_at)
            try:
                records.append(Record.from_dict(mapping))
            except RecordValidationError as exc:
                invalid += 1
                logger.debug("skipping %s entry %d: %s", chamber, index, exc)
        if invalid:
            log_event(
                logger,
                f"skipped {invalid} invalid {chamber} entries",
                level=logging.WARNING,
                component="source",
                event="SOURCE_PARSE",
                status="partial",
                records_in=len(scraped_entries),
                records_out=len(records),
                error_code=RecordValidationError.error_code,
            )
        return records
