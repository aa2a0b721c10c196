"""A single crawl worker: frontier loop, cooperative pause and flag counters."""

from __future__ import annotations

from collections import deque
from threading import Condition
from typing import Iterable

import structlog

from ..config import WorkerConfig
from ..engine.blacklist import BlacklistFilter
from ..engine.dedup import DeduplicationEngine, SubmitOutcome
from ..engine.fetcher import FetchOutcome, PageFetcher
from ..engine.parser import PageParser
from ..errors import DataUnavailable
from ..records import EntityKind, UrlRecord
from ..store import RecordStore
from .states import Flag, WorkerState, check_transition
from .tracker import FleetTracker

Frontier = deque[tuple[str, int]]

_PREVIOUSLY_CRAWLED = (Flag.VISITED.value, Flag.RECRAWL.value)


class CrawlWorker:
    """Crawl one site and report progress to the fleet tracker.

    The blacklist is loaded while the worker is built, so a store outage
    surfaces as :class:`~vacancy_crawler.errors.DataUnavailable` from the
    constructor and no worker exists. ``run`` blocks the calling thread; the
    lifecycle methods are safe to call from any other thread.
    """

    def __init__(
        self,
        config: WorkerConfig,
        store: RecordStore,
        tracker: FleetTracker,
        fetcher: PageFetcher | None = None,
        parser: PageParser | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.config = config
        self.store = store
        self.tracker = tracker
        self.logger = logger or structlog.get_logger("vacancy_crawler.worker").bind(
            worker=config.name
        )
        self.blacklist = BlacklistFilter(config.worker_id, config.base_url, store, logger=self.logger)
        self.dedup = DeduplicationEngine(store, logger=self.logger)
        self.parser = parser or PageParser()
        self._owns_fetcher = fetcher is None
        self.fetcher = fetcher or PageFetcher(config.fetch, logger=self.logger)
        self._condition = Condition()
        self._state: WorkerState | None = None
        self._counts: dict[Flag, int] = {flag: 0 for flag in Flag}
        self._submissions: dict[SubmitOutcome, int] = {outcome: 0 for outcome in SubmitOutcome}

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------
    @property
    def worker_id(self) -> int:
        return self.config.worker_id

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def state(self) -> WorkerState | None:
        with self._condition:
            return self._state

    @property
    def counts(self) -> dict[Flag, int]:
        with self._condition:
            return dict(self._counts)

    @property
    def submissions(self) -> dict[SubmitOutcome, int]:
        with self._condition:
            return dict(self._submissions)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def run(self) -> dict[Flag, int]:
        """Crawl until the frontier is empty, ``max_pages`` is hit or stopped."""

        self._transition(WorkerState.RUNNING)
        self.logger.info("worker_started", base_url=self.config.base_url)
        try:
            self._crawl()
        except Exception:
            self.logger.exception("worker_crashed")
            raise
        finally:
            self._finish()
        self.logger.info("worker_finished", **{flag.value: n for flag, n in self.counts.items()})
        return self.counts

    def request_pause(self) -> None:
        with self._condition:
            if self._state in (WorkerState.PAUSING, WorkerState.PAUSED):
                return
            self._transition(WorkerState.PAUSING)

    def resume(self) -> None:
        with self._condition:
            if self._state is WorkerState.RUNNING:
                return
            self._transition(WorkerState.RUNNING)

    def stop(self) -> None:
        with self._condition:
            if self._state is WorkerState.STOPPED:
                return
            self._transition(WorkerState.STOPPED)

    def wait_until(self, state: WorkerState, timeout: float | None = None) -> bool:
        with self._condition:
            return self._condition.wait_for(lambda: self._state is state, timeout)

    def _transition(self, target: WorkerState) -> None:
        # reported under the condition so the tracker sees transitions in order
        with self._condition:
            previous = self._state
            self._state = check_transition(previous, target)
            self.tracker.report_state(self.worker_id, target)
            self._condition.notify_all()
        self.logger.info(
            "worker_state_changed",
            previous=previous.value if previous else None,
            state=target.value,
        )

    def _checkpoint(self) -> bool:
        """Honour pause requests; ``False`` once the worker has been stopped."""

        with self._condition:
            if self._state is WorkerState.PAUSING:
                self._transition(WorkerState.PAUSED)
            while self._state is WorkerState.PAUSED:
                self._condition.wait()
            return self._state is not WorkerState.STOPPED

    def _finish(self) -> None:
        with self._condition:
            if self._state is not WorkerState.STOPPED:
                self._transition(WorkerState.STOPPED)
        if self._owns_fetcher:
            self.fetcher.close()

    # ------------------------------------------------------------------
    # Crawl loop
    # ------------------------------------------------------------------
    def _crawl(self) -> None:
        frontier: Frontier = deque()
        seen: set[str] = set()
        origins: dict[str, str | None] = {}
        self._enqueue(self.config.seed_urls, frontier, seen)
        fetched = 0
        while frontier and fetched < self.config.max_pages:
            if not self._checkpoint():
                return
            url, attempt = frontier.popleft()
            record, stored_flag = self._url_record(url)
            # flag left by an earlier session, not by this session's retries
            previous_flag = origins.setdefault(url, stored_flag)
            outcome = self.fetcher.fetch(url)
            fetched += 1
            self._handle(outcome, record, previous_flag, attempt, frontier, seen)
        if frontier:
            self.logger.info("max_pages_reached", max_pages=self.config.max_pages, pending=len(frontier))

    def _handle(
        self,
        outcome: FetchOutcome,
        record: UrlRecord,
        previous_flag: str | None,
        attempt: int,
        frontier: Frontier,
        seen: set[str],
    ) -> None:
        if outcome.flag is Flag.RETRY:
            if attempt < self.config.fetch.max_retries:
                frontier.append((record.url, attempt + 1))
                if attempt == 0:
                    self._mark(record, Flag.RETRY)
                return
            self.logger.warning("retries_exhausted", url=record.url, attempts=attempt + 1)
            self._mark_dead(record, previous_flag)
        elif outcome.flag is Flag.DEAD:
            self._mark_dead(record, previous_flag)
        elif outcome.flag is Flag.FILE:
            self._mark(record, Flag.FILE)
        else:
            flag = Flag.RECRAWL if previous_flag in _PREVIOUSLY_CRAWLED else Flag.VISITED
            self._mark(record, flag)
            links = self.parser.extract_links(outcome.text, outcome.url)
            self._enqueue(links, frontier, seen)
            self._submit(record, outcome)

    def _enqueue(self, urls: Iterable[str], frontier: Frontier, seen: set[str]) -> None:
        for url in urls:
            if url in seen or not self.blacklist.is_allowed(url):
                continue
            seen.add(url)
            frontier.append((url, 0))
            self._count(Flag.FOUND)

    def _submit(self, record: UrlRecord, outcome: FetchOutcome) -> None:
        fields = self.parser.extract_vacancy(outcome.text, self.config.vacancy_pattern)
        if fields is None:
            return
        try:
            result = self.dedup.submit(record.id, fields)
        except DataUnavailable as exc:
            self.logger.error("vacancy_submit_failed", url=record.url, error=str(exc))
            return
        with self._condition:
            self._submissions[result] += 1

    def _url_record(self, url: str) -> tuple[UrlRecord, str | None]:
        """Get or create the stored URL; also returns its flag from earlier sessions."""

        for existing in self.store.find_by_equals(EntityKind.URL, "url", url):
            if isinstance(existing, UrlRecord) and existing.worker_id == self.worker_id:
                return existing, existing.flag
        record = UrlRecord(worker_id=self.worker_id, url=url, flag=Flag.FOUND.value)
        self.store.save(record)
        return record, None

    def _mark(self, record: UrlRecord, flag: Flag) -> None:
        record.flag = flag.value
        self.store.save(record)
        self._count(flag)

    def _mark_dead(self, record: UrlRecord, previous_flag: str | None) -> None:
        self._mark(record, Flag.DEAD)
        if previous_flag is not None and record.id is not None:
            self.dedup.retire(record.id)

    def _count(self, flag: Flag) -> None:
        with self._condition:
            self._counts[flag] += 1
            # a stopped worker may already be removed from the tracker
            if self._state is not WorkerState.STOPPED:
                self.tracker.report_flag_count(self.worker_id, flag, self._counts[flag])


__all__ = ["CrawlWorker"]
