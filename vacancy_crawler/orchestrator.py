"""Fleet orchestrator wiring configs, store, tracker, workers and scheduling."""

from __future__ import annotations

from concurrent.futures import Future
from threading import Lock
from typing import Iterable

from .config import ConfigRepository, GlobalConfig, WorkerConfig
from .engine import DeduplicationEngine, PageFetcher, ThreadPoolManager
from .fleet import FleetTracker, WorkerState
from .fleet.worker import CrawlWorker
from .logging_conf import configure_logging, worker_logger
from .records import BlacklistEntry, EntityKind, Vacancy
from .store import RecordStore


def summarize(worker: CrawlWorker) -> dict[str, int]:
    """Flatten a worker's flag counters and submission outcomes for display."""

    summary = {flag.value: count for flag, count in worker.counts.items()}
    summary.update({outcome.value: count for outcome, count in worker.submissions.items()})
    return summary


class FleetOrchestrator:
    """Central coordinator of the crawl fleet.

    The orchestrator owns the tracker and the map of live workers. Workers are
    keyed by name here and by ``worker_id`` in the tracker and thread pool.
    """

    def __init__(
        self,
        config_repository: ConfigRepository,
        store: RecordStore,
        tracker: FleetTracker | None = None,
        thread_pool: ThreadPoolManager | None = None,
        scheduler=None,
    ) -> None:
        self.config_repository = config_repository
        self.global_config: GlobalConfig = config_repository.load_global_config()
        self.store = store
        self.tracker = tracker or FleetTracker()
        self.thread_pool = thread_pool or ThreadPoolManager(self.global_config.thread_pool_workers)
        self.scheduler = scheduler
        self.logger = configure_logging().bind(component="orchestrator")
        self._workers: dict[str, CrawlWorker] = {}
        self._lock = Lock()

    # ------------------------------------------------------------------
    # Workers
    # ------------------------------------------------------------------
    def build_worker(self, config: WorkerConfig, fetcher: PageFetcher | None = None) -> CrawlWorker:
        """Create a worker; store failures while loading its blacklist propagate."""

        if "fetch" not in config.model_fields_set:
            config = config.model_copy(update={"fetch": self.global_config.default_fetch})
        worker = CrawlWorker(
            config,
            self.store,
            self.tracker,
            fetcher=fetcher,
            logger=worker_logger(config.name),
        )
        with self._lock:
            self._workers[config.name] = worker
        self.logger.info("worker_built", worker=config.name, worker_id=config.worker_id)
        return worker

    def workers(self) -> list[CrawlWorker]:
        with self._lock:
            return list(self._workers.values())

    def get_worker(self, name: str) -> CrawlWorker | None:
        with self._lock:
            return self._workers.get(name)

    def start_worker(self, name: str) -> Future:
        config = self.config_repository.load_worker(name)
        if self.thread_pool.is_running(config.worker_id):
            raise RuntimeError(f"Worker {name!r} is already running")
        worker = self.build_worker(config)
        return self.thread_pool.submit(config.worker_id, worker.run)

    def run_worker(self, name: str) -> dict[str, int]:
        """Crawl one worker on the calling thread and return its summary."""

        worker = self.build_worker(self.config_repository.load_worker(name))
        worker.run()
        summary = summarize(worker)
        self.logger.info("worker_run_completed", worker=name, **summary)
        return summary

    def run_all(self, names: Iterable[str] | None = None) -> dict[str, dict[str, int]]:
        """Run workers in parallel and wait for all of them.

        Workers that fail to build or crash are logged and left out of the
        returned summaries.
        """

        if names is None:
            names = [config.name for config in self.config_repository.list_workers()]
        futures: dict[str, Future] = {}
        for name in names:
            try:
                futures[name] = self.start_worker(name)
            except Exception as exc:  # noqa: BLE001
                self.logger.error("worker_start_failed", worker=name, error=str(exc))
        summaries: dict[str, dict[str, int]] = {}
        for name, future in futures.items():
            try:
                future.result()
            except Exception as exc:  # noqa: BLE001
                self.logger.error("worker_failed", worker=name, error=str(exc))
                continue
            worker = self.get_worker(name)
            if worker is not None:
                summaries[name] = summarize(worker)
        return summaries

    def pause_all(self) -> int:
        paused = 0
        for worker in self.workers():
            if worker.state is WorkerState.RUNNING:
                worker.request_pause()
                paused += 1
        return paused

    def resume_all(self) -> int:
        resumed = 0
        for worker in self.workers():
            if worker.state in (WorkerState.PAUSING, WorkerState.PAUSED):
                worker.resume()
                resumed += 1
        return resumed

    def stop_all(self) -> int:
        stopped = 0
        for worker in self.workers():
            if worker.state not in (None, WorkerState.STOPPED):
                worker.stop()
                stopped += 1
        return stopped

    def remove_worker(self, name: str) -> bool:
        with self._lock:
            worker = self._workers.pop(name, None)
        if self.scheduler is not None:
            self.scheduler.remove_worker(name)
        if worker is None:
            return False
        if worker.state not in (None, WorkerState.STOPPED):
            worker.stop()
        self.tracker.remove_worker(worker.worker_id)
        self.logger.info("worker_removed", worker=name)
        return True

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------
    def vacancy_history(self, url_id: int) -> list[Vacancy]:
        return DeduplicationEngine(self.store, logger=self.logger).history(url_id)

    def add_blacklist_word(self, worker_name: str, word: str) -> BlacklistEntry:
        """Persist a blacklist word; running workers pick it up on their next build."""

        word = word.strip()
        if not word:
            raise ValueError("Blacklist word cannot be empty")
        config = self.config_repository.load_worker(worker_name)
        for entry in self._blacklist_entries(config.worker_id):
            if entry.word == word:
                return entry
        entry = BlacklistEntry(worker_id=config.worker_id, word=word)
        self.store.save(entry)
        self.logger.info("blacklist_word_added", worker=worker_name, word=word)
        return entry

    def blacklist_words(self, worker_name: str) -> list[str]:
        config = self.config_repository.load_worker(worker_name)
        return [entry.word for entry in self._blacklist_entries(config.worker_id)]

    def _blacklist_entries(self, worker_id: int) -> list[BlacklistEntry]:
        records = self.store.find_by_equals(EntityKind.BLACKLIST, "worker_id", worker_id)
        return [record for record in records if isinstance(record, BlacklistEntry)]

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------
    def register_recrawls(self, configs: Iterable[WorkerConfig] | None = None) -> int:
        if self.scheduler is None:
            raise RuntimeError("No scheduler configured")
        if configs is None:
            configs = self.config_repository.list_workers()
        scheduled = sum(1 for config in configs if self.scheduler.schedule_worker(config, self.run_scheduled))
        self.scheduler.start()
        return scheduled

    def run_scheduled(self, name: str) -> None:
        try:
            self.start_worker(name)
        except RuntimeError:
            self.logger.info("recrawl_skipped", worker=name, reason="already_running")

    # ------------------------------------------------------------------
    def shutdown(self, timeout: float | None = 10.0) -> None:
        self.stop_all()
        if not self.thread_pool.wait_all(timeout):
            self.logger.warning("workers_still_running", timeout=timeout)
        self.thread_pool.shutdown(wait=False)
        if self.scheduler is not None:
            self.scheduler.shutdown()
        self.tracker.close()
        self.store.close()
        self.logger.info("orchestrator_shutdown")


__all__ = ["FleetOrchestrator", "summarize"]
